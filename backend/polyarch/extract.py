from __future__ import annotations

import json
from typing import Any, Protocol

from .errors import MalformedJson, NoJsonFound


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


class JsonExtractor(Protocol):
    def extract(self, text: str) -> Any: ...


class BraceSliceExtractor:
    """Parse the span from the first `{` to the last `}` of model output.

    The slice is a coarse pre-filter that tolerates prose or code fences around
    the payload; `json.loads` does the real validation. Text holding several
    separate objects over-captures and fails to parse.
    """

    def extract(self, text: str) -> Any:
        text = text or ""
        first = text.find("{")
        last = text.rfind("}")
        if first == -1 or last == -1 or last <= first:
            raise NoJsonFound(text)

        snippet = text[first : last + 1]
        try:
            return json.loads(snippet, parse_constant=_reject_constant)
        except ValueError as exc:
            raise MalformedJson(snippet, text, reason=str(exc)) from exc


def extract_json(text: str) -> Any:
    return BraceSliceExtractor().extract(text)
