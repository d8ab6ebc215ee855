from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import requests

from ..config import GeminiConfig
from ..errors import GatewayError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationOptions:
    temperature: float = 0.0
    json_response: bool = True


class Gateway(Protocol):
    """A single text-generation call: prompt in, raw text out."""

    @property
    def configured(self) -> bool: ...

    def invoke(self, prompt: str, options: GenerationOptions) -> str: ...


def _first_candidate_text(data: Any) -> str:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""


class GeminiGateway:
    """Calls the Gemini `generateContent` REST endpoint.

    One attempt per call. Non-2xx responses and transport failures (including
    the configured timeout) are raised as `GatewayError` carrying the upstream
    status and body; nothing is retried.
    """

    def __init__(self, config: GeminiConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self._http = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.config.api_key)

    @property
    def url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.config.model}:generateContent"

    def invoke(self, prompt: str, options: GenerationOptions) -> str:
        generation: Dict[str, Any] = {"temperature": options.temperature}
        if options.json_response:
            generation["responseMimeType"] = "application/json"
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": generation,
        }
        params = {"key": self.config.api_key} if self.config.api_key else {}

        try:
            resp = self._http.post(
                self.url,
                params=params,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("gemini request failed: %s", exc)
            raise GatewayError("gemini api error", body=str(exc)) from exc

        if not resp.ok:
            logger.warning("gemini returned status %s", resp.status_code)
            raise GatewayError("gemini api error", status=resp.status_code, body=resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            # Provide helpful context if server responded with non-JSON
            snippet = resp.text[:400]
            raise GatewayError(
                "gemini api returned non-JSON body", status=resp.status_code, body=snippet
            ) from exc
        return _first_candidate_text(data)
