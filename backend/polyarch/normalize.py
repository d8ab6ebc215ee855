"""Coerce untrusted model output into the client contracts.

Every field read from the model is revalidated here. Place resolution and
polygon interpretation fail hard on bad input; the conversational command is
repaired with deterministic defaults wherever a safe one exists.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from .errors import InvalidCoordinates, InvalidPolygonSpec, NotAnObject
from .intent import infer_action
from .models import ACTIONS, Command, Coordinates, PolygonSpec


logger = logging.getLogger(__name__)

DEFAULT_REPLY = "承知しました。"

CONFIRM_TEXTS: Dict[str, str] = {
    "generate": "ポリゴンを生成しますか？",
    "fly": "指定の場所へ移動しますか？",
    "undo": "直前の操作を元に戻しますか？",
    "clear": "すべてのポリゴンを削除しますか？",
    "rotate": "ポリゴンを回転しますか？",
    "modify": "ポリゴンを変更しますか？",
}


def _finite(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def normalize_coordinates(obj: Any) -> Coordinates:
    if not isinstance(obj, Mapping):
        raise InvalidCoordinates(obj)
    lat = _finite(obj.get("lat"))
    lng = _finite(obj.get("lng"))
    if lat is None or lng is None:
        raise InvalidCoordinates(obj)
    return Coordinates(lat=lat, lng=lng)


def normalize_polygon_spec(obj: Any) -> Dict[str, Any]:
    """Accept any JSON object; only a declared grid partition is checked."""
    if not isinstance(obj, dict):
        raise NotAnObject(obj)
    if obj.get("grid") is not None:
        try:
            PolygonSpec.model_validate({"grid": obj["grid"], "zones": obj.get("zones")})
        except PydanticValidationError as exc:
            raise InvalidPolygonSpec(str(exc), obj) from exc
    return obj


def coerce_state(state: Any) -> Dict[str, Any]:
    """Map state with `polygons` guaranteed to be a list."""
    if not isinstance(state, Mapping):
        return {"polygons": []}
    out = dict(state)
    if not isinstance(out.get("polygons"), list):
        out["polygons"] = []
    return out


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _resolve_action(raw: Any, message: str) -> str:
    action = _text(raw).lower()
    if action in ACTIONS:
        return action
    guessed = infer_action(message)
    logger.info("repaired action %r -> %r from user message", raw, guessed)
    return guessed


def _modify_state(raw: Any, prior: Any) -> Dict[str, Any]:
    if isinstance(raw, Mapping):
        state = dict(raw)
    elif isinstance(prior, Mapping):
        state = dict(prior)
    else:
        state = {"polygons": []}
    if not isinstance(state.get("polygons"), list):
        prior_polygons = prior.get("polygons") if isinstance(prior, Mapping) else None
        state["polygons"] = list(prior_polygons) if isinstance(prior_polygons, list) else []
    return state


def normalize_command(
    obj: Any,
    *,
    message: str,
    prior_state: Any = None,
    require_confirm: bool = True,
) -> Command:
    """Build a schema-valid `Command` from a parsed model reply.

    With `require_confirm` every side-effecting action is flagged for explicit
    user confirmation, and a `chat` reply never carries an executable payload.
    """
    data: Mapping[str, Any] = obj if isinstance(obj, Mapping) else {}

    reply = _text(data.get("reply")) or DEFAULT_REPLY
    action = _resolve_action(data.get("action"), message)

    prompt: Optional[str] = None
    if action in ("generate", "fly"):
        prompt = _text(data.get("prompt")) if isinstance(data.get("prompt"), str) else ""
        if not prompt:
            prompt = message

    state: Optional[Dict[str, Any]] = None
    if action == "modify":
        state = _modify_state(data.get("state"), prior_state)

    needs_confirm: Optional[bool] = None
    confirm_text: Optional[str] = None
    if require_confirm and action != "chat":
        needs_confirm = data.get("needs_confirm") is not False
        confirm_text = _text(data.get("confirm_text")) or CONFIRM_TEXTS[action]

    return Command(
        reply=reply,
        action=action,
        needs_confirm=needs_confirm,
        confirm_text=confirm_text,
        prompt=prompt,
        state=state,
    )