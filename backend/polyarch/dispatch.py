from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from . import prompts
from .config import AppConfig, ChatConfig
from .errors import ConfigurationError, ExtractionError, ParseError, ValidationError
from .extract import BraceSliceExtractor, JsonExtractor
from .models import Command, Coordinates
from .normalize import coerce_state, normalize_command, normalize_coordinates, normalize_polygon_spec
from .providers.gemini import Gateway, GeminiGateway, GenerationOptions
from .sessions import InMemorySessionStore, SessionStore, Turn


logger = logging.getLogger(__name__)

HISTORY_CLEARED_REPLY = (
    "承知しました。会話履歴を削除しました。引き続き、建築・都市・配置計画の相談に対応します。"
)


def _required(value: Any, name: str) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError(f"{name} is required")
    return text


class CommandDispatcher:
    """The three public operations: place, polygon spec and conversation."""

    def __init__(
        self,
        gateway: Gateway,
        store: SessionStore,
        *,
        extractor: Optional[JsonExtractor] = None,
        chat: Optional[ChatConfig] = None,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.extractor = extractor or BraceSliceExtractor()
        self.chat_config = chat or ChatConfig()

    def _require_credentials(self) -> None:
        if not self.gateway.configured:
            raise ConfigurationError("GEMINI_API_KEY is not set")

    def _ask(self, prompt: str, temperature: float) -> Any:
        raw = self.gateway.invoke(prompt, GenerationOptions(temperature=temperature, json_response=True))
        try:
            return self.extractor.extract(raw)
        except (ExtractionError, ParseError) as exc:
            logger.warning("unusable model output (%s): %.200r", exc.kind, raw)
            raise

    def resolve_place(self, place: Any) -> Coordinates:
        place = _required(place, "place")
        obj = self._ask(prompts.place_prompt(place), temperature=0.0)
        return normalize_coordinates(obj)

    def interpret_polygon(self, text: Any) -> Dict[str, Any]:
        text = _required(text, "text")
        self._require_credentials()
        obj = self._ask(prompts.polygon_prompt(text), temperature=0.0)
        return normalize_polygon_spec(obj)

    def is_clear_trigger(self, message: str) -> bool:
        return any(trigger in message for trigger in self.chat_config.clear_triggers)

    def clear_history(self, session_id: str) -> Command:
        self.store.clear(session_id)
        return Command(reply=HISTORY_CLEARED_REPLY, action="chat")

    def chat(self, message: Any, state: Any, session_id: str) -> Command:
        self._require_credentials()
        message = _required(message, "message")

        if self.is_clear_trigger(message):
            logger.info("history cleared for session %s", session_id)
            return self.clear_history(session_id)

        self.store.append(session_id, Turn("user", message))

        prior = coerce_state(state) if state is not None else None
        prompt = prompts.chat_prompt(
            message,
            self.store.get(session_id),
            prior,
            state_limit=self.chat_config.state_prompt_limit,
        )
        obj = self._ask(prompt, temperature=self.chat_config.temperature)
        command = normalize_command(
            obj,
            message=message,
            prior_state=prior,
            require_confirm=self.chat_config.require_confirm,
        )

        self.store.append(session_id, Turn("assistant", command.reply))
        return command


def build_dispatcher(
    cfg: AppConfig,
    *,
    gateway: Optional[Gateway] = None,
    store: Optional[SessionStore] = None,
) -> CommandDispatcher:
    if not cfg.gemini.api_key:
        logger.warning("GEMINI_API_KEY is not set. Set env var before starting.")
    return CommandDispatcher(
        gateway or GeminiGateway(cfg.gemini),
        store or InMemorySessionStore(cfg.chat.history_limit),
        chat=cfg.chat,
    )
