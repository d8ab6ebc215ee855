from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


DEFAULT_CONFIG_PATHS = (
    Path("config.yaml"),
    Path("backend/config.yaml"),
    Path("backend/config/config.yaml"),
)

DEFAULT_CLEAR_TRIGGER = "会話履歴削除"


def _as_bool(value: Any, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_tuple(value: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if value is None or value == "":
        return default
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return tuple(str(v).strip() for v in items if str(v).strip()) or default


@dataclass(frozen=True)
class GeminiConfig:
    api_key: Optional[str] = None
    model: str = "gemini-2.0-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: float = 60.0  # seconds; expiry surfaces as a gateway error


@dataclass(frozen=True)
class ChatConfig:
    require_confirm: bool = True
    history_limit: int = 20  # 10 user/assistant exchanges
    clear_triggers: Tuple[str, ...] = (DEFAULT_CLEAR_TRIGGER,)
    state_prompt_limit: int = 4000  # chars of map state echoed into the prompt
    temperature: float = 0.2


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    static_dir: Optional[str] = "public"
    cors_origins: Tuple[str, ...] = ("*",)
    cookie_name: str = "polyarch_sid"
    cookie_max_age: int = 30 * 24 * 3600


@dataclass(frozen=True)
class AppConfig:
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    log_level: str = "INFO"

    @staticmethod
    def load(path: Optional[Path] = None) -> "AppConfig":
        data: Dict[str, Any] = {}
        cfg_path: Optional[Path] = None
        if path and path.exists():
            cfg_path = path
        else:
            for p in DEFAULT_CONFIG_PATHS:
                if p.exists():
                    cfg_path = p
                    break

        if cfg_path:
            data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}

        # Env overrides
        g = data.get("gemini", {}) or {}
        c = data.get("chat", {}) or {}
        s = data.get("server", {}) or {}

        gemini = GeminiConfig(
            api_key=os.getenv("GEMINI_API_KEY") or g.get("api_key"),
            model=os.getenv("GEMINI_MODEL") or g.get("model") or GeminiConfig.model,
            base_url=os.getenv("GEMINI_BASE_URL") or g.get("base_url") or GeminiConfig.base_url,
            timeout=float(os.getenv("GEMINI_TIMEOUT") or g.get("timeout") or GeminiConfig.timeout),
        )
        chat = ChatConfig(
            require_confirm=_as_bool(
                os.getenv("POLYARCH_REQUIRE_CONFIRM", c.get("require_confirm")),
                ChatConfig.require_confirm,
            ),
            history_limit=int(
                os.getenv("POLYARCH_HISTORY_LIMIT") or c.get("history_limit") or ChatConfig.history_limit
            ),
            clear_triggers=_as_tuple(
                os.getenv("POLYARCH_CLEAR_TRIGGER") or c.get("clear_triggers"),
                ChatConfig.clear_triggers,
            ),
            state_prompt_limit=int(c.get("state_prompt_limit") or ChatConfig.state_prompt_limit),
            temperature=float(
                c["temperature"] if c.get("temperature") is not None else ChatConfig.temperature
            ),
        )
        static_dir = os.getenv("POLYARCH_STATIC_DIR", s.get("static_dir", ServerConfig.static_dir))
        server = ServerConfig(
            host=os.getenv("HOST") or s.get("host") or ServerConfig.host,
            port=int(os.getenv("PORT") or s.get("port") or ServerConfig.port),
            static_dir=static_dir or None,
            cors_origins=_as_tuple(
                os.getenv("POLYARCH_CORS_ORIGINS") or s.get("cors_origins"),
                ServerConfig.cors_origins,
            ),
            cookie_name=s.get("cookie_name") or ServerConfig.cookie_name,
            cookie_max_age=int(s.get("cookie_max_age") or ServerConfig.cookie_max_age),
        )

        return AppConfig(
            gemini=gemini,
            chat=chat,
            server=server,
            log_level=os.getenv("POLYARCH_LOG_LEVEL") or data.get("log_level") or "INFO",
        )
