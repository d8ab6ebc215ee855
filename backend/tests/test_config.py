from pathlib import Path

import pytest

from polyarch.config import AppConfig, DEFAULT_CLEAR_TRIGGER


ENV_VARS = (
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_BASE_URL",
    "GEMINI_TIMEOUT",
    "POLYARCH_REQUIRE_CONFIRM",
    "POLYARCH_HISTORY_LIMIT",
    "POLYARCH_CLEAR_TRIGGER",
    "POLYARCH_STATIC_DIR",
    "POLYARCH_CORS_ORIGINS",
    "POLYARCH_LOG_LEVEL",
    "HOST",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_without_file(tmp_path: Path):
    cfg = AppConfig.load(tmp_path / "missing.yaml")
    assert cfg.gemini.api_key is None
    assert cfg.gemini.model == "gemini-2.0-flash"
    assert cfg.chat.require_confirm is True
    assert cfg.chat.history_limit == 20
    assert cfg.chat.clear_triggers == (DEFAULT_CLEAR_TRIGGER,)
    assert cfg.server.port == 8080
    assert cfg.server.cookie_name == "polyarch_sid"


def test_yaml_file(tmp_path: Path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        "\n".join(
            [
                "gemini:",
                "  api_key: from-file",
                "  model: gemini-2.5-flash",
                "chat:",
                "  require_confirm: false",
                "  history_limit: 6",
                "  clear_triggers: [reset, 会話履歴削除]",
                "server:",
                "  port: 9000",
                "  static_dir: ''",
                "log_level: DEBUG",
            ]
        ),
        encoding="utf-8",
    )
    cfg = AppConfig.load(path)
    assert cfg.gemini.api_key == "from-file"
    assert cfg.gemini.model == "gemini-2.5-flash"
    assert cfg.chat.require_confirm is False
    assert cfg.chat.history_limit == 6
    assert cfg.chat.clear_triggers == ("reset", "会話履歴削除")
    assert cfg.server.port == 9000
    assert cfg.server.static_dir is None
    assert cfg.log_level == "DEBUG"


def test_default_search_path(tmp_path: Path):
    (tmp_path / "config.yaml").write_text("gemini:\n  api_key: found\n", encoding="utf-8")
    assert AppConfig.load().gemini.api_key == "found"


def test_env_overrides_file(tmp_path: Path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("gemini:\n  api_key: from-file\nchat:\n  require_confirm: true\n", encoding="utf-8")
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    monkeypatch.setenv("POLYARCH_REQUIRE_CONFIRM", "0")
    monkeypatch.setenv("POLYARCH_CLEAR_TRIGGER", "reset, clear history")
    monkeypatch.setenv("PORT", "8181")

    cfg = AppConfig.load(path)
    assert cfg.gemini.api_key == "from-env"
    assert cfg.chat.require_confirm is False
    assert cfg.chat.clear_triggers == ("reset", "clear history")
    assert cfg.server.port == 8181


def test_null_and_zero_temperature(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("chat:\n  temperature: null\n", encoding="utf-8")
    assert AppConfig.load(path).chat.temperature == 0.2

    path.write_text("chat:\n  temperature: 0\n", encoding="utf-8")
    assert AppConfig.load(path).chat.temperature == 0.0
