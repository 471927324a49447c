"""Configuration loading and structured logging tests."""

import json
import logging
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from stylist_app import logging_config
from stylist_app.config import DEFAULT_GEMINI_MODEL, StylistConfig

_CONFIG_ENV_KEYS = [
    "APP_ENV",
    "APP_CONFIG_PATH",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "DATABASE_PATH",
    "DB_POOL_SIZE",
    "UPLOAD_DIR",
    "AI_TIMEOUT_SECONDS",
    "PORT",
]


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for key in _CONFIG_ENV_KEYS:
        # setenv first so monkeypatch restores whatever .env loading adds
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_config_defaults(clean_env: None) -> None:
    config = StylistConfig.from_env()

    assert config.api_key is None
    assert config.model == DEFAULT_GEMINI_MODEL
    assert config.pool_size == 10
    assert config.default_user_id == 1
    assert config.upload_dir == "uploads"
    assert config.port == 5000


def test_config_reads_environment(clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    monkeypatch.setenv("DB_POOL_SIZE", "3")
    monkeypatch.setenv("AI_TIMEOUT_SECONDS", "12.5")

    config = StylistConfig.from_env()

    assert config.api_key == "secret"
    assert config.pool_size == 3
    assert config.ai_timeout_seconds == 12.5


def test_config_merges_file_with_env_precedence(
    clean_env: None, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    config_file = tmp_path / "staging.yaml"
    config_file.write_text(
        "# staging\n"
        "database_path: \"/srv/wardrobe.db\"\n"
        "upload_dir: /srv/uploads\n"
        "port: 8080\n"
    )
    monkeypatch.setenv("APP_CONFIG_PATH", str(config_file))
    monkeypatch.setenv("PORT", "9000")

    config = StylistConfig.from_env()

    assert config.database_path == "/srv/wardrobe.db"
    assert config.upload_dir == "/srv/uploads"
    assert config.port == 9000


def test_config_reads_dotenv_file(clean_env: None, tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("GEMINI_MODEL=gemini-test\n")

    config = StylistConfig.from_env()

    assert config.model == "gemini-test"


def test_redact_for_log_masks_secrets_and_emails() -> None:
    payload = {
        "api_key": "abc",
        "user_id": 1,
        "nested": {"contact": "someone@example.com"},
        "items": ["ok"],
    }

    redacted = logging_config.redact_for_log(payload)

    assert redacted["api_key"] == "[redacted]"
    assert redacted["user_id"] == "[redacted]"
    assert redacted["nested"]["contact"] == "[redacted-email]"
    assert redacted["items"] == ["ok"]


def test_json_formatter_includes_event_and_correlation() -> None:
    record = logging.LogRecord("stylist.test", logging.INFO, __file__, 1, "item_uploaded", None, None)
    record.event = "item_uploaded"
    record.item_id = 5

    with logging_config.correlation_context("corr-123"):
        output = json.loads(logging_config.JsonFormatter().format(record))

    assert output["event"] == "item_uploaded"
    assert output["correlation_id"] == "corr-123"
    assert output["item_id"] == 5


def test_correlation_context_restores_previous_id() -> None:
    with logging_config.correlation_context("outer"):
        with logging_config.correlation_context("inner") as inner:
            assert inner == "inner"
        assert logging_config.CORRELATION_ID.get() == "outer"


def test_redact_for_log_masks_keys_and_image_bytes() -> None:
    redacted = logging_config.redact_for_log(
        {
            "gemini_api_key": "AIzaSyExampleExampleExample123",
            "error": "bad key AIzaSyExampleExampleExample123 rejected",
            "file_bytes": b"\x89PNG",
        }
    )

    assert redacted["gemini_api_key"] == "[redacted]"
    assert redacted["error"] == "bad key [redacted-key] rejected"
    assert redacted["file_bytes"] == "<4 bytes>"


def test_json_formatter_renders_exception_separately() -> None:
    try:
        raise RuntimeError("insert failed")
    except RuntimeError:
        record = logging.LogRecord(
            "stylist.test", logging.ERROR, __file__, 1, "upload_failed", None, sys.exc_info()
        )

    output = json.loads(logging_config.JsonFormatter().format(record))

    assert output["message"] == "upload_failed"
    assert "RuntimeError: insert failed" in output["exception"]
