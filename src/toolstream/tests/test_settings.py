"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from toolstream.foundation.config import HttpSettings, LoggingSettings, ToolstreamSettings, clear_settings_cache, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("OPENAI_API_KEY", "TOOLSTREAM_MODEL_API_KEY", "TOOLSTREAM_LOOP_MAX_ITERATIONS",
                 "TOOLSTREAM_HTTP_RECORDS_URL", "TOOLSTREAM_LOG_LEVEL", "TOOLSTREAM_DEBUG"):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = ToolstreamSettings()

    assert settings.loop.max_iterations == 5
    assert settings.loop.tool_timeout == 15.0
    assert settings.model.name == "gpt-4o-mini"
    assert settings.http.records_url == "https://jsonplaceholder.typicode.com/comments"
    assert settings.server.port == 3000
    assert settings.server.cors_origins == ["*"]
    assert settings.debug is False


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLSTREAM_LOOP_MAX_ITERATIONS", "2")
    monkeypatch.setenv("TOOLSTREAM_LOG_LEVEL", "debug")
    monkeypatch.setenv("TOOLSTREAM_DEBUG", "true")

    settings = ToolstreamSettings()

    assert settings.loop.max_iterations == 2
    assert settings.logging.level == "DEBUG"
    assert settings.debug is True


def test_openai_api_key_alias(monkeypatch: pytest.MonkeyPatch) -> None:
    assert not ToolstreamSettings().model.has_api_key

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    settings = ToolstreamSettings()

    assert settings.model.has_api_key
    assert settings.model.api_key is not None
    assert settings.model.api_key.get_secret_value() == "sk-test"
    assert "sk-test" not in repr(settings.model)


def test_records_url_normalized() -> None:
    assert HttpSettings(records_url="http://localhost:8080/comments/").records_url == "http://localhost:8080/comments"


def test_records_url_requires_http_scheme() -> None:
    with pytest.raises(PydanticValidationError):
        HttpSettings(records_url="ftp://example.test/comments")


def test_invalid_log_format_rejected() -> None:
    with pytest.raises(PydanticValidationError):
        LoggingSettings(format="xml")


def test_zero_iterations_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLSTREAM_LOOP_MAX_ITERATIONS", "0")
    with pytest.raises(PydanticValidationError):
        ToolstreamSettings()


def test_get_settings_cached_until_cleared(monkeypatch: pytest.MonkeyPatch) -> None:
    clear_settings_cache()
    first = get_settings()
    assert get_settings() is first

    monkeypatch.setenv("TOOLSTREAM_LOOP_MAX_ITERATIONS", "7")
    assert get_settings().loop.max_iterations == first.loop.max_iterations

    clear_settings_cache()
    assert get_settings().loop.max_iterations == 7
