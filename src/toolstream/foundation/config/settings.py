"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from toolstream.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.loop.max_iterations
    5
    >>> settings.model.name
    'gpt-4o-mini'

    # Or with environment variables:
    # TOOLSTREAM_LOOP_MAX_ITERATIONS=3
    # TOOLSTREAM_LOG_LEVEL=DEBUG
    # OPENAI_API_KEY=sk-...
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import AliasChoices, Field, PositiveFloat, PositiveInt, SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelSettings(BaseSettings):
    """Language-model configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLSTREAM_MODEL_",
        extra="ignore",
    )

    name: str = Field(default="gpt-4o-mini", description="Chat model identifier")
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("TOOLSTREAM_MODEL_API_KEY", "OPENAI_API_KEY"),
        description="API key for the model provider",
    )
    base_url: str | None = Field(default=None, description="Override for OpenAI-compatible endpoints")
    temperature: Annotated[float, Field(ge=0.0, le=2.0)] = 0.2

    @computed_field
    @property
    def has_api_key(self) -> bool:
        return self.api_key is not None and bool(self.api_key.get_secret_value())


class LoopSettings(BaseSettings):
    """Tool-calling loop policy."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLSTREAM_LOOP_",
        extra="ignore",
    )

    max_iterations: Annotated[int, Field(ge=1, le=50)] = 5
    tool_timeout: PositiveFloat = Field(default=15.0, description="Bounded wait per tool call in seconds")


class HttpSettings(BaseSettings):
    """Outbound HTTP configuration for the record source."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLSTREAM_HTTP_",
        extra="ignore",
    )

    records_url: str = Field(
        default="https://jsonplaceholder.typicode.com/comments",
        description="Remote comments endpoint",
    )
    timeout: PositiveFloat = Field(default=10.0, description="Per-request timeout")
    user_agent: str = "toolstream-http/1.0"

    @field_validator("records_url")
    @classmethod
    def _require_http_scheme(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("records_url must start with http:// or https://")
        return v.rstrip("/")


class ServerSettings(BaseSettings):
    """HTTP server binding and CORS."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLSTREAM_SERVER_",
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: PositiveInt = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLSTREAM_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ToolstreamSettings(BaseSettings):
    """Root settings for the chat service.

    Loads configuration from environment variables with TOOLSTREAM_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        TOOLSTREAM_DEBUG=true
        TOOLSTREAM_MODEL_NAME=gpt-4o
        TOOLSTREAM_LOOP_TOOL_TIMEOUT=5
        TOOLSTREAM_HTTP_RECORDS_URL=https://example.test/comments
        TOOLSTREAM_SERVER_PORT=8080
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOLSTREAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Starlette debug mode (tracebacks for unhandled errors)")

    model: ModelSettings = Field(default_factory=ModelSettings)
    loop: LoopSettings = Field(default_factory=LoopSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> ToolstreamSettings:
    """Get the global settings instance (cached)."""
    return ToolstreamSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
