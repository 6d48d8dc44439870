"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    HttpSettings,
    LoggingSettings,
    LoopSettings,
    ModelSettings,
    ServerSettings,
    ToolstreamSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "HttpSettings",
    "LoggingSettings",
    "LoopSettings",
    "ModelSettings",
    "ServerSettings",
    "ToolstreamSettings",
    "clear_settings_cache",
    "get_settings",
]
