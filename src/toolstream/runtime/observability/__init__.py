"""Observability: structured logging with request-scoped context."""

from .logging import (
    BoundLogger,
    CaptureRenderer,
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    LogRenderer,
    NoOpRenderer,
    configure_logging,
    current_context,
    get_logger,
    install_renderer,
    log_context,
)

__all__ = [
    "BoundLogger", "LogEntry", "LogRenderer",
    "ConsoleRenderer", "JsonRenderer", "NoOpRenderer", "CaptureRenderer",
    "configure_logging", "install_renderer", "get_logger", "log_context", "current_context",
]
