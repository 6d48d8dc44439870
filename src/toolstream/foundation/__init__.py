"""Foundation - Core building blocks for toolstream.

Contains: schema + conversation model, error handling, registry, testing fakes, config.
"""

from __future__ import annotations

__all__ = [
    # Core
    "Schema", "validate", "Message", "InboundMessage", "ChatRequest", "ToolCallRequest", "CHAT_REQUEST_SCHEMA",
    # Errors
    "ErrorCode", "ErrorInfo", "ToolstreamError", "ValidationError", "ToolError", "ModelError",
    "LoopLimitExceeded", "InternalError", "Result", "Ok", "Err",
    # Registry
    "ToolDescriptor", "ToolRegistry", "get_registry", "set_registry", "reset_registry",
    # Testing
    "ScriptedInvoker", "AlwaysToolInvoker", "records_transport",
    # Config
    "ToolstreamSettings", "get_settings", "clear_settings_cache",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("Schema", "validate", "Message", "InboundMessage", "ChatRequest", "ToolCallRequest",
                "CHAT_REQUEST_SCHEMA"):
        from . import core
        return getattr(core, name)

    if name in ("ErrorCode", "ErrorInfo", "ToolstreamError", "ValidationError", "ToolError", "ModelError",
                "LoopLimitExceeded", "InternalError", "Result", "Ok", "Err"):
        from . import errors
        return getattr(errors, name)

    if name in ("ToolDescriptor", "ToolRegistry", "get_registry", "set_registry", "reset_registry"):
        from . import registry
        return getattr(registry, name)

    if name in ("ScriptedInvoker", "AlwaysToolInvoker", "records_transport"):
        from . import testing
        return getattr(testing, name)

    if name in ("ToolstreamSettings", "get_settings", "clear_settings_cache"):
        from . import config
        return getattr(config, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
