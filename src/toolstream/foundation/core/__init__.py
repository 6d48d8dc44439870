"""Core abstractions: schema validation and the conversation data model."""

from .messages import (
    CHAT_REQUEST_SCHEMA,
    ChatRequest,
    ClientRole,
    InboundMessage,
    Message,
    Role,
    ToolCallRequest,
)
from .schema import Schema, validate

__all__ = [
    "Schema", "validate",
    "Message", "InboundMessage", "ChatRequest", "ToolCallRequest",
    "Role", "ClientRole", "CHAT_REQUEST_SCHEMA",
]
