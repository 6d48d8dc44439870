"""Conversation data model.

``Message`` is what the loop and the model see; ``InboundMessage`` and
``ChatRequest`` are the narrower shapes accepted from HTTP clients (clients
cannot inject ``tool`` messages). All models are frozen: the conversation is
only ever extended by appending new messages.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Literal

import orjson
from pydantic import BaseModel, ConfigDict, Field

from .schema import Schema

Role = Literal["user", "assistant", "system", "tool"]
ClientRole = Literal["user", "assistant", "system"]


class ToolCallRequest(BaseModel):
    """A model's request to invoke a registered tool.

    Attributes:
        tool_id: Registry id of the tool to call
        raw_arguments: Unvalidated arguments (JSON text from the model, or a mapping)
        call_id: Provider-assigned id that links the result back to the request
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tool_id: Annotated[str, Field(min_length=1)]
    raw_arguments: str | Mapping[str, object] = "{}"
    call_id: str = ""

    def arguments_text(self) -> str:
        """Arguments as JSON text, for replaying the call to the model."""
        if isinstance(self.raw_arguments, str):
            return self.raw_arguments or "{}"
        return orjson.dumps(dict(self.raw_arguments)).decode()


class Message(BaseModel):
    """One immutable entry in a conversation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    role: Role
    content: str
    tool_call_id: str | None = Field(default=None, description="Set on tool-role messages")
    tool_calls: tuple[ToolCallRequest, ...] = Field(default=(), description="Set on assistant turns that requested a tool")

    @classmethod
    def tool_result(cls, request: ToolCallRequest, content: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=request.call_id or request.tool_id)

    @classmethod
    def tool_request(cls, request: ToolCallRequest, content: str = "") -> Message:
        return cls(role="assistant", content=content, tool_calls=(request,))


class InboundMessage(BaseModel):
    """A client-supplied message. ``content`` must be a non-empty string."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    role: ClientRole
    content: Annotated[str, Field(min_length=1)]

    def to_message(self) -> Message:
        return Message(role=self.role, content=self.content)


class ChatRequest(BaseModel):
    """Inbound request body: ``{"messages": [{"role": ..., "content": ...}, ...]}``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    messages: Annotated[list[InboundMessage], Field(min_length=1)]

    def conversation(self) -> tuple[Message, ...]:
        return tuple(m.to_message() for m in self.messages)


CHAT_REQUEST_SCHEMA: Schema[ChatRequest] = Schema(ChatRequest, name="Invalid request body")
