"""OpenAI chat-completions formats for tools and conversations.

Example:
    >>> from toolstream.runtime.model import to_openai, messages_to_openai
    >>> response = await client.chat.completions.create(
    ...     model="gpt-4o-mini",
    ...     messages=messages_to_openai(conversation, instructions),
    ...     tools=to_openai(registry.descriptors()),
    ... )
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from toolstream.foundation.core import Message
    from toolstream.foundation.registry import ToolDescriptor

OpenAITool = dict[str, Any]
OpenAIMessage = dict[str, Any]


def _clean_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Drop pydantic metadata providers do not need."""
    properties = {
        name: {k: v for k, v in prop.items() if k != "title"}
        for name, prop in schema.get("properties", {}).items()
    }
    cleaned: dict[str, Any] = {"type": "object", "properties": properties, "required": schema.get("required", [])}
    if schema.get("additionalProperties") is False:
        cleaned["additionalProperties"] = False
    return cleaned


def tool_to_openai(descriptor: ToolDescriptor) -> OpenAITool:
    """Convert a descriptor to OpenAI function calling format.

    ```json
    {"type": "function",
     "function": {"name": "fetch_comments", "description": "...",
                  "parameters": {"type": "object", "properties": {...}, "required": []}}}
    ```
    """
    return {
        "type": "function",
        "function": {
            "name": descriptor.id,
            "description": descriptor.description,
            "parameters": _clean_schema(descriptor.input_schema.json_schema()),
        },
    }


def to_openai(descriptors: Iterable[ToolDescriptor]) -> list[OpenAITool]:
    return [tool_to_openai(d) for d in descriptors]


def message_to_openai(message: Message) -> OpenAIMessage:
    if message.role == "tool":
        return {"role": "tool", "tool_call_id": message.tool_call_id or "", "content": message.content}
    if message.tool_calls:
        return {
            "role": "assistant",
            "content": message.content or None,
            "tool_calls": [
                {
                    "id": call.call_id or call.tool_id,
                    "type": "function",
                    "function": {"name": call.tool_id, "arguments": call.arguments_text()},
                }
                for call in message.tool_calls
            ],
        }
    return {"role": message.role, "content": message.content}


def messages_to_openai(conversation: Sequence[Message], instructions: str | None = None) -> list[OpenAIMessage]:
    """Conversation as chat-completions messages, instructions first as a system turn."""
    head = [{"role": "system", "content": instructions}] if instructions else []
    return head + [message_to_openai(m) for m in conversation]
