"""Model boundary: events, the invoker protocol, and the OpenAI implementation."""

from .events import Finished, ModelEvent, ModelInvoker, TextDelta, ToolCallRequested
from .formats import message_to_openai, messages_to_openai, to_openai, tool_to_openai
from .provider import OpenAIInvoker, ToolCallAccumulator

__all__ = [
    "ModelEvent", "TextDelta", "ToolCallRequested", "Finished", "ModelInvoker",
    "OpenAIInvoker", "ToolCallAccumulator",
    "tool_to_openai", "to_openai", "message_to_openai", "messages_to_openai",
]
