"""Toolstream - tool-augmented streaming chat over Server-Sent Events.

A language model answers questions about comments by calling one
schema-validated tool, inside a bounded tool-calling loop, and the answer is
streamed as typed SSE events.

Quick Start:
    >>> from toolstream import build_agent, RequestSession
    >>>
    >>> agent = build_agent()               # reads TOOLSTREAM_* / OPENAI_API_KEY
    >>> session = RequestSession(agent)
    >>> session.receive({"messages": [{"role": "user", "content": "Show me comments from post 1"}]})
    >>> async for frame in session.stream():
    ...     print(frame.decode(), end="")
    data: {"type":"connected"}
    data: {"type":"chunk","content":"Post 1 has 5 comments..."}
    data: {"type":"done"}

HTTP Server:
    >>> from toolstream.ext.http import serve
    >>> serve(port=3000)   # or: python -m toolstream

Stream Protocol:
    connected → chunk* → (done | error), exactly one terminal event per request.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import (
    ErrorCode,
    ErrorInfo,
    Err,
    LoopLimitExceeded,
    ModelError,
    Ok,
    Result,
    ToolArgumentError,
    ToolError,
    ToolExecutionError,
    ToolOutputError,
    ToolstreamError,
    UnknownToolError,
    ValidationError,
)

# Core
from .foundation.core import ChatRequest, Message, Schema, ToolCallRequest, validate

# Config
from .foundation.config import ToolstreamSettings, get_settings

# Registry
from .foundation.registry import ToolDescriptor, ToolRegistry, get_registry

# Streaming
from .io.streaming import StreamEmitter, StreamEvent, StreamEventKind

# Runtime
from .runtime.model import ModelInvoker, OpenAIInvoker
from .runtime.loop import LoopFailed, LoopFinished, LoopState, LoopText, ToolCallingLoop
from .runtime.agent import Agent, build_agent, get_agent
from .runtime.session import RequestSession, SessionState

# Tools
from .tools import build_fetch_comments

__all__ = [
    "__version__",
    # Errors
    "ErrorCode", "ErrorInfo", "ToolstreamError", "ValidationError",
    "ToolError", "UnknownToolError", "ToolArgumentError", "ToolExecutionError", "ToolOutputError",
    "ModelError", "LoopLimitExceeded", "Result", "Ok", "Err",
    # Core
    "Schema", "validate", "Message", "ChatRequest", "ToolCallRequest",
    # Config
    "ToolstreamSettings", "get_settings",
    # Registry
    "ToolDescriptor", "ToolRegistry", "get_registry",
    # Streaming
    "StreamEmitter", "StreamEvent", "StreamEventKind",
    # Runtime
    "ModelInvoker", "OpenAIInvoker", "ToolCallingLoop", "LoopState", "LoopText", "LoopFinished", "LoopFailed",
    "Agent", "build_agent", "get_agent", "RequestSession", "SessionState",
    # Tools
    "build_fetch_comments",
]
