"""Model boundary: the events a model call yields and the invoker protocol."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from toolstream.foundation.core import Message, ToolCallRequest

if TYPE_CHECKING:
    from toolstream.foundation.registry import ToolDescriptor


@dataclass(slots=True, frozen=True)
class TextDelta:
    """Incremental answer text."""
    text: str


@dataclass(slots=True, frozen=True)
class ToolCallRequested:
    """The model asked for a tool; the caller stops consuming this call."""
    request: ToolCallRequest


@dataclass(slots=True, frozen=True)
class Finished:
    """The model produced its final answer."""
    reason: str | None = None


ModelEvent = TextDelta | ToolCallRequested | Finished


@runtime_checkable
class ModelInvoker(Protocol):
    """Abstraction over one language-model call.

    ``invoke`` returns a finite, lazy sequence of ``ModelEvent``. Each call
    starts a fresh generation; a partially consumed sequence cannot be
    resumed, only closed (``aclose``). Failures of the underlying call raise
    ``ModelError`` and end the sequence.
    """

    def invoke(
        self,
        conversation: Sequence[Message],
        tools: Sequence[ToolDescriptor],
    ) -> AsyncGenerator[ModelEvent, None]: ...
