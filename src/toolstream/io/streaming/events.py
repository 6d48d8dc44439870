"""Typed events for the chat stream protocol.

Wire shapes (one JSON object per SSE ``data:`` line):
    {"type": "connected"}
    {"type": "chunk", "content": "..."}
    {"type": "done"}
    {"type": "error", "message": "..."}
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class StreamEventKind(StrEnum):
    """Types of streaming events."""
    CONNECTED = "connected"  # Stream opened, before any model work
    CHUNK = "chunk"          # Incremental answer text
    DONE = "done"            # Terminal: answer complete
    ERROR = "error"          # Terminal: request failed

    @property
    def is_terminal(self) -> bool:
        return self in (StreamEventKind.DONE, StreamEventKind.ERROR)


class StreamState(StrEnum):
    """Emitter lifecycle states."""
    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(slots=True, frozen=True)
class StreamEvent:
    """One unit of the outbound event protocol.

    Attributes:
        kind: Event type
        content: Text for ``chunk`` events
        message: Reason for ``error`` events
    """
    kind: StreamEventKind
    content: str | None = None
    message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind.is_terminal

    def to_dict(self) -> dict[str, str]:
        """Serialize for JSON transport."""
        data = {"type": str(self.kind)}
        if self.kind is StreamEventKind.CHUNK:
            data["content"] = self.content or ""
        elif self.kind is StreamEventKind.ERROR:
            data["message"] = self.message or "Unknown error"
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> StreamEvent:
        """Inverse of ``to_dict``, used by clients and tests reading frames."""
        kind = StreamEventKind(str(data["type"]))
        content, message = data.get("content"), data.get("message")
        return cls(
            kind=kind,
            content=content if isinstance(content, str) else None,
            message=message if isinstance(message, str) else None,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Factory Functions
# ─────────────────────────────────────────────────────────────────────────────

CONNECTED = StreamEvent(StreamEventKind.CONNECTED)
DONE = StreamEvent(StreamEventKind.DONE)


def stream_chunk(text: str) -> StreamEvent:
    return StreamEvent(StreamEventKind.CHUNK, content=text)


def stream_error(message: str) -> StreamEvent:
    return StreamEvent(StreamEventKind.ERROR, message=message)
