"""Server-Sent Events framing with orjson.

Each event is one ``data: <json>\\n\\n`` frame. orjson escapes quotes and
control characters (including newlines), so chunk text can never break a
frame boundary.

Usage:
    >>> from toolstream.io.streaming import encode_event, decode_frames
    >>> frame = encode_event(stream_chunk('say "hi"\\n'))
    >>> decode_frames(frame)
    [StreamEvent(kind=<StreamEventKind.CHUNK: 'chunk'>, content='say "hi"\\n', message=None)]
"""

from __future__ import annotations

import orjson

from .events import StreamEvent

CONTENT_TYPE = "text/event-stream"
FRAME_PREFIX = b"data: "
FRAME_END = b"\n\n"

SSE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class SSECodec:
    """Encode/decode stream events as SSE ``data:`` frames."""

    __slots__ = ()
    name = "sse"
    content_type = CONTENT_TYPE

    def encode(self, event: StreamEvent) -> bytes:
        return FRAME_PREFIX + orjson.dumps(event.to_dict()) + FRAME_END

    def decode(self, body: bytes | str) -> list[StreamEvent]:
        """Split a response body into events. Non-``data:`` lines are ignored."""
        raw = body.encode() if isinstance(body, str) else body
        events: list[StreamEvent] = []
        for frame in raw.split(FRAME_END):
            for line in frame.splitlines():
                if line.startswith(FRAME_PREFIX):
                    events.append(StreamEvent.from_dict(orjson.loads(line[len(FRAME_PREFIX):])))
        return events


_sse = SSECodec()


def encode_event(event: StreamEvent) -> bytes:
    """Encode one event as an SSE frame."""
    return _sse.encode(event)


def decode_frames(body: bytes | str) -> list[StreamEvent]:
    """Decode a full SSE body into events."""
    return _sse.decode(body)


