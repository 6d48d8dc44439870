"""Stream emitter: the framing state machine for one response.

``PENDING -> OPEN -> CLOSED``. ``open()`` must come first; exactly one of
``complete()``/``fail()`` closes the stream. The emitter only produces
frames; writing them to the transport is the caller's job.
"""

from __future__ import annotations

from toolstream.foundation.errors import StreamStateError
from toolstream.runtime.observability import get_logger

from .codec import encode_event
from .events import CONNECTED, DONE, StreamEvent, StreamState, stream_chunk, stream_error

log = get_logger("toolstream.stream")


class StreamEmitter:
    """Serializes loop progress into ordered SSE frames.

    Calls before ``open()`` raise ``StreamStateError``. Calls after the
    stream closed are ignored and return ``None``.

    Example:
        >>> emitter = StreamEmitter()
        >>> emitter.open()
        b'data: {"type":"connected"}\\n\\n'
        >>> emitter.chunk("Hello")
        b'data: {"type":"chunk","content":"Hello"}\\n\\n'
        >>> emitter.complete()
        b'data: {"type":"done"}\\n\\n'
        >>> emitter.chunk("late") is None
        True
    """

    __slots__ = ("_state", "_history")

    def __init__(self) -> None:
        self._state = StreamState.PENDING
        self._history: list[StreamEvent] = []

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is StreamState.OPEN

    @property
    def is_closed(self) -> bool:
        return self._state is StreamState.CLOSED

    @property
    def history(self) -> tuple[StreamEvent, ...]:
        """Events emitted so far, in order."""
        return tuple(self._history)

    def open(self) -> bytes | None:
        if self._state is StreamState.OPEN:
            raise StreamStateError.create("Stream already open")
        if self._state is StreamState.CLOSED:
            return self._ignored("open")
        self._state = StreamState.OPEN
        return self._emit(CONNECTED)

    def chunk(self, text: str) -> bytes | None:
        if not self._check("chunk"):
            return None
        return self._emit(stream_chunk(text))

    def complete(self) -> bytes | None:
        if not self._check("complete"):
            return None
        self._state = StreamState.CLOSED
        return self._emit(DONE)

    def fail(self, message: str) -> bytes | None:
        if not self._check("fail"):
            return None
        self._state = StreamState.CLOSED
        return self._emit(stream_error(message))

    def _check(self, op: str) -> bool:
        if self._state is StreamState.PENDING:
            raise StreamStateError.create(f"Cannot {op} before open()")
        if self._state is StreamState.CLOSED:
            self._ignored(op)
            return False
        return True

    def _ignored(self, op: str) -> None:
        log.debug("emit after close ignored", op=op)
        return None

    def _emit(self, event: StreamEvent) -> bytes:
        self._history.append(event)
        return encode_event(event)
