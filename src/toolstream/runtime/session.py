"""Request session: per-request state tying validation, the loop and the stream.

``RECEIVED -> VALIDATED -> STREAMING -> {COMPLETED, FAILED}``

Validation failures keep the session pre-stream so the transport can still
answer with a 400. Once ``stream()`` has produced its first frame, every
failure can only surface as a terminal ``error`` event.

Example:
    >>> session = RequestSession(agent)
    >>> result = session.receive(b'{"messages": [{"role": "user", "content": "hi"}]}')
    >>> if result.is_ok():
    ...     async for frame in session.stream():
    ...         await send(frame)
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterator, Mapping
from contextlib import aclosing
from enum import StrEnum
from typing import TYPE_CHECKING

from toolstream.foundation.core import CHAT_REQUEST_SCHEMA, ChatRequest, Message
from toolstream.foundation.errors import InternalError, Result, StreamStateError, ToolstreamError, ValidationError
from toolstream.io.streaming import StreamEmitter, StreamEvent
from toolstream.runtime.loop import LoopFailed, LoopFinished, LoopOutput, LoopText
from toolstream.runtime.observability import get_logger, log_context

if TYPE_CHECKING:
    from toolstream.runtime.agent import Agent

log = get_logger("toolstream.session")

INTERNAL_ERROR_MESSAGE = "Internal server error"


class SessionState(StrEnum):
    RECEIVED = "received"
    VALIDATED = "validated"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.FAILED)


class RequestSession:
    """State machine for one chat request.

    Args:
        agent: Shared, read-only agent definition
        request_id: Correlation id bound into every log entry
    """

    __slots__ = ("agent", "request_id", "emitter", "_state", "_conversation", "_error")

    def __init__(self, agent: Agent, *, request_id: str | None = None) -> None:
        self.agent = agent
        self.request_id = request_id or uuid.uuid4().hex[:12]
        self.emitter = StreamEmitter()
        self._state = SessionState.RECEIVED
        self._conversation: tuple[Message, ...] = ()
        self._error: ToolstreamError | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def conversation(self) -> tuple[Message, ...]:
        return self._conversation

    @property
    def error(self) -> ToolstreamError | None:
        """Failure cause once the session is FAILED (None on disconnect)."""
        return self._error

    @property
    def events(self) -> tuple[StreamEvent, ...]:
        return self.emitter.history

    def receive(self, body: bytes | str | Mapping[str, object]) -> Result[ChatRequest, ValidationError]:
        """Validate the inbound body. On failure the session stays RECEIVED."""
        if self._state is not SessionState.RECEIVED:
            raise StreamStateError.create(f"Cannot receive in state {self._state}")
        if isinstance(body, (bytes, str)):
            result = CHAT_REQUEST_SCHEMA.validate_json(body)
        else:
            result = CHAT_REQUEST_SCHEMA.validate(body)

        with log_context(request_id=self.request_id):
            if result.is_err():
                log.info("request rejected", reason=result.unwrap_err().message)
                return result
            request = result.unwrap()
            self._conversation = request.conversation()
            self._state = SessionState.VALIDATED
            log.info("request received", messages=len(self._conversation))
        return result

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield SSE frames: ``connected``, chunks, then one ``done``/``error``.

        Client disconnect surfaces here as ``CancelledError`` (or
        ``GeneratorExit`` when the consumer closes the generator); the session
        records FAILED and re-raises so in-flight model and tool awaits are
        abandoned.
        """
        if self._state is not SessionState.VALIDATED:
            raise StreamStateError.create(f"Cannot stream in state {self._state}")

        slog = log.bind(request_id=self.request_id, agent=self.agent.name)
        self._state = SessionState.STREAMING
        try:
            yield self._frame(self.emitter.open())
            slog.info("stream opened")
            async with aclosing(self.agent.loop().run(self._conversation)) as outputs:
                while (out := await self._advance(outputs)) is not None:
                    if isinstance(out, LoopText):
                        yield self._frame(self.emitter.chunk(out.text))
                    elif isinstance(out, LoopFinished):
                        self._state = SessionState.COMPLETED
                        yield self._frame(self.emitter.complete())
                    elif isinstance(out, LoopFailed):
                        yield self._fail(out.error)
        except (asyncio.CancelledError, GeneratorExit):
            self._state = SessionState.FAILED
            slog.warning("client disconnected", events=len(self.emitter.history))
            raise
        except ToolstreamError as e:
            slog.error("stream failed", error=e.message, code=e.code)
            yield self._fail(e)
        except Exception as e:
            slog.exception("unhandled error during stream")
            self._state = SessionState.FAILED
            self._error = InternalError.from_exception(e)
            yield self._frame(self.emitter.fail(INTERNAL_ERROR_MESSAGE))

        if not self.emitter.is_closed:
            self._state = SessionState.FAILED
            yield self._frame(self.emitter.fail(INTERNAL_ERROR_MESSAGE))
        slog.info("stream closed", state=self._state, events=len(self.emitter.history))

    async def _advance(self, outputs: AsyncIterator[LoopOutput]) -> LoopOutput | None:
        """Next loop output, with request context scoped to this step only.

        The scope never spans a ``yield`` of ``stream()``, so the generator
        can be resumed or closed from any task.
        """
        with log_context(request_id=self.request_id, agent=self.agent.name):
            return await anext(outputs, None)

    def _fail(self, error: ToolstreamError) -> bytes:
        self._state = SessionState.FAILED
        self._error = error
        return self._frame(self.emitter.fail(error.info.render()))

    @staticmethod
    def _frame(frame: bytes | None) -> bytes:
        return frame or b""
