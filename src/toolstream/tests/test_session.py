"""Tests for RequestSession: validation gate, event ordering and disconnects."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Callable, Sequence

import orjson
import pytest

from toolstream.foundation.core import Message
from toolstream.foundation.errors import InternalError, ModelError, StreamStateError
from toolstream.foundation.registry import ToolDescriptor
from toolstream.foundation.testing import (
    AlwaysToolInvoker,
    RecordsServer,
    ScriptedInvoker,
    answer,
    assert_well_formed,
    chunk_text,
    tool_call,
)
from toolstream.io.streaming import StreamEventKind, decode_frames
from toolstream.runtime.agent import Agent
from toolstream.runtime.model import ModelEvent, TextDelta
from toolstream.runtime.observability import CaptureRenderer, current_context
from toolstream.runtime.session import INTERNAL_ERROR_MESSAGE, RequestSession, SessionState
from toolstream.tools import FETCH_COMMENTS

BODY = {"messages": [{"role": "user", "content": "How many comments does post 1 have?"}]}


async def drain(session: RequestSession) -> bytes:
    return b"".join([frame async for frame in session.stream()])


class HangingInvoker:
    """Emits one delta, then waits forever."""

    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def invoke(self, conversation: Sequence[Message], tools: Sequence[ToolDescriptor]) -> AsyncGenerator[ModelEvent, None]:
        yield TextDelta("thinking")
        self.started.set()
        await asyncio.Event().wait()


class BrokenInvoker:
    """Raises an unexpected exception type mid-stream."""

    async def invoke(self, conversation: Sequence[Message], tools: Sequence[ToolDescriptor]) -> AsyncGenerator[ModelEvent, None]:
        yield TextDelta("partial")
        raise RuntimeError("driver bug")


# ─────────────────────────────────────────────────────────────────────────────
# Validation Gate
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "body",
    [
        b"{not json",
        b'{"messages": []}',
        b'{"messages": [{"role": "bogus", "content": "x"}]}',
        b'{"messages": [{"role": "user", "content": ""}]}',
        b'{"messages": [{"role": "user"}]}',
        b'{"messages": [{"role": "tool", "content": "x"}]}',
        b"[]",
    ],
)
def test_invalid_body_rejected_before_stream(make_agent: Callable[..., Agent], body: bytes) -> None:
    model = ScriptedInvoker([answer("never")])
    session = RequestSession(make_agent(model))

    result = session.receive(body)

    assert result.is_err()
    assert result.unwrap_err().message.startswith("Invalid request body: ")
    assert session.state is SessionState.RECEIVED
    assert session.events == ()
    assert model.call_count == 0


def test_receive_accepts_mapping_and_text(make_agent: Callable[..., Agent]) -> None:
    agent = make_agent(ScriptedInvoker([answer("ok")]))

    mapping = RequestSession(agent)
    assert mapping.receive(BODY).is_ok()
    assert mapping.state is SessionState.VALIDATED
    assert mapping.conversation == (Message(role="user", content=BODY["messages"][0]["content"]),)

    text = RequestSession(agent)
    assert text.receive(orjson.dumps(BODY).decode()).is_ok()


def test_receive_twice_raises(make_agent: Callable[..., Agent]) -> None:
    session = RequestSession(make_agent(ScriptedInvoker([answer("ok")])))
    session.receive(BODY)
    with pytest.raises(StreamStateError):
        session.receive(BODY)


@pytest.mark.asyncio
async def test_stream_before_receive_raises(make_agent: Callable[..., Agent]) -> None:
    session = RequestSession(make_agent(ScriptedInvoker([answer("ok")])))
    with pytest.raises(StreamStateError):
        await drain(session)


# ─────────────────────────────────────────────────────────────────────────────
# Event Ordering
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_full_flow_is_well_formed(records: RecordsServer, make_agent: Callable[..., Agent]) -> None:
    model = ScriptedInvoker([
        [tool_call(FETCH_COMMENTS, {"postId": 1})],
        answer("Post 1 has ", "5 comments."),
    ])
    session = RequestSession(make_agent(model))
    session.receive(BODY)

    body = await drain(session)
    events = decode_frames(body)

    assert_well_formed(events)
    assert events[-1].kind is StreamEventKind.DONE
    assert chunk_text(events) == "Post 1 has 5 comments."
    assert events == list(session.events)
    assert session.state is SessionState.COMPLETED
    assert records.last_params == {"postId": "1"}


@pytest.mark.asyncio
async def test_remote_failure_after_partial_text(records: RecordsServer, make_agent: Callable[..., Agent]) -> None:
    records.status_code = 500
    model = ScriptedInvoker([[TextDelta("Let me check."), tool_call(FETCH_COMMENTS, {"postId": 1})]])
    session = RequestSession(make_agent(model))
    session.receive(BODY)

    events = decode_frames(await drain(session))

    assert [e.kind for e in events] == [StreamEventKind.CONNECTED, StreamEventKind.CHUNK, StreamEventKind.ERROR]
    assert events[1].content == "Let me check."
    assert "Failed to fetch comments: 500" in (events[2].message or "")
    assert session.state is SessionState.FAILED
    assert session.error is not None


@pytest.mark.asyncio
async def test_loop_limit_reported_as_error(make_agent: Callable[..., Agent]) -> None:
    session = RequestSession(make_agent(AlwaysToolInvoker(FETCH_COMMENTS), max_iterations=2))
    session.receive(BODY)

    events = decode_frames(await drain(session))

    assert_well_formed(events)
    assert events[-1].kind is StreamEventKind.ERROR
    assert "Tool-calling limit reached after 2 rounds" in (events[-1].message or "")


@pytest.mark.asyncio
async def test_model_error_reported(make_agent: Callable[..., Agent]) -> None:
    session = RequestSession(make_agent(ScriptedInvoker([ModelError.create("Model request failed: boom")])))
    session.receive(BODY)

    events = decode_frames(await drain(session))

    assert [e.kind for e in events] == [StreamEventKind.CONNECTED, StreamEventKind.ERROR]
    assert events[-1].message == "Model request failed: boom"


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_generic_error(
    make_agent: Callable[..., Agent], captured_logs: CaptureRenderer,
) -> None:
    session = RequestSession(make_agent(BrokenInvoker()))
    session.receive(BODY)

    events = decode_frames(await drain(session))

    assert_well_formed(events)
    assert events[-1].message == INTERNAL_ERROR_MESSAGE
    assert session.state is SessionState.FAILED
    assert isinstance(session.error, InternalError)
    assert "driver bug" in session.error.message
    failure = next(e for e in captured_logs.entries if e.event == "unhandled error during stream")
    assert "driver bug" in str(failure.context["exc_info"])


# ─────────────────────────────────────────────────────────────────────────────
# Disconnects & Logging
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_cancellation_marks_session_failed(make_agent: Callable[..., Agent]) -> None:
    model = HangingInvoker()
    session = RequestSession(make_agent(model))
    session.receive(BODY)
    frames: list[bytes] = []

    async def consume() -> None:
        async for frame in session.stream():
            frames.append(frame)

    task = asyncio.create_task(consume())
    await asyncio.wait_for(model.started.wait(), timeout=2.0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert session.state is SessionState.FAILED
    assert [e.kind for e in decode_frames(b"".join(frames))] == [StreamEventKind.CONNECTED, StreamEventKind.CHUNK]
    assert not session.emitter.is_closed


@pytest.mark.asyncio
async def test_consumer_closing_early_marks_session_failed(make_agent: Callable[..., Agent]) -> None:
    session = RequestSession(make_agent(ScriptedInvoker([answer("a", "b", "c")])))
    session.receive(BODY)

    stream = session.stream()
    first = await anext(stream)
    await stream.aclose()

    assert decode_frames(first)[0].kind is StreamEventKind.CONNECTED
    assert session.state is SessionState.FAILED


@pytest.mark.asyncio
async def test_request_id_bound_to_log_entries(
    make_agent: Callable[..., Agent], captured_logs: CaptureRenderer,
) -> None:
    session = RequestSession(make_agent(ScriptedInvoker([answer("hi")])), request_id="req-42")
    session.receive(BODY)
    await drain(session)

    scoped = [e for e in captured_logs.entries if e.context.get("request_id") == "req-42"]
    events = {e.event for e in scoped}
    assert {"request received", "stream opened", "loop finished", "stream closed"} <= events
    assert all(e.context.get("agent") == session.agent.name for e in scoped if e.event == "stream closed")


@pytest.mark.asyncio
async def test_stream_resumed_and_closed_from_other_tasks(make_agent: Callable[..., Agent]) -> None:
    session = RequestSession(make_agent(ScriptedInvoker([answer("a", "b", "c")])))
    session.receive(BODY)
    stream = session.stream()

    async def step() -> bytes:
        return await anext(stream)

    async def close() -> None:
        await stream.aclose()

    first = await asyncio.create_task(step())
    second = await asyncio.create_task(step())
    await asyncio.create_task(close())

    kinds = [e.kind for e in decode_frames(first + second)]
    assert kinds == [StreamEventKind.CONNECTED, StreamEventKind.CHUNK]
    assert session.state is SessionState.FAILED
    assert current_context() == {}
