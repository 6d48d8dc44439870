"""Fakes for testing the loop, session and HTTP layer without a network.

Provides:
- ScriptedInvoker: replays one scripted list of ModelEvents per model call
- AlwaysToolInvoker: requests a tool on every call (loop-bound tests)
- records_transport: httpx.MockTransport serving a comments fixture
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Mapping, Sequence
from dataclasses import dataclass, field

import httpx

from toolstream.foundation.core import Message, ToolCallRequest
from toolstream.foundation.errors import ModelError
from toolstream.foundation.registry import ToolDescriptor
from toolstream.runtime.model import Finished, ModelEvent, TextDelta, ToolCallRequested

Step = Sequence[ModelEvent] | ModelError


@dataclass(slots=True)
class ModelCall:
    """Record of a single model invocation."""
    conversation: tuple[Message, ...]
    tools: tuple[str, ...]


@dataclass
class ScriptedInvoker:
    """Model fake that plays back one step per ``invoke`` call.

    A step is a sequence of events, or a ``ModelError`` to raise. When the
    script runs out, the last step repeats.

    Example:
        >>> model = ScriptedInvoker([
        ...     [tool_call("fetch_comments", {"postId": 1})],
        ...     [TextDelta("Post 1 has "), TextDelta("5 comments."), Finished()],
        ... ])
    """
    steps: list[Step]
    calls: list[ModelCall] = field(default_factory=list)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def invoke(
        self,
        conversation: Sequence[Message],
        tools: Sequence[ToolDescriptor],
    ) -> AsyncGenerator[ModelEvent, None]:
        index = min(len(self.calls), len(self.steps) - 1)
        self.calls.append(ModelCall(tuple(conversation), tuple(d.id for d in tools)))
        step = self.steps[index]
        if isinstance(step, ModelError):
            raise step
        for event in step:
            yield event


@dataclass
class AlwaysToolInvoker:
    """Model fake that requests the same tool forever."""
    tool_id: str
    arguments: Mapping[str, object] = field(default_factory=dict)
    preamble: str | None = None
    calls: int = 0

    async def invoke(
        self,
        conversation: Sequence[Message],
        tools: Sequence[ToolDescriptor],
    ) -> AsyncGenerator[ModelEvent, None]:
        self.calls += 1
        if self.preamble:
            yield TextDelta(self.preamble)
        yield tool_call(self.tool_id, self.arguments, call_id=f"call_{self.calls}")


def tool_call(tool_id: str, arguments: Mapping[str, object] | str = "{}", *, call_id: str = "call_1") -> ToolCallRequested:
    return ToolCallRequested(ToolCallRequest(tool_id=tool_id, raw_arguments=arguments, call_id=call_id))


def answer(*parts: str) -> list[ModelEvent]:
    """A final answer streamed as the given text deltas."""
    return [*(TextDelta(p) for p in parts), Finished("stop")]


# ─────────────────────────────────────────────────────────────────────────────
# Record Source
# ─────────────────────────────────────────────────────────────────────────────

SAMPLE_COMMENTS: list[dict[str, object]] = [
    {
        "postId": post_id,
        "id": (post_id - 1) * 5 + n,
        "name": f"comment {n} on post {post_id}",
        "email": f"user{n}@post{post_id}.example",
        "body": f"body of comment {n} on post {post_id}",
    }
    for post_id in (1, 2)
    for n in range(1, 6)
]


@dataclass
class RecordsServer:
    """In-memory comments endpoint with filter semantics and request recording."""
    records: list[dict[str, object]] = field(default_factory=lambda: list(SAMPLE_COMMENTS))
    status_code: int = 200
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"error": "unavailable"})
        rows = self.records
        for key, value in request.url.params.multi_items():
            rows = [r for r in rows if str(r.get(key)) == value]
        return httpx.Response(200, json=rows)

    @property
    def last_params(self) -> dict[str, str]:
        return dict(self.requests[-1].url.params) if self.requests else {}

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def records_transport(
    records: list[dict[str, object]] | None = None,
    *,
    status_code: int = 200,
    handler: Callable[[httpx.Request], httpx.Response] | None = None,
) -> httpx.MockTransport:
    """MockTransport serving ``records`` (default ``SAMPLE_COMMENTS``)."""
    if handler is not None:
        return httpx.MockTransport(handler)
    server = RecordsServer(status_code=status_code) if records is None else RecordsServer(records, status_code)
    return server.transport()
