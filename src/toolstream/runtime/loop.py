"""Tool-calling loop: bounded model -> tool -> model iteration.

``RUNNING -> {RUNNING, FINISHED, FAILED}``. Each round invokes the model
with the full conversation; a tool request ends the round, the validated
result is appended to the conversation, and the next round starts. At most
``max_iterations`` tools run per request: a tool request arriving after the
last allowed round fails the run, so a model that always asks for another
tool still terminates.

Example:
    >>> loop = ToolCallingLoop(registry, model, max_iterations=5)
    >>> async for out in loop.run(conversation):
    ...     match out:
    ...         case LoopText(text): print(text, end="")
    ...         case LoopFinished(state): print(f"\\n{state.iteration} tool rounds")
    ...         case LoopFailed(state): print(state.error)
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator, Sequence
from contextlib import aclosing
from dataclasses import dataclass, replace
from enum import StrEnum

from toolstream.foundation.core import Message, ToolCallRequest
from toolstream.foundation.errors import LoopLimitExceeded, ModelError, ToolError, ToolstreamError
from toolstream.foundation.registry import ToolRegistry
from toolstream.runtime.model import Finished, ModelInvoker, TextDelta, ToolCallRequested
from toolstream.runtime.observability import get_logger

log = get_logger("toolstream.loop")


class LoopStatus(StrEnum):
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class LoopState:
    """Snapshot of one loop run.

    Attributes:
        conversation: Messages so far; only ever extended by appending
        iteration: Completed tool rounds
        status: Current lifecycle state
        error: Failure cause when ``status`` is FAILED
    """
    conversation: tuple[Message, ...]
    iteration: int = 0
    status: LoopStatus = LoopStatus.RUNNING
    error: ToolstreamError | None = None

    def advance(self, *messages: Message) -> LoopState:
        """Append a completed tool round and count it."""
        return replace(self, conversation=self.conversation + messages, iteration=self.iteration + 1)

    def finish(self) -> LoopState:
        return replace(self, status=LoopStatus.FINISHED)

    def fail(self, error: ToolstreamError) -> LoopState:
        return replace(self, status=LoopStatus.FAILED, error=error)


# ─────────────────────────────────────────────────────────────────────────────
# Loop Outputs
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(slots=True, frozen=True)
class LoopText:
    """Answer text to forward as a ``chunk``."""
    text: str


@dataclass(slots=True, frozen=True)
class LoopFinished:
    state: LoopState


@dataclass(slots=True, frozen=True)
class LoopFailed:
    state: LoopState

    @property
    def error(self) -> ToolstreamError:
        assert self.state.error is not None
        return self.state.error


LoopOutput = LoopText | LoopFinished | LoopFailed


# ─────────────────────────────────────────────────────────────────────────────
# Loop
# ─────────────────────────────────────────────────────────────────────────────

class ToolCallingLoop:
    """Drives a model through tool rounds until it answers or hits the ceiling.

    Args:
        registry: Read-only tool registry; every descriptor is offered to the model
        model: Model invoker
        max_iterations: Maximum tool rounds per run
        tool_timeout: Bounded wait for each tool execution, in seconds
    """

    __slots__ = ("registry", "model", "max_iterations", "tool_timeout")

    def __init__(
        self,
        registry: ToolRegistry,
        model: ModelInvoker,
        *,
        max_iterations: int = 5,
        tool_timeout: float | None = None,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self.registry = registry
        self.model = model
        self.max_iterations = max_iterations
        self.tool_timeout = tool_timeout

    async def run(self, conversation: Sequence[Message]) -> AsyncGenerator[LoopOutput, None]:
        """Yield ``LoopText`` items, then exactly one ``LoopFinished``/``LoopFailed``."""
        state = LoopState(conversation=tuple(conversation))
        tools = self.registry.descriptors()

        while True:
            request: ToolCallRequest | None = None
            text: list[str] = []
            log.debug("model round started", iteration=state.iteration, messages=len(state.conversation))
            try:
                async with aclosing(self.model.invoke(state.conversation, tools)) as events:
                    async for event in events:
                        if isinstance(event, TextDelta):
                            text.append(event.text)
                            yield LoopText(event.text)
                        elif isinstance(event, ToolCallRequested):
                            request = event.request
                            break
                        elif isinstance(event, Finished):
                            break
            except ModelError as e:
                log.error("model call failed", iteration=state.iteration, error=e.message, code=e.code)
                yield LoopFailed(state.fail(e))
                return

            if request is None:
                log.info("loop finished", iteration=state.iteration)
                yield LoopFinished(state.finish())
                return

            if state.iteration >= self.max_iterations:
                log.warning(
                    "loop limit reached", tool=request.tool_id,
                    iteration=state.iteration, max_iterations=self.max_iterations,
                )
                yield LoopFailed(state.fail(LoopLimitExceeded.create(
                    f"Tool-calling limit reached after {state.iteration} rounds",
                )))
                return

            try:
                content = await self._dispatch(request)
            except ToolError as e:
                log.error("tool failed", tool=request.tool_id, iteration=state.iteration, error=e.message, code=e.code)
                yield LoopFailed(state.fail(e))
                return

            state = state.advance(Message.tool_request(request, "".join(text)), Message.tool_result(request, content))

    async def _dispatch(self, request: ToolCallRequest) -> str:
        start = time.perf_counter()
        value = await self.registry.invoke(request.tool_id, request.raw_arguments, timeout=self.tool_timeout)
        content = self.registry.lookup(request.tool_id).encode(value)
        log.info(
            "tool dispatched",
            tool=request.tool_id,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            size=len(content),
        )
        return content
