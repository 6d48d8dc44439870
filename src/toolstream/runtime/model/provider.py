"""OpenAI-backed model invoker (streaming chat completions with tools)."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import openai
from openai import AsyncOpenAI

from toolstream.foundation.core import Message, ToolCallRequest
from toolstream.foundation.errors import ErrorCode, ModelError
from toolstream.runtime.observability import get_logger

from .events import Finished, ModelEvent, TextDelta, ToolCallRequested
from .formats import messages_to_openai, to_openai

if TYPE_CHECKING:
    from toolstream.foundation.config import ModelSettings
    from toolstream.foundation.registry import ToolDescriptor

log = get_logger("toolstream.model")


@dataclass(slots=True)
class _PendingCall:
    call_id: str = ""
    name: str = ""
    arguments: list[str] = field(default_factory=list)

    def to_request(self) -> ToolCallRequest:
        return ToolCallRequest(tool_id=self.name, raw_arguments="".join(self.arguments) or "{}", call_id=self.call_id)


class ToolCallAccumulator:
    """Reassembles tool calls streamed as fragments keyed by ``index``."""

    __slots__ = ("_calls",)

    def __init__(self) -> None:
        self._calls: dict[int, _PendingCall] = {}

    def add(self, fragment: Any) -> None:
        call = self._calls.setdefault(getattr(fragment, "index", 0) or 0, _PendingCall())
        if fragment.id:
            call.call_id = fragment.id
        if (fn := fragment.function) is not None:
            if fn.name:
                call.name += fn.name
            if fn.arguments:
                call.arguments.append(fn.arguments)

    def first(self) -> ToolCallRequest | None:
        """Earliest complete call; later ones are dropped (one tool per round)."""
        for index in sorted(self._calls):
            if self._calls[index].name:
                return self._calls[index].to_request()
        return None

    def __len__(self) -> int:
        return len(self._calls)


class OpenAIInvoker:
    """Streams a chat completion and translates it into ``ModelEvent``s.

    Text deltas are yielded as they arrive. Tool-call fragments are
    accumulated until the provider stream ends; then either one
    ``ToolCallRequested`` or ``Finished`` is yielded.

    Args:
        model: Model identifier (e.g. ``gpt-4o-mini``)
        instructions: System prompt prepended to every call
        api_key: Provider key; the client is created lazily on first call
        base_url: Optional OpenAI-compatible endpoint
        temperature: Sampling temperature
        client: Pre-built ``AsyncOpenAI`` (or compatible fake)
    """

    __slots__ = ("model", "instructions", "temperature", "_api_key", "_base_url", "_client")

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        *,
        instructions: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.2,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self.instructions = instructions
        self.temperature = temperature
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    @classmethod
    def from_settings(cls, settings: ModelSettings, *, instructions: str | None = None) -> OpenAIInvoker:
        return cls(
            settings.name,
            instructions=instructions,
            api_key=settings.api_key.get_secret_value() if settings.api_key else None,
            base_url=settings.base_url,
            temperature=settings.temperature,
        )

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise ModelError.create("Model API key is not configured (set OPENAI_API_KEY)")
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    async def invoke(
        self,
        conversation: Sequence[Message],
        tools: Sequence[ToolDescriptor],
    ) -> AsyncGenerator[ModelEvent, None]:
        client = self._get_client()
        request: dict[str, Any] = {
            "model": self.model,
            "messages": messages_to_openai(conversation, self.instructions),
            "temperature": self.temperature,
            "stream": True,
        }
        if tools:
            request["tools"] = to_openai(tools)
            request["parallel_tool_calls"] = False
        log.debug("model invoked", model=self.model, messages=len(conversation), tools=len(tools))

        try:
            stream = await client.chat.completions.create(**request)
        except openai.OpenAIError as e:
            raise _model_error(e) from e

        calls = ToolCallAccumulator()
        finish_reason: str | None = None
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta
                if delta is not None:
                    if delta.content:
                        yield TextDelta(delta.content)
                    for fragment in delta.tool_calls or ():
                        calls.add(fragment)
                finish_reason = choice.finish_reason or finish_reason
        except openai.OpenAIError as e:
            raise _model_error(e) from e
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                await close()

        if (call := calls.first()) is not None:
            if len(calls) > 1:
                log.warning("extra tool calls dropped", requested=len(calls), dispatched=call.tool_id)
            yield ToolCallRequested(call)
        else:
            yield Finished(finish_reason)


def _model_error(exc: openai.OpenAIError) -> ModelError:
    if isinstance(exc, openai.APITimeoutError):
        code = ErrorCode.TIMEOUT
    elif isinstance(exc, openai.RateLimitError):
        code = ErrorCode.RATE_LIMITED
    elif isinstance(exc, openai.APIConnectionError):
        code = ErrorCode.NETWORK_ERROR
    elif isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        code = ErrorCode.PERMISSION_DENIED
    else:
        code = ErrorCode.MODEL_ERROR
    return ModelError.create(f"Model call failed: {exc}", code, recoverable=code is not ErrorCode.PERMISSION_DENIED)
