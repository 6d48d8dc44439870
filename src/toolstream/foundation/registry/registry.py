"""Central registry for tool lookup and validated dispatch.

The registry provides:
- Tool registration and lookup by id (frozen after startup)
- Validated dispatch: input schema, bounded execution, output schema
- Client-side result limiting (first N entries, order preserved)
- Descriptor listing for model tool specs and prompt text
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import orjson

from toolstream.foundation.core import Schema
from toolstream.foundation.errors import (
    DuplicateToolError,
    ErrorCode,
    RegistryFrozenError,
    ToolArgumentError,
    ToolError,
    ToolExecutionError,
    ToolOutputError,
    UnknownToolError,
)
from toolstream.runtime.observability import get_logger

log = get_logger("toolstream.registry")

Executor = Callable[[Any], Awaitable[object]]


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """Immutable record describing one callable tool.

    Attributes:
        id: Unique registry key, also the function name shown to the model
        description: What the tool does, for model tool selection
        input_schema: Shape the model's arguments must match
        output_schema: Shape the executor's result must match
        executor: Async callable receiving the validated input
        limit_param: Input field holding a client-side result limit, if any
    """

    id: str
    description: str
    input_schema: Schema[Any]
    output_schema: Schema[Any]
    executor: Executor
    limit_param: str | None = None

    def encode(self, value: object) -> str:
        """Serialize a validated result as JSON text for the conversation."""
        return orjson.dumps(self.output_schema.dump(value)).decode()


class ToolRegistry:
    """Keyed collection of tool descriptors.

    Registration happens once at startup; ``freeze()`` then makes the
    registry read-only so it can be shared by every request.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(build_fetch_comments(url))
        >>> registry.freeze()
        >>> rows = await registry.invoke("fetch_comments", '{"postId": 1, "limit": 2}')
    """

    __slots__ = ("_tools", "_frozen")

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        self._frozen = False

    def register(self, descriptor: ToolDescriptor) -> None:
        """Add a descriptor. Ids must be unique; fails once frozen."""
        if self._frozen:
            raise RegistryFrozenError.create(f"Registry is frozen; cannot register '{descriptor.id}'")
        if descriptor.id in self._tools:
            raise DuplicateToolError.create(f"Tool '{descriptor.id}' already registered", tool_name=descriptor.id)
        self._tools[descriptor.id] = descriptor

    def freeze(self) -> ToolRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, tool_id: str) -> ToolDescriptor:
        """Get descriptor by id, raises UnknownToolError if absent."""
        try:
            return self._tools[tool_id]
        except KeyError:
            available = ", ".join(sorted(self._tools)) or "none"
            raise UnknownToolError.create(
                f"Unknown tool '{tool_id}' (available: {available})", tool_name=tool_id,
            ) from None

    def descriptors(self) -> tuple[ToolDescriptor, ...]:
        return tuple(self._tools.values())

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    # ─────────────────────────────────────────────────────────────────
    # Dispatch
    # ─────────────────────────────────────────────────────────────────

    async def invoke(
        self,
        tool_id: str,
        raw_arguments: str | bytes | Mapping[str, object],
        *,
        limit: int | None = None,
        timeout: float | None = None,
    ) -> object:
        """Validate, execute, and check one tool call.

        Steps, each failing with its own ToolError subclass:
            1. lookup (UnknownToolError)
            2. input validation (ToolArgumentError; executor is not called)
            3. bounded execution (ToolExecutionError, including timeouts)
            4. output validation (ToolOutputError)
            5. truncation to ``limit`` (explicit, else the descriptor's limit_param)

        Returns:
            The validated, possibly truncated result
        """
        descriptor = self.lookup(tool_id)
        params = self._validate_input(descriptor, raw_arguments)

        start = time.perf_counter()
        try:
            raw = await asyncio.wait_for(descriptor.executor(params), timeout)
        except TimeoutError:
            log.warning("tool timed out", tool=tool_id, timeout=timeout)
            raise ToolExecutionError.create(
                f"Tool execution timed out after {timeout}s", ErrorCode.TIMEOUT,
                tool_name=tool_id, recoverable=True,
            ) from None
        except ToolError:
            raise
        except Exception as e:
            log.warning("tool execution failed", tool=tool_id, error=str(e) or type(e).__name__)
            raise ToolExecutionError.from_exception(e, "Tool execution failed", tool_name=tool_id) from e
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        result = descriptor.output_schema.validate(raw)
        if result.is_err():
            raise ToolOutputError.create(result.unwrap_err().message, tool_name=tool_id)
        value = result.unwrap()

        if (n := limit if limit is not None else _read_limit(descriptor, params)) is not None:
            value = truncate(value, n)
        log.info("tool executed", tool=tool_id, duration_ms=duration_ms, limit=n)
        return value

    @staticmethod
    def _validate_input(descriptor: ToolDescriptor, raw: str | bytes | Mapping[str, object]) -> Any:
        if isinstance(raw, (str, bytes)):
            try:
                raw = orjson.loads(raw or b"{}")
            except orjson.JSONDecodeError as e:
                raise ToolArgumentError.create(f"Arguments are not valid JSON: {e}", tool_name=descriptor.id) from None
        if not isinstance(raw, Mapping):
            raise ToolArgumentError.create(
                f"Arguments must be a JSON object, got {type(raw).__name__}", tool_name=descriptor.id,
            )
        result = descriptor.input_schema.validate(dict(raw))
        if result.is_err():
            raise ToolArgumentError.create(result.unwrap_err().message, tool_name=descriptor.id)
        return result.unwrap()

    # ─────────────────────────────────────────────────────────────────
    # Formatting
    # ─────────────────────────────────────────────────────────────────

    def describe(self) -> str:
        """One line per tool, for prompts and startup logs."""
        return "\n".join(f"- **{d.id}**: {d.description}" for d in self._tools.values())

    def clear(self) -> None:
        self._tools.clear()
        self._frozen = False


def truncate(value: object, limit: int) -> object:
    """First ``limit`` entries of a sequence result, order preserved.

    Non-sequence results (and strings) pass through unchanged.
    """
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return value[: max(limit, 0)]
    return value


def _read_limit(descriptor: ToolDescriptor, params: object) -> int | None:
    if descriptor.limit_param is None:
        return None
    value = (params.get(descriptor.limit_param) if isinstance(params, Mapping)
             else getattr(params, descriptor.limit_param, None))
    return value if isinstance(value, int) and not isinstance(value, bool) else None


# ─────────────────────────────────────────────────────────────────────────────
# Global Registry
# ─────────────────────────────────────────────────────────────────────────────

_registry: ToolRegistry | None = None


def get_registry() -> ToolRegistry:
    """Get the global tool registry instance."""
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
    return _registry


def set_registry(registry: ToolRegistry) -> None:
    """Replace the global registry."""
    global _registry
    _registry = registry


def reset_registry() -> None:
    """Reset the global registry (useful for testing)."""
    global _registry
    if _registry is not None:
        _registry.clear()
    _registry = None
