"""Structured logging for chat requests with context propagation.

Every log line is an event name plus key/value context. Context merges in
three layers: scoped (``log_context``), bound (``logger.bind``), and
call-site keyword arguments. Human-readable console output is the default;
JSON Lines for production.

Quick Start:
    >>> from toolstream.runtime.observability import get_logger, configure_logging
    >>> configure_logging(format="console")  # or "json"
    >>> log = get_logger("toolstream.session")
    >>> with log_context(request_id="a1b2"):
    ...     log.info("stream opened", messages=3)
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

import orjson

if TYPE_CHECKING:
    from types import TracebackType

JsonValue = str | int | float | bool | None | list[object] | dict[str, object]
JsonDict = dict[str, JsonValue]

# Scoped context (persists across awaits within one task)
_log_context: ContextVar[JsonDict] = ContextVar("log_context", default={})


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class BoundLogger:
    """Structured logger with bound context.

    Immutable: ``bind()`` returns a new logger with merged context.

    Example:
        >>> log = BoundLogger(context={"logger": "toolstream.loop"})
        >>> log.bind(iteration=2).info("model invoked", tools=1)
        # => 10:30:45.120 [info] model invoked iteration=2 logger="toolstream.loop" tools=1
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None

    def bind(self, **kw: JsonValue) -> BoundLogger:
        """Create new logger with additional bound context."""
        return BoundLogger(context={**self.context, **kw}, _renderer=self._renderer, _level=self._level)

    def unbind(self, *keys: str) -> BoundLogger:
        return BoundLogger(
            context={k: v for k, v in self.context.items() if k not in keys},
            _renderer=self._renderer,
            _level=self._level,
        )

    def is_enabled_for(self, level: int) -> bool:
        return level >= (self._level if self._level is not None else _state.level)

    def _log(self, level: int, event: str, **kw: JsonValue) -> None:
        if not self.is_enabled_for(level):
            return
        entry = LogEntry(
            timestamp=time.time(),
            level=_level_name(level),
            event=event,
            context={**_log_context.get(), **self.context, **kw},
        )
        (self._renderer or _state.renderer).render(entry)

    def debug(self, event: str, **kw: JsonValue) -> None:
        self._log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: JsonValue) -> None:
        self._log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: JsonValue) -> None:
        self._log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: JsonValue) -> None:
        self._log(logging.ERROR, event, **kw)

    def exception(self, event: str, **kw: JsonValue) -> None:
        """Log at error level with the active traceback attached."""
        kw["exc_info"] = traceback.format_exc()
        self._log(logging.ERROR, event, **kw)


@dataclass(slots=True)
class LogEntry:
    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """HH:MM:SS.mmm"""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable output: ``timestamp [level] event key=value ...``.

    Colors are auto-detected from the TTY unless forced on/off.
    """

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = hasattr(self.output, "isatty") and self.output.isatty()

    def render(self, entry: LogEntry) -> None:
        c = _COLORS if self.colors else _NO_COLORS
        level_color = _LEVEL_COLORS.get(entry.level, c["dim"]) if self.colors else ""
        parts = [
            f"{c['dim']}{entry.ts_human}{c['reset']}",
            f"{level_color}[{entry.level}]{c['reset']}",
            f"{c['bold']}{entry.event}{c['reset']}",
        ]
        parts.extend(
            f"{c['cyan']}{k}{c['reset']}={_format_value(v, c)}"
            for k, v in sorted(entry.context.items()) if k != "exc_info"
        )
        print(" ".join(parts), file=self.output)
        if "exc_info" in entry.context:
            print(f"{c['red']}{entry.context['exc_info']}{c['reset']}", file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output for log aggregation."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        data = {"timestamp": entry.ts_iso, "level": entry.level, "event": entry.event, **entry.context}
        print(orjson.dumps(data, default=str).decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer for testing."""

    def render(self, entry: LogEntry) -> None:
        pass


@dataclass(slots=True)
class CaptureRenderer:
    """Keeps entries in memory so tests can assert on emitted events."""

    entries: list[LogEntry] = field(default_factory=list)

    def render(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def events(self) -> list[str]:
        return [e.event for e in self.entries]


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class _LoggingState:
    renderer: LogRenderer = field(default_factory=ConsoleRenderer)
    level: int = logging.INFO


_state = _LoggingState()


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Configure process-wide structured logging.

    Args:
        format: "console" (human), "json" (machine), or "none"
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        output: Output stream (default: stderr for console, stdout for json)
        colors: Force colors on/off (None = auto-detect)

    Returns:
        The installed renderer
    """
    renderer: LogRenderer
    if format == "console":
        renderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
    elif format == "json":
        renderer = JsonRenderer(output=output or sys.stdout)
    elif format == "none":
        renderer = NoOpRenderer()
    else:
        raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    return install_renderer(renderer, level)


def install_renderer(renderer: LogRenderer, level: str = "INFO") -> LogRenderer:
    """Install an already-built renderer (e.g. ``CaptureRenderer`` in tests)."""
    _state.renderer = renderer
    _state.level = getattr(logging, level.upper(), logging.INFO)
    return renderer


def get_logger(name: str | None = None, **initial_context: JsonValue) -> BoundLogger:
    """Get a structured logger.

    The returned logger reads the renderer and level at emit time, so
    module-level loggers pick up a later ``configure_logging`` call.
    """
    ctx: JsonDict = dict(initial_context)
    if name:
        ctx["logger"] = name
    return BoundLogger(context=ctx)


class log_context:
    """Context manager adding key/value pairs to every entry within the scope.

    Example:
        >>> with log_context(request_id="abc123"):
        ...     log.info("processing")  # includes request_id
    """

    __slots__ = ("_ctx", "_token")

    def __init__(self, **kw: JsonValue) -> None:
        self._ctx: JsonDict = dict(kw)
        self._token: object | None = None

    def __enter__(self) -> log_context:
        self._token = _log_context.set({**_log_context.get(), **self._ctx})
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _log_context.reset(self._token)  # type: ignore[arg-type]


def current_context() -> JsonDict:
    return dict(_log_context.get())


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "cyan": "\033[36m",
}

_NO_COLORS = {k: "" for k in _COLORS}

_LEVEL_COLORS = {
    "debug": _COLORS["dim"],
    "info": _COLORS["green"],
    "warning": _COLORS["yellow"],
    "error": _COLORS["red"],
}


def _level_name(level: int) -> str:
    return logging.getLevelName(level).lower()


def _format_value(v: object, c: dict[str, str]) -> str:
    if isinstance(v, str):
        return f'{c["yellow"]}"{v}"{c["reset"]}'
    if isinstance(v, bool):
        return f'{c["blue"]}{str(v).lower()}{c["reset"]}'
    if isinstance(v, (int, float)):
        return f'{c["blue"]}{v}{c["reset"]}'
    if isinstance(v, (list, tuple, dict)):
        return f'{c["dim"]}[{len(v)} items]{c["reset"]}'
    return repr(v)
