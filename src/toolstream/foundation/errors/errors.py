"""Standardized error taxonomy for the chat stream.

Every failure a request can hit maps onto one exception class below. Each
exception carries an ``ErrorInfo`` (Pydantic, frozen) with a machine-readable
code, plus an HTTP status used only while the response is still pre-stream.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

if TYPE_CHECKING:
    from pydantic import ValidationError as PydanticValidationError


class ErrorCode(StrEnum):
    """Standard error codes for request, tool, and model failures."""
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_PARAMS = "INVALID_PARAMS"
    INVALID_OUTPUT = "INVALID_OUTPUT"
    NOT_FOUND = "NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    PARSE_ERROR = "PARSE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    MODEL_ERROR = "MODEL_ERROR"
    LOOP_LIMIT = "LOOP_LIMIT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    UNKNOWN = "UNKNOWN"


# Pattern -> code mapping, checked in insertion order
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "connect": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "status": ErrorCode.EXTERNAL_SERVICE_ERROR,
    "ratelimit": ErrorCode.RATE_LIMITED,
    "rate limit": ErrorCode.RATE_LIMITED,
    "permission": ErrorCode.PERMISSION_DENIED,
    "forbidden": ErrorCode.PERMISSION_DENIED,
    "json": ErrorCode.PARSE_ERROR,
    "decode": ErrorCode.PARSE_ERROR,
    "validation": ErrorCode.INVALID_PARAMS,
    "notfound": ErrorCode.NOT_FOUND,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES.keys())


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.EXTERNAL_SERVICE_ERROR


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code via pattern matching on name/message."""
    return _classify_cached(f"{type(exc).__name__} {exc}")


class ErrorInfo(BaseModel):
    """Structured description of a failure.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        tool_name: Tool involved in the failure, if any
        recoverable: Whether re-issuing the request might succeed
        details: Optional detailed information (e.g., stack trace)
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={
            "title": "Error Info",
            "examples": [{
                "message": "Failed to fetch comments: 503 Service Unavailable",
                "code": "EXTERNAL_SERVICE_ERROR",
                "tool_name": "fetch_comments",
                "recoverable": True,
            }],
        },
    )

    message: Annotated[str, Field(min_length=1, description="Human-readable error message")]
    code: ErrorCode = Field(default=ErrorCode.UNKNOWN)
    tool_name: str | None = Field(default=None)
    recoverable: bool = Field(default=False)
    details: str | None = Field(default=None, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and extract message."""
        return (str(v) or type(v).__name__) if isinstance(v, Exception) else v

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether this error is typically transient (rate limits, timeouts, network)."""
        return self.code in _RETRYABLE_CODES

    def render(self) -> str:
        """Format as a single line for stream error events and logs."""
        prefix = f"{self.tool_name}: " if self.tool_name else ""
        return f"{prefix}{self.message}"

    __str__ = render


_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.RATE_LIMITED,
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
})


# ─────────────────────────────────────────────────────────────────────────────
# Exception Hierarchy
# ─────────────────────────────────────────────────────────────────────────────

class ToolstreamError(Exception):
    """Base exception wrapping an ErrorInfo for raising."""

    __slots__ = ("info",)

    default_code: ClassVar[ErrorCode] = ErrorCode.UNKNOWN
    status_code: ClassVar[int] = 500

    def __init__(self, info: ErrorInfo | str) -> None:
        self.info = info if isinstance(info, ErrorInfo) else ErrorInfo(message=info, code=self.default_code)
        super().__init__(self.info.message)

    @property
    def code(self) -> ErrorCode:
        return self.info.code

    @property
    def message(self) -> str:
        return self.info.message

    @classmethod
    def create(
        cls,
        message: str,
        code: ErrorCode | None = None,
        *,
        tool_name: str | None = None,
        recoverable: bool = False,
        details: str | None = None,
    ) -> Self:
        """Factory method for construction."""
        return cls(ErrorInfo(
            message=message,
            code=code or cls.default_code,
            tool_name=tool_name,
            recoverable=recoverable,
            details=details,
        ))

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        context: str = "",
        *,
        tool_name: str | None = None,
        include_trace: bool = False,
    ) -> Self:
        """Wrap a foreign exception with auto-classification."""
        text = str(exc) or type(exc).__name__
        return cls(ErrorInfo(
            message=f"{context}: {text}" if context else text,
            code=classify_exception(exc),
            tool_name=tool_name,
            recoverable=True,
            details=traceback.format_exc() if include_trace else None,
        ))


class ValidationError(ToolstreamError):
    """Malformed request shape or role. Reported before any stream is opened."""
    default_code = ErrorCode.INVALID_REQUEST
    status_code = 400


class InternalError(ToolstreamError):
    """Unclassified failure."""
    default_code = ErrorCode.UNKNOWN
    status_code = 500


class ToolError(ToolstreamError):
    """Base for failures raised while dispatching a tool call."""
    default_code = ErrorCode.EXTERNAL_SERVICE_ERROR
    status_code = 502


class UnknownToolError(ToolError):
    default_code = ErrorCode.NOT_FOUND


class ToolArgumentError(ToolError):
    """Arguments did not validate against the tool's input schema."""
    default_code = ErrorCode.INVALID_PARAMS


class ToolExecutionError(ToolError):
    """The executor raised, the remote failed, or the bounded wait elapsed."""
    default_code = ErrorCode.EXTERNAL_SERVICE_ERROR


class ToolOutputError(ToolError):
    """The executor returned a value that does not match the output schema."""
    default_code = ErrorCode.INVALID_OUTPUT


class ModelError(ToolstreamError):
    """The language-model call failed."""
    default_code = ErrorCode.MODEL_ERROR
    status_code = 502


class LoopLimitExceeded(ToolstreamError):
    """The tool-calling loop hit its iteration ceiling."""
    default_code = ErrorCode.LOOP_LIMIT
    status_code = 508


class RegistryError(ToolstreamError):
    """Misuse of the tool registry at startup."""
    default_code = ErrorCode.INVALID_PARAMS


class DuplicateToolError(RegistryError):
    pass


class RegistryFrozenError(RegistryError):
    pass


class StreamStateError(ToolstreamError):
    """Stream emitter used out of order (e.g. chunk before open)."""
    default_code = ErrorCode.UNKNOWN


# ─────────────────────────────────────────────────────────────────────────────
# Pydantic Error Formatting
# ─────────────────────────────────────────────────────────────────────────────

_MAX_INPUT_REPR = 60


def format_validation_error(exc: PydanticValidationError, *, subject: str | None = None) -> str:
    """Render pydantic errors as ``loc: msg (got input)`` joined by ``; ``.

    Example:
        >>> format_validation_error(e)
        "messages.0.role: Input should be 'user', 'assistant' or 'system' (got 'bogus')"
    """
    parts: list[str] = []
    for err in exc.errors(include_url=False):
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        line = f"{loc}: {msg}" if loc else msg
        if err.get("type") != "missing" and "input" in err:
            shown = repr(err["input"])
            if len(shown) > _MAX_INPUT_REPR:
                shown = shown[: _MAX_INPUT_REPR - 3] + "..."
            line += f" (got {shown})"
        parts.append(line)
    body = "; ".join(parts) or str(exc)
    return f"{subject}: {body}" if subject else body
