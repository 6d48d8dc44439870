"""Unified error handling for toolstream.

- ErrorCode / ErrorInfo: machine-readable codes and structured error payloads
- ToolstreamError hierarchy: one exception per failure class of a request
- Result/Ok/Err: validation outcomes without raising
"""

from .errors import (
    DuplicateToolError,
    ErrorCode,
    ErrorInfo,
    InternalError,
    LoopLimitExceeded,
    ModelError,
    RegistryError,
    RegistryFrozenError,
    StreamStateError,
    ToolArgumentError,
    ToolError,
    ToolExecutionError,
    ToolOutputError,
    ToolstreamError,
    UnknownToolError,
    ValidationError,
    classify_exception,
    format_validation_error,
)
from .result import Err, Ok, Result

__all__ = [
    # Codes & payloads
    "ErrorCode", "ErrorInfo", "classify_exception", "format_validation_error",
    # Exceptions
    "ToolstreamError", "ValidationError", "InternalError",
    "ToolError", "UnknownToolError", "ToolArgumentError", "ToolExecutionError", "ToolOutputError",
    "ModelError", "LoopLimitExceeded",
    "RegistryError", "DuplicateToolError", "RegistryFrozenError", "StreamStateError",
    # Result
    "Result", "Ok", "Err",
]
