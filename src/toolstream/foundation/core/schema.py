"""Schema descriptors with a uniform ``validate(value) -> Result`` contract.

One validator serves three boundaries: inbound chat messages, tool call
arguments, and tool results. A ``Schema`` wraps a pydantic ``TypeAdapter``
so any annotation (a model, ``list[Model]``, a union) can be declared
once and checked the same way everywhere.

Example:
    >>> schema = Schema(list[int], name="ids")
    >>> schema.validate([1, 2]).unwrap()
    [1, 2]
    >>> schema.validate(["x"]).unwrap_err().message
    "ids: 0: Input should be a valid integer (got 'x')"
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..errors import Err, Ok, Result, ValidationError, format_validation_error

T = TypeVar("T")


class Schema(Generic[T]):
    """Declared shape for a structured value.

    Args:
        type_: Any pydantic-compatible annotation
        name: Label used as the subject of validation error messages
        strict: Reject type coercion (e.g. ``"1"`` for an ``int`` field)
    """

    __slots__ = ("_adapter", "name", "strict")

    def __init__(self, type_: type[T] | Any, *, name: str | None = None, strict: bool = True) -> None:
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)
        self.name = name or getattr(type_, "__name__", str(type_))
        self.strict = strict

    def validate(self, value: object) -> Result[T, ValidationError]:
        """Validate an already-decoded Python value. Side-effect free."""
        try:
            return Ok(self._adapter.validate_python(value, strict=self.strict))
        except PydanticValidationError as e:
            return Err(ValidationError.create(format_validation_error(e, subject=self.name)))

    def validate_json(self, data: str | bytes) -> Result[T, ValidationError]:
        """Decode and validate raw JSON in one pass.

        JSON-mode validation is lax about JSON-native representations only
        (e.g. strings for enum values), never about primitive type mismatches.
        """
        try:
            return Ok(self._adapter.validate_json(data, strict=self.strict))
        except PydanticValidationError as e:
            return Err(ValidationError.create(format_validation_error(e, subject=self.name)))

    def dump(self, value: T) -> Any:
        """Convert a validated value to JSON-compatible Python data."""
        return self._adapter.dump_python(value, mode="json", by_alias=True)

    def json_schema(self) -> dict[str, Any]:
        """JSON schema for the declared shape (used for model tool specs)."""
        return self._adapter.json_schema(by_alias=True)

    def __repr__(self) -> str:
        return f"Schema({self.name})"


def validate(schema: Schema[T], value: object) -> Result[T, ValidationError]:
    """Functional alias for ``schema.validate(value)``."""
    return schema.validate(value)
