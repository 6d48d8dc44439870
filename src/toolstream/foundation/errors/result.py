"""Result/Either type for validation outcomes.

Validators return ``Result[T, ValidationError]`` instead of raising, so each
boundary decides whether a failure is a 400 response, a tool error, or a
stream ``error`` event.

Examples:
    >>> Ok(42).unwrap()
    42
    >>> Err("fail").unwrap_err()
    'fail'
    >>> bool(Err("fail"))
    False
"""

from __future__ import annotations

from typing import Generic, TypeVar, cast

T = TypeVar("T")
E = TypeVar("E")

_OK = True
_ERR = False


class Result(Generic[T, E]):
    """Discriminated union representing success (Ok) or failure (Err)."""

    __slots__ = ("_value", "_is_ok")
    __match_args__ = ("_value",)

    def __init__(self, value: T | E, is_ok: bool) -> None:
        self._value = value
        self._is_ok = is_ok

    def is_ok(self) -> bool:
        return self._is_ok

    def is_err(self) -> bool:
        return not self._is_ok

    # ─── Value Extraction ──────────────────────────────────────────────

    def unwrap(self) -> T:
        """Extract Ok value. Raises RuntimeError on Err."""
        if self._is_ok:
            return cast(T, self._value)
        raise RuntimeError(f"unwrap() on Err: {self._value}")

    def unwrap_err(self) -> E:
        """Extract Err value. Raises RuntimeError on Ok."""
        if not self._is_ok:
            return cast(E, self._value)
        raise RuntimeError(f"unwrap_err() on Ok: {self._value}")

    # ─── Dunder Methods ────────────────────────────────────────────────

    def __bool__(self) -> bool:
        return self._is_ok

    def __repr__(self) -> str:
        return f"{'Ok' if self._is_ok else 'Err'}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._is_ok == other._is_ok and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._is_ok, self._value))


def Ok(value: T) -> Result[T, E]:  # noqa: N802
    """Construct Ok variant (success)."""
    return Result(value, _OK)


def Err(error: E) -> Result[T, E]:  # noqa: N802
    """Construct Err variant (failure)."""
    return Result(error, _ERR)
