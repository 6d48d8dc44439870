"""Tests for the Result type returned by validators.

Validates:
- Value extraction on the right and the wrong variant
- Equality and hashing agree
- Pattern matching on the wrapped value
"""

from __future__ import annotations

import pytest

from toolstream.foundation.errors import Err, Ok, Result, ValidationError


# ═════════════════════════════════════════════════════════════════════════════
# Extraction
# ═════════════════════════════════════════════════════════════════════════════


def test_unwrap_variants() -> None:
    assert Ok(1).unwrap() == 1
    assert Err("e").unwrap_err() == "e"
    assert Ok(1).is_ok() and not Ok(1).is_err()
    assert Err("e").is_err() and not Err("e").is_ok()


def test_unwrap_on_err_raises() -> None:
    with pytest.raises(RuntimeError, match="unwrap\\(\\) on Err"):
        Err("bad").unwrap()


def test_unwrap_err_on_ok_raises() -> None:
    with pytest.raises(RuntimeError):
        Ok(1).unwrap_err()


def test_truthiness_follows_variant() -> None:
    assert bool(Ok(0)) is True
    assert bool(Err(0)) is False


def test_validation_error_round_trips_unchanged() -> None:
    error = ValidationError.create("Invalid request body: messages: Field required")
    assert Err(error).unwrap_err() is error


# ═════════════════════════════════════════════════════════════════════════════
# Equality & Hashing
# ═════════════════════════════════════════════════════════════════════════════


def test_equality_compares_variant_and_value() -> None:
    assert Ok(1) == Ok(1)
    assert Ok(1) != Err(1)
    assert Ok(1) != 1


def test_equal_results_hash_equal() -> None:
    first: Result[str, str] = Ok("".join(["ab", "c"]))
    second: Result[str, str] = Ok("abc")

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second, Err("abc")}) == 2


def test_repr() -> None:
    assert repr(Ok(1)) == "Ok(1)"
    assert repr(Err("x")) == "Err('x')"


def test_pattern_matching() -> None:
    match Ok("hello"):
        case Result(value):
            assert value == "hello"
