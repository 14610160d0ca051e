"""Tests for stage-boundary failure values."""

import pytest

from yuitest_driver.errors import (
    DispatchError,
    SpecParseError,
    StageFailure,
    attempt,
    attempt_async,
)


def _parse(value: str) -> int:
    return int(value)


def test_attempt_returns_value() -> None:
    """Returns the function's value when it succeeds."""
    assert attempt("test-spec", _parse, "42") == 42


def test_attempt_returns_failure() -> None:
    """Returns a StageFailure carrying the raised exception."""
    result = attempt("test-spec", _parse, "forty-two")

    assert isinstance(result, StageFailure)
    assert result.stage == "test-spec"
    assert isinstance(result.error, ValueError)


async def test_attempt_async_returns_failure() -> None:
    """Returns a StageFailure for exceptions raised by coroutines."""

    async def fail() -> None:
        raise DispatchError("Connection refused")

    result = await attempt_async("dispatch", fail)

    assert isinstance(result, StageFailure)
    assert result.message == "Connection refused"


async def test_attempt_async_returns_value() -> None:
    """Returns the awaited value when the coroutine succeeds."""

    async def succeed(value: str) -> str:
        return value

    assert await attempt_async("dispatch", succeed, "ok") == "ok"


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (
            SpecParseError("Invalid test file schema: 1 validation error\n  tests"),
            "Invalid test file schema: 1 validation error",
        ),
        (SpecParseError(""), "SpecParseError"),
        (RuntimeError("  padded  "), "padded"),
    ],
)
def test_failure_message_is_single_line(error: Exception, expected: str) -> None:
    """Messages are reduced to one line."""
    failure = StageFailure(stage="test-spec", error=error)

    assert failure.message == expected
