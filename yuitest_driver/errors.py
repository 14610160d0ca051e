"""Error taxonomy and stage-boundary failure values."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

log = logging.getLogger(__name__)

type Stage = Literal["configuration", "test-spec", "dispatch", "report"]


class DriverError(Exception):
    """Base class for all errors raised by the driver."""


class UsageError(DriverError):
    """Raised when the command line cannot be parsed."""


class ConfigurationLoadError(DriverError):
    """Raised when the default or external configuration cannot be loaded."""


class ConfigurationValueError(DriverError, ValueError):
    """Raised when a configuration value cannot be converted."""


class SpecParseError(DriverError):
    """Raised when the tests to run cannot be determined."""


class DispatchError(DriverError):
    """Raised when the execution engine fails."""


class ReportError(DriverError):
    """Raised when result files cannot be written."""


@dataclass(frozen=True, kw_only=True)
class StageFailure:
    """A pipeline stage that ended with an error instead of a value."""

    stage: Stage
    error: Exception

    @property
    def message(self) -> str:
        """Single-line description of the failure."""
        text = str(self.error).strip()
        return text.splitlines()[0] if text else type(self.error).__name__


def attempt[**P, T](
    stage: Stage, func: Callable[P, T], /, *args: P.args, **kwargs: P.kwargs
) -> T | StageFailure:
    """Call func, returning its value or the failure it raised."""
    try:
        return func(*args, **kwargs)
    except Exception as exc:
        log.debug("Stage %s failed", stage, exc_info=exc)
        return StageFailure(stage=stage, error=exc)


async def attempt_async[**P, T](
    stage: Stage,
    func: Callable[P, Awaitable[T]],
    /,
    *args: P.args,
    **kwargs: P.kwargs,
) -> T | StageFailure:
    """Await func, returning its value or the failure it raised."""
    try:
        return await func(*args, **kwargs)
    except Exception as exc:
        log.debug("Stage %s failed", stage, exc_info=exc)
        return StageFailure(stage=stage, error=exc)
