"""Engine manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from yuitest_driver.config import RunConfiguration
from yuitest_driver.engines.base import ExecutionEngine


@dataclass(frozen=True, kw_only=True)
class EngineManifest[StateT]:
    """Manifest describing an execution engine plugin.

    The factory is called with the effective configuration and the verbosity
    flag and manages the engine's resources for the duration of a run.
    """

    engine_factory: Callable[
        [RunConfiguration, bool],
        AbstractAsyncContextManager[ExecutionEngine[StateT]],
    ]
