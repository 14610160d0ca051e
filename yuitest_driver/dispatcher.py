"""Hand the run specification to the configured execution engine."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from yuitest_driver.config import RunConfiguration
from yuitest_driver.engines.loading import load_engine_manifest
from yuitest_driver.errors import DispatchError
from yuitest_driver.models.result import TestResult
from yuitest_driver.models.spec import NoTests, RunSpecification

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class RunDispatcher:
    """Runs a specification once on the engine named by the configuration."""

    config: RunConfiguration
    verbose: bool = False

    async def dispatch(self, spec: RunSpecification) -> Sequence[TestResult] | None:
        """Run the tests and return their results.

        Returns:
            Results in engine order, or None when there was nothing to run

        Raises:
            DispatchError: If the engine cannot be loaded or the run fails

        """
        manifest = load_engine_manifest(self.config.engine)

        async with manifest.engine_factory(self.config, self.verbose) as engine:
            if isinstance(spec, NoTests):
                return None

            pages = sum(1 for _ in spec.root.pages())
            log.info(
                "Dispatching %d test page(s) to %s engine", pages, self.config.engine
            )
            try:
                return await engine.run_tests(spec.root)
            except DispatchError:
                raise
            except Exception as exc:
                raise DispatchError(str(exc) or type(exc).__name__) from exc
