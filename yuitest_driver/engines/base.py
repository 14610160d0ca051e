"""Abstract base class for browser execution engines."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from yuitest_driver.config import RunConfiguration
from yuitest_driver.errors import DispatchError
from yuitest_driver.models.result import ResultStatus, TestResult
from yuitest_driver.models.spec import TestPage, TestPageGroup

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ExecutionEngine[S](ABC):
    """Abstract base for engines that drive remote browsers.

    Generic type S is the per-browser session state: whatever the engine needs
    to address one open browser between calls.
    """

    config: RunConfiguration
    verbose: bool = False
    poll_interval: float = 0.5

    @abstractmethod
    async def open_session(self, browser: str) -> S:
        """Start a browser and return its session state."""

    @abstractmethod
    async def close_session(self, session: S) -> None:
        """Shut down a browser session."""

    @abstractmethod
    async def load_page(self, session: S, page: TestPage) -> None:
        """Navigate the browser to a test page."""

    @abstractmethod
    async def poll_results(
        self, session: S, page: TestPage
    ) -> Mapping[str, Any] | None:
        """Check whether the page has finished running.

        Returns:
            The test framework's report if complete, None if still running

        """

    async def wait_for_completion(
        self, session: S, page: TestPage
    ) -> Mapping[str, Any] | None:
        """Poll a loaded page until it reports results or its timeout passes.

        Returns:
            The page report, or None if the page's wait-timeout elapsed

        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + page.timeout / 1000

        while True:
            if (report := await self.poll_results(session, page)) is not None:
                return report

            if loop.time() >= deadline:
                return None

            await asyncio.sleep(self.poll_interval)

    async def run_page(self, session: S, browser: str, page: TestPage) -> TestResult:
        """Run one page in an open browser session."""
        log.info("Running %s in %s", page.path, browser)
        loop = asyncio.get_running_loop()
        started = loop.time()

        await self.load_page(session, page)
        report = await self.wait_for_completion(session, page)
        elapsed = loop.time() - started

        if report is None:
            return TestResult(
                browser=browser,
                page=page.path,
                status="timeout",
                duration=elapsed,
                message=f"Test page did not complete within {page.timeout}ms",
            )

        return result_from_report(browser, page, report, elapsed)

    async def run_browser(
        self, browser: str, group: TestPageGroup
    ) -> Sequence[TestResult]:
        """Run every page of the group, in order, in one browser."""
        session = await self.open_session(browser)
        try:
            return [
                await self.run_page(session, browser, page) for page in group.pages()
            ]
        finally:
            await self.close_session(session)

    async def run_tests(self, group: TestPageGroup) -> Sequence[TestResult]:
        """Run the group in every configured browser.

        Browsers run concurrently; pages within a browser run one at a time.

        Raises:
            DispatchError: If any browser session fails

        """
        browsers = self.config.browsers()
        if not browsers:
            raise DispatchError("No browsers configured to run tests in")

        log.info(
            "Running tests in %d browser(s): %s", len(browsers), ", ".join(browsers)
        )
        outcomes = await asyncio.gather(
            *(self.run_browser(browser, group) for browser in browsers),
            return_exceptions=True,
        )

        results: list[TestResult] = []
        for browser, outcome in zip(browsers, outcomes, strict=True):
            if isinstance(outcome, DispatchError):
                raise outcome
            if isinstance(outcome, Exception):
                raise DispatchError(f"{browser}: {outcome}") from outcome
            if isinstance(outcome, BaseException):
                raise outcome
            results.extend(outcome)

        log.info("Test execution completed")
        return results


def result_from_report(
    browser: str, page: TestPage, report: Mapping[str, Any], elapsed: float
) -> TestResult:
    """Summarize a YUI Test report object as a result."""
    failed = _count(report, "failed")
    status: ResultStatus = "failure" if failed else "success"
    duration = report.get("duration")
    return TestResult(
        browser=browser,
        page=page.path,
        status=status,
        duration=float(duration) / 1000 if duration is not None else elapsed,
        passed=_count(report, "passed"),
        failed=failed,
        ignored=_count(report, "ignored"),
        total=_count(report, "total"),
        report=report,
    )


def _count(report: Mapping[str, Any], key: str) -> int:
    try:
        return int(report.get(key) or 0)
    except (TypeError, ValueError):
        return 0
