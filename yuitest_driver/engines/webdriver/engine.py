"""W3C WebDriver execution engine implementation."""

import json
import logging
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import aiohttp
from pydantic import ValidationError
from yarl import URL

from yuitest_driver.config import RunConfiguration
from yuitest_driver.engines.base import ExecutionEngine
from yuitest_driver.engines.webdriver.models import (
    CommandResponse,
    ErrorResponse,
    NewSessionResponse,
)
from yuitest_driver.errors import ConfigurationValueError, DispatchError
from yuitest_driver.models.spec import TestPage

log = logging.getLogger(__name__)

# Expression locating the test runner for each YUI Test version tag.
RUNNER_EXPRESSIONS: Mapping[int, str] = {
    2: "YAHOO.tool.TestRunner",
    3: "YUITest.TestRunner",
}

RESULTS_SCRIPT = """\
var runner;
try {{ runner = {runner}; }} catch (e) {{ return null; }}
if (!runner || runner.isRunning()) {{ return null; }}
return runner.getResults() || null;
"""


@dataclass(frozen=True, kw_only=True)
class WebDriverSession:
    """An open remote browser."""

    session_id: str
    browser: str


def page_url(page: TestPage) -> str:
    """Return the address a browser should open for a page."""
    if "://" in page.path:
        return page.path
    return Path(page.path).resolve().as_uri()


def results_script(version: int) -> str:
    """Build the script that returns a page's results once it has finished.

    Raises:
        DispatchError: If the version tag is not supported

    """
    try:
        runner = RUNNER_EXPRESSIONS[version]
    except KeyError:
        raise DispatchError(
            f"Unsupported YUI Test version: {version}. "
            f"Supported versions: {sorted(RUNNER_EXPRESSIONS)}"
        ) from None
    return RESULTS_SCRIPT.format(runner=runner)


@dataclass(frozen=True, kw_only=True)
class WebDriverEngine(ExecutionEngine[WebDriverSession]):
    """Engine talking to a Selenium server or grid over the WebDriver protocol."""

    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: RunConfiguration, verbose: bool = False
    ) -> AsyncGenerator["WebDriverEngine", None]:
        """Create engine with managed HTTP session lifecycle."""
        async with aiohttp.ClientSession(
            headers={"Accept": "application/json"},
        ) as session:
            yield cls(config=config, verbose=verbose, session=session)

    def server_url(self) -> URL:
        """Return the address of the WebDriver server.

        Raises:
            DispatchError: If the configured port is not an integer

        """
        try:
            port = self.config.integer("selenium_port")
        except ConfigurationValueError as exc:
            raise DispatchError(str(exc)) from exc
        return URL.build(scheme="http", host=self.config.selenium_host, port=port)

    async def command(
        self, method: str, path: str, payload: Mapping[str, Any] | None = None
    ) -> Any:
        """Send a WebDriver command and return the decoded response body.

        Raises:
            DispatchError: If the server is unreachable or the command fails

        """
        url = self.server_url().with_path(path)
        if self.verbose:
            log.info("WebDriver %s %s", method, path)

        try:
            async with self.session.request(method, url, json=payload) as response:
                text = await response.text()
                if response.status != 200:
                    raise DispatchError(
                        f"WebDriver {method} {path} failed: "
                        f"{response.status} {_error_detail(text)}"
                    )
                try:
                    return json.loads(text)
                except ValueError as exc:
                    raise DispatchError(
                        f"WebDriver {method} {path} returned invalid JSON: {text}"
                    ) from exc
        except aiohttp.ClientError as exc:
            raise DispatchError(
                f"Cannot reach WebDriver server at "
                f"{self.config.selenium_host}:{self.config.selenium_port}: {exc}"
            ) from exc

    async def open_session(self, browser: str) -> WebDriverSession:
        """Start a new browser session."""
        data = await self.command(
            "POST",
            "/session",
            {"capabilities": {"alwaysMatch": {"browserName": browser}}},
        )
        try:
            response = NewSessionResponse.model_validate(data)
        except ValidationError as exc:
            raise DispatchError(
                f"Unexpected New Session response for {browser}: {exc}"
            ) from exc

        log.info("Started %s session %s", browser, response.value.session_id)
        return WebDriverSession(session_id=response.value.session_id, browser=browser)

    async def close_session(self, session: WebDriverSession) -> None:
        """End a browser session. Failures are logged and not raised."""
        try:
            await self.command("DELETE", f"/session/{session.session_id}")
        except DispatchError as exc:
            log.warning(
                "Failed to close %s session %s: %s",
                session.browser,
                session.session_id,
                exc,
            )

    async def load_page(self, session: WebDriverSession, page: TestPage) -> None:
        """Open a test page in the browser."""
        await self.command(
            "POST", f"/session/{session.session_id}/url", {"url": page_url(page)}
        )

    async def poll_results(
        self, session: WebDriverSession, page: TestPage
    ) -> Mapping[str, Any] | None:
        """Ask the page's test runner for its results."""
        data = await self.command(
            "POST",
            f"/session/{session.session_id}/execute/sync",
            {"script": results_script(page.version), "args": []},
        )
        value = CommandResponse.model_validate(data).value
        if isinstance(value, Mapping):
            return value
        return None


def _error_detail(text: str) -> str:
    try:
        failure = ErrorResponse.model_validate_json(text).value
    except ValidationError:
        return text
    return f"{failure.error}: {failure.message}" if failure.message else failure.error
