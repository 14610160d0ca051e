"""Module test running the CLI against a WireMock WebDriver server."""

from pathlib import Path
from typing import Any
from xml.etree import ElementTree

import pytest
from wiremock.client import (
    HttpMethods,
    Mapping,
    MappingRequest,
    MappingResponse,
    Mappings,
)

from yuitest_driver.cli import main
from yuitest_driver.testing.payloads import (
    new_session_response,
    value_response,
    yuitest_report,
)

pytestmark = pytest.mark.module


def stub(method: str, url_pattern: str, body: dict[str, Any]) -> None:
    """Register a JSON response for requests matching the pattern."""
    Mappings.create_mapping(
        Mapping(
            request=MappingRequest(method=method, url_path_pattern=url_pattern),
            response=MappingResponse(
                status=200,
                headers={"Content-Type": "application/json"},
                json_body=body,
            ),
        )
    )


def test_cli_runs_pages_and_writes_reports(
    webdriver_address: tuple[str, str],
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Driver runs command-line pages through WebDriver and writes JUnit XML."""
    Mappings.delete_all_mappings()
    stub(HttpMethods.POST, "/session", new_session_response(session_id="wm-1"))
    stub(HttpMethods.POST, "/session/wm-1/url", value_response())
    stub(
        HttpMethods.POST,
        "/session/wm-1/execute/sync",
        value_response(yuitest_report(passed=3)),
    )
    stub(HttpMethods.DELETE, "/session/wm-1", value_response())

    monkeypatch.chdir(tmp_path)
    host, port = webdriver_address

    with pytest.raises(SystemExit) as exc_info:
        main(
            [
                "--host",
                host,
                "--port",
                port,
                "--browsers",
                "firefox",
                "http://tests.local/a.html",
                "http://tests.local/b.html",
            ]
        )

    assert exc_info.value.code == 0
    out = capsys.readouterr().out
    assert "✓ [firefox] http://tests.local/a.html: success" in out
    assert "2 of 2 test page(s) passed" in out

    (report,) = (tmp_path / "results").glob("firefox-*.xml")
    suites = ElementTree.parse(report).getroot().findall("testsuite")
    assert [suite.get("name") for suite in suites] == [
        "http://tests.local/a.html",
        "http://tests.local/b.html",
    ]
    assert all(suite.get("tests") == "3" for suite in suites)


def test_cli_fails_when_server_rejects_session(
    webdriver_address: tuple[str, str],
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Driver exits 1 and writes no reports when no session can be created."""
    Mappings.delete_all_mappings()
    Mappings.create_mapping(
        Mapping(
            request=MappingRequest(
                method=HttpMethods.POST, url_path_pattern="/session"
            ),
            response=MappingResponse(
                status=500,
                headers={"Content-Type": "application/json"},
                json_body={
                    "value": {
                        "error": "session not created",
                        "message": "No matching capabilities found",
                    }
                },
            ),
        )
    )

    monkeypatch.chdir(tmp_path)
    host, port = webdriver_address

    with pytest.raises(SystemExit) as exc_info:
        main(["--host", host, "--port", port, "http://tests.local/a.html"])

    assert exc_info.value.code == 1
    assert not (tmp_path / "results").exists()
