"""Payload helpers for WebDriver responses and YUI Test reports in tests."""

from typing import Any


def new_session_response(
    *, session_id: str = "session-1", browser: str = "firefox"
) -> dict[str, Any]:
    """Create a New Session response payload."""
    return {
        "value": {
            "sessionId": session_id,
            "capabilities": {
                "browserName": browser,
                "browserVersion": "128.0",
                "platformName": "linux",
                "acceptInsecureCerts": False,
                "pageLoadStrategy": "normal",
                "setWindowRect": True,
                "timeouts": {"implicit": 0, "pageLoad": 300000, "script": 30000},
            },
        }
    }


def value_response(value: Any = None) -> dict[str, Any]:
    """Create a response payload for a command returning a plain value."""
    return {"value": value}


def error_response(
    *, error: str = "invalid session id", message: str = "Session not found"
) -> dict[str, Any]:
    """Create a failed-command response payload."""
    return {"value": {"error": error, "message": message, "stacktrace": ""}}


def yuitest_report(
    *,
    name: str = "Example Suite",
    passed: int = 2,
    failed: int = 0,
    ignored: int = 0,
    duration: int = 120,
    failure_message: str = "Values should be equal.",
) -> dict[str, Any]:
    """Create a YUI Test results object as returned by TestRunner.getResults().

    The report holds one suite with one test case containing ``passed``,
    ``failed`` and ``ignored`` tests in that order.
    """
    tests: dict[str, Any] = {}
    for index in range(passed):
        tests[f"testPass{index}"] = {
            "result": "pass",
            "message": "Test passed",
            "type": "test",
            "name": f"testPass{index}",
            "duration": 10,
        }
    for index in range(failed):
        tests[f"testFail{index}"] = {
            "result": "fail",
            "message": failure_message,
            "type": "test",
            "name": f"testFail{index}",
            "duration": 10,
        }
    for index in range(ignored):
        tests[f"testIgnore{index}"] = {
            "result": "ignore",
            "message": "Test ignored",
            "type": "test",
            "name": f"testIgnore{index}",
        }

    total = passed + failed + ignored
    case = {
        "name": "Example Case",
        "type": "testcase",
        "passed": passed,
        "failed": failed,
        "ignored": ignored,
        "total": total,
        "duration": duration,
        **tests,
    }
    return {
        "name": name,
        "type": "report",
        "passed": passed,
        "failed": failed,
        "ignored": ignored,
        "total": total,
        "duration": duration,
        "Example Suite": {
            "name": "Example Suite",
            "type": "testsuite",
            "passed": passed,
            "failed": failed,
            "ignored": ignored,
            "total": total,
            "duration": duration,
            "Example Case": case,
        },
    }
