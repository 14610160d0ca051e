"""Models for test execution results."""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

type ResultStatus = Literal["success", "failure", "timeout", "error"]

# Keys of a YUI Test report object that hold summary data rather than children.
REPORT_SUMMARY_KEYS = frozenset(
    {"name", "type", "passed", "failed", "ignored", "total", "duration", "errors"}
)


@dataclass(frozen=True, kw_only=True)
class TestOutcome:
    """Outcome of one test function inside a test page."""

    __test__ = False

    suite: str
    name: str
    result: Literal["pass", "fail", "ignore"]
    message: str = ""
    duration: float = 0.0


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Result of running one test page in one browser.

    ``report`` holds the test framework's own result tree as returned by the
    browser; the driver only walks it when writing reports.
    """

    __test__ = False

    browser: str
    page: str
    status: ResultStatus
    duration: float
    passed: int = 0
    failed: int = 0
    ignored: int = 0
    total: int = 0
    report: Mapping[str, Any] = field(default_factory=dict, repr=False)
    message: str | None = None

    @property
    def outcomes(self) -> Sequence[TestOutcome]:
        """Individual test outcomes found in the report tree."""
        return list(iter_outcomes(self.report))


def iter_outcomes(
    node: Mapping[str, Any], suite: Sequence[str] = ()
) -> Iterator[TestOutcome]:
    """Walk a YUI Test report tree and yield each test it contains.

    Suites and cases nest arbitrarily; their names are joined with ``.`` to
    form the outcome's suite name.
    """
    for key, child in node.items():
        if key in REPORT_SUMMARY_KEYS or not isinstance(child, Mapping):
            continue

        child_type = child.get("type")
        if child_type == "test":
            yield TestOutcome(
                suite=".".join(suite),
                name=str(child.get("name", key)),
                result=_normalize_result(child.get("result")),
                message=str(child.get("message", "") or ""),
                duration=float(child.get("duration", 0) or 0) / 1000,
            )
        elif child_type in {"testsuite", "testcase"}:
            yield from iter_outcomes(child, (*suite, str(child.get("name", key))))


def _normalize_result(value: object) -> Literal["pass", "fail", "ignore"]:
    if value == "pass":
        return "pass"
    if value == "ignore":
        return "ignore"
    return "fail"
