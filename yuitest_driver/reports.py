"""Result file generation."""

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from itertools import groupby
from pathlib import Path
from xml.etree import ElementTree

from yuitest_driver.config import RunConfiguration
from yuitest_driver.errors import ReportError
from yuitest_driver.models.result import TestResult

log = logging.getLogger(__name__)

DATE_FORMAT = "%Y%m%d%H%M%S"


def render_junitxml(results: Sequence[TestResult], timestamp: datetime) -> str:
    """Render results as a JUnit XML document, one testsuite per page."""
    root = ElementTree.Element("testsuites")
    for result in results:
        suite = ElementTree.SubElement(
            root,
            "testsuite",
            name=result.page,
            tests=str(result.total),
            failures=str(result.failed),
            skipped=str(result.ignored),
            errors="0" if result.status in {"success", "failure"} else "1",
            time=f"{result.duration:.3f}",
            timestamp=timestamp.isoformat(timespec="seconds"),
            hostname=result.browser,
        )
        if result.message:
            error = ElementTree.SubElement(suite, "error", message=result.message)
            error.text = result.message

        for outcome in result.outcomes:
            case = ElementTree.SubElement(
                suite,
                "testcase",
                classname=outcome.suite or result.page,
                name=outcome.name,
                time=f"{outcome.duration:.3f}",
            )
            if outcome.result == "fail":
                failure = ElementTree.SubElement(
                    case, "failure", message=outcome.message
                )
                failure.text = outcome.message
            elif outcome.result == "ignore":
                ElementTree.SubElement(case, "skipped")

    ElementTree.indent(root)
    return ElementTree.tostring(root, encoding="unicode", xml_declaration=True) + "\n"


def render_tap(results: Sequence[TestResult], timestamp: datetime) -> str:
    """Render results in Test Anything Protocol format."""
    lines: list[str] = []
    number = 0
    for result in results:
        lines.append(f"# {result.page}")
        if result.message:
            number += 1
            lines.append(f"not ok {number} - {result.page} # {result.message}")
        for outcome in result.outcomes:
            number += 1
            name = f"{outcome.suite}.{outcome.name}" if outcome.suite else outcome.name
            if outcome.result == "pass":
                lines.append(f"ok {number} - {name}")
            elif outcome.result == "ignore":
                lines.append(f"ok {number} - {name} # SKIP")
            else:
                lines.append(f"not ok {number} - {name}")
                if outcome.message:
                    lines.append(f"  # {outcome.message}")
    return "\n".join([f"1..{number}", *lines]) + "\n"


def render_json(results: Sequence[TestResult], timestamp: datetime) -> str:
    """Render results as JSON, keeping each page's full report."""
    payload = {
        "timestamp": timestamp.isoformat(timespec="seconds"),
        "total": len(results),
        "passed": sum(1 for r in results if r.status == "success"),
        "failed": sum(1 for r in results if r.status == "failure"),
        "errors": sum(1 for r in results if r.status == "error"),
        "timeouts": sum(1 for r in results if r.status == "timeout"),
        "results": [
            {
                "browser": r.browser,
                "page": r.page,
                "status": r.status,
                "duration": r.duration,
                "passed": r.passed,
                "failed": r.failed,
                "ignored": r.ignored,
                "total": r.total,
                "message": r.message,
                "report": r.report,
            }
            for r in results
        ],
    }
    return json.dumps(payload, indent=2) + "\n"


RENDERERS: Mapping[
    str, tuple[str, Callable[[Sequence[TestResult], datetime], str]]
] = {
    "junitxml": ("xml", render_junitxml),
    "tap": ("tap", render_tap),
    "json": ("json", render_json),
}


def safe_file_part(value: str) -> str:
    """Make a value usable inside a file name."""
    return "".join(c if c.isalnum() or c in "-_." else "_" for c in value) or "browser"


@dataclass(frozen=True, kw_only=True)
class ReportGenerator:
    """Writes result files for a run, one per browser and format."""

    config: RunConfiguration
    verbose: bool = False

    def report_path(self, browser: str, fmt: str, timestamp: datetime) -> Path:
        """Return the file a browser's results are written to in a format."""
        extension, _ = RENDERERS[fmt]
        try:
            stem = self.config.results_filename.format(
                browser=safe_file_part(browser),
                date=timestamp.strftime(DATE_FORMAT),
            )
        except (KeyError, IndexError, ValueError) as exc:
            raise ReportError(
                f"Invalid results_filename template "
                f"'{self.config.results_filename}': {exc}"
            ) from exc
        return Path(self.config.results_outputdir) / f"{stem}.{extension}"

    def generate_all(
        self, results: Sequence[TestResult], timestamp: datetime
    ) -> Sequence[Path]:
        """Write every configured report format for the results.

        Raises:
            ReportError: If a format is unknown or a file cannot be written

        """
        formats = self.config.result_formats()
        unknown = [fmt for fmt in formats if fmt not in RENDERERS]
        if unknown:
            raise ReportError(
                f"Unknown result format(s): {', '.join(unknown)}. "
                f"Available formats: {sorted(RENDERERS)}"
            )

        ordered = sorted(results, key=lambda r: r.browser)
        plan: list[tuple[Path, str, str, list[TestResult]]] = []
        targets: dict[Path, str] = {}
        for browser, browser_results in groupby(ordered, key=lambda r: r.browser):
            batch = list(browser_results)
            for fmt in formats:
                path = self.report_path(browser, fmt, timestamp)
                if path in targets:
                    raise ReportError(
                        f"Results for {targets[path]} and {browser} would both be "
                        f"written to {path}; add {{browser}} to results_filename"
                    )
                targets[path] = browser
                plan.append((path, browser, fmt, batch))

        for path, browser, fmt, batch in plan:
            _, render = RENDERERS[fmt]
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(render(batch, timestamp), encoding="utf-8")
            except OSError as exc:
                raise ReportError(f"Cannot write results to {path}: {exc}") from exc
            if self.verbose:
                log.info("Wrote %s results for %s to %s", fmt, browser, path)
        return [path for path, *_ in plan]


def trigger_reports(
    config: RunConfiguration,
    results: Sequence[TestResult] | None,
    *,
    verbose: bool = False,
    now: Callable[[], datetime] = datetime.now,
) -> Sequence[Path]:
    """Generate result files if the run produced results.

    An empty result list still produces reports; None means nothing ran.
    """
    if results is None:
        return []

    generator = ReportGenerator(config=config, verbose=verbose)
    return generator.generate_all(results, now())
