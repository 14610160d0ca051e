"""CLI entry point for the YUI Test browser driver."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn, TextIO

from yuitest_driver.config import ConfigOverrides, resolve_configuration
from yuitest_driver.dispatcher import RunDispatcher
from yuitest_driver.errors import StageFailure, UsageError, attempt, attempt_async
from yuitest_driver.models.result import TestResult
from yuitest_driver.reports import trigger_reports
from yuitest_driver.spec_loader import load_run_specification

log = logging.getLogger("yuitest_driver")

STATUS_SYMBOLS = {
    "success": "✓",
    "failure": "✗",
    "error": "!",
    "timeout": "⏱",
}


class DriverArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports malformed input as UsageError."""

    def error(self, message: str) -> NoReturn:
        """Raise instead of printing and exiting."""
        raise UsageError(message)


@dataclass(frozen=True, kw_only=True)
class CommandLineOptions:
    """Parsed command-line options."""

    help: bool = False
    verbose: bool = False
    error_on_fail: bool = False
    conf: Path | None = None
    tests: Path | None = None
    files: Sequence[str] = ()
    overrides: ConfigOverrides = field(default_factory=ConfigOverrides)


def build_parser() -> DriverArgumentParser:
    """Create the command-line parser."""
    parser = DriverArgumentParser(
        prog="yuitest-driver",
        usage="%(prog)s [options] [test files]",
        description="Run YUI Test pages in remote browsers and write result files.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-h", "--help", action="store_true", help="Displays this information."
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Display informational messages and warnings.",
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Don't output test results to the console.",
    )
    parser.add_argument(
        "--erroronfail",
        dest="error_on_fail",
        action="store_true",
        help="Exit with an error code when any test does not pass.",
    )
    parser.add_argument(
        "--conf", type=Path, metavar="<file>", help="Load options from <file>."
    )
    parser.add_argument("--host", metavar="<host>", help="Use the Selenium host <host>.")
    parser.add_argument(
        "--port", metavar="<port>", help="Use <port> port on the Selenium host."
    )
    parser.add_argument(
        "--browsers",
        metavar="<browsers>",
        help="Run tests in these browsers (comma-delimited).",
    )
    parser.add_argument(
        "--yuitest",
        metavar="<version>",
        help="The version of YUI Test to use (2 or 3).",
    )
    parser.add_argument(
        "--tests", type=Path, metavar="<file>", help="Loads test info from <file>."
    )
    parser.add_argument(
        "files",
        nargs="*",
        metavar="test files",
        help="Test pages to run when --tests is not given.",
    )
    return parser


def parse_arguments(
    parser: argparse.ArgumentParser, argv: Sequence[str] | None = None
) -> CommandLineOptions:
    """Parse command-line arguments.

    Raises:
        UsageError: If the arguments are malformed

    """
    args = parser.parse_intermixed_args(argv)
    return CommandLineOptions(
        help=args.help,
        verbose=args.verbose,
        error_on_fail=args.error_on_fail,
        conf=args.conf,
        tests=args.tests,
        files=tuple(args.files),
        overrides=ConfigOverrides(
            silent=args.silent,
            host=args.host,
            port=args.port,
            browsers=args.browsers,
            yuitest=args.yuitest,
        ),
    )


def print_results_summary(
    results: Sequence[TestResult], stream: TextIO | None = None
) -> None:
    """Print one line per test page with its outcome."""
    out = stream if stream is not None else sys.stdout
    for result in results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        print(
            f"{symbol} [{result.browser}] {result.page}: {result.status} "
            f"(passed {result.passed}, failed {result.failed}, "
            f"ignored {result.ignored}, {result.duration:.2f}s)",
            file=out,
        )
        if result.message:
            print(f"  Message: {result.message}", file=out)

    passed = sum(1 for r in results if r.status == "success")
    print(f"{passed} of {len(results)} test page(s) passed", file=out)


def has_failures(results: Sequence[TestResult]) -> bool:
    """Check whether any page did not pass."""
    return any(result.status != "success" for result in results)


def report_failure(failure: StageFailure, verbose: bool) -> int:
    """Log a failed stage and return the exit code for it."""
    log.error("%s", failure.message, exc_info=failure.error if verbose else None)
    return 1


def release(resources: ExitStack) -> None:
    """Close everything opened during the run. Failures are only logged."""
    try:
        resources.close()
    except Exception as exc:
        log.warning("Failed to release resources: %s", exc)


async def run(options: CommandLineOptions) -> int:
    """Resolve configuration, run the tests and write reports; return exit code."""
    resources = ExitStack()
    try:
        return await run_pipeline(options, resources)
    finally:
        release(resources)


async def run_pipeline(options: CommandLineOptions, resources: ExitStack) -> int:
    """Run every stage in order, stopping at the first failure."""
    config = attempt(
        "configuration",
        resolve_configuration,
        overrides=options.overrides,
        conf_file=options.conf,
    )
    if isinstance(config, StageFailure):
        return report_failure(config, options.verbose)

    spec = attempt(
        "test-spec",
        load_run_specification,
        config,
        tests_file=options.tests,
        paths=options.files,
        resources=resources,
    )
    if isinstance(spec, StageFailure):
        return report_failure(spec, options.verbose)

    dispatcher = RunDispatcher(config=config, verbose=options.verbose)
    results = await attempt_async("dispatch", dispatcher.dispatch, spec)
    if isinstance(results, StageFailure):
        return report_failure(results, options.verbose)

    if results is not None and not config.silent:
        print_results_summary(results)

    written = attempt(
        "report", trigger_reports, config, results, verbose=options.verbose
    )
    if isinstance(written, StageFailure):
        return report_failure(written, options.verbose)

    if options.error_on_fail and results and has_failures(results):
        log.error("One or more test pages did not pass")
        return 1

    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    try:
        options = parse_arguments(parser, argv)
    except UsageError as exc:
        parser.print_help(sys.stdout)
        print(f"{parser.prog}: error: {exc}", file=sys.stderr)
        sys.exit(1)

    if options.help:
        parser.print_help(sys.stdout)
        sys.exit(0)

    logging.basicConfig(
        level=logging.INFO if options.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    sys.exit(asyncio.run(run(options)))


if __name__ == "__main__":  # pragma: no cover
    main()
