"""Determine which tests to run and build the run specification."""

import logging
from collections.abc import Mapping, Sequence
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Literal, TextIO
from xml.etree import ElementTree

import yaml
from pydantic import Field, ValidationError

from yuitest_driver.config import RunConfiguration
from yuitest_driver.errors import ConfigurationValueError, SpecParseError
from yuitest_driver.models.base import Model
from yuitest_driver.models.spec import (
    FromInlineList,
    FromStructuredFile,
    NoTests,
    RunSpecification,
    TestPageGroup,
)

log = logging.getLogger(__name__)

type SpecFormat = Literal["yaml", "xml"]


class GroupEntry(Model):
    """A group of tests as written in a test-spec file."""

    name: str = ""
    base: str | None = None
    version: int | None = None
    timeout: int | None = None
    tests: Sequence["str | GroupEntry"] = Field(default_factory=list)


def framework_settings(config: RunConfiguration) -> tuple[int, int]:
    """Return the (version, wait-timeout) pair every page inherits by default.

    Raises:
        SpecParseError: If either setting is not an integer

    """
    try:
        return (
            config.integer("yuitest_version"),
            config.integer("selenium_wait_for_done"),
        )
    except ConfigurationValueError as exc:
        raise SpecParseError(str(exc)) from exc


def root_group(config: RunConfiguration) -> TestPageGroup:
    """Create the unnamed top-level group seeded from the configuration."""
    version, timeout = framework_settings(config)
    return TestPageGroup(
        name="", version=version, timeout=timeout, base=config.tests_base
    )


def spec_format(path: Path) -> SpecFormat:
    """Pick the test-spec format from a file name."""
    return "xml" if path.suffix.lower() == ".xml" else "yaml"


def _parse_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SpecParseError(f"Invalid YAML: {exc}") from exc


def _xml_group(element: ElementTree.Element) -> dict[str, Any]:
    data: dict[str, Any] = dict(element.attrib)
    tests: list[Any] = []
    for child in element:
        if child.tag == "url":
            path = (child.text or "").strip()
            if not path:
                raise SpecParseError("Empty <url> element in test file")
            tests.append(path)
        elif child.tag == "tests":
            tests.append(_xml_group(child))
        else:
            raise SpecParseError(f"Unexpected <{child.tag}> element in test file")
    data["tests"] = tests
    return data


def _parse_xml(text: str) -> Any:
    try:
        document = ElementTree.fromstring(text)
    except ElementTree.ParseError as exc:
        raise SpecParseError(f"Invalid XML: {exc}") from exc

    if document.tag != "yuitest":
        raise SpecParseError(
            f"Invalid XML: expected <yuitest> root element, found <{document.tag}>"
        )

    groups = [_xml_group(child) for child in document if child.tag == "tests"]
    if len(groups) == 1:
        return groups[0]
    return {"tests": groups}


def _build_group(entry: GroupEntry, parent: TestPageGroup) -> TestPageGroup:
    group = parent.subgroup(
        entry.name, version=entry.version, timeout=entry.timeout, base=entry.base
    )
    return group.with_children(
        group.page(test) if isinstance(test, str) else _build_group(test, group)
        for test in entry.tests
    )


def load_test_spec(
    stream: TextIO,
    *,
    parent: TestPageGroup,
    fmt: SpecFormat = "yaml",
) -> TestPageGroup:
    """Parse a structured test-spec document into a group hierarchy.

    Args:
        stream: Open text stream with the document
        parent: Group whose version, timeout and base the root inherits
        fmt: Document format

    Raises:
        SpecParseError: If the document is malformed or fails validation

    """
    text = stream.read()
    if not text.strip():
        raise SpecParseError("Empty test file")

    data = _parse_xml(text) if fmt == "xml" else _parse_yaml(text)
    if not isinstance(data, Mapping):
        raise SpecParseError("Invalid test file: expected a group of tests")

    try:
        entry = GroupEntry.model_validate(data)
    except ValidationError as exc:
        raise SpecParseError(f"Invalid test file schema: {exc}") from exc

    return _build_group(entry, parent)


def build_inline_group(config: RunConfiguration, paths: Sequence[str]) -> TestPageGroup:
    """Build one unnamed group holding a page per command-line path."""
    return root_group(config).with_pages(paths)


def load_run_specification(
    config: RunConfiguration,
    *,
    tests_file: Path | None,
    paths: Sequence[str],
    resources: ExitStack,
) -> RunSpecification:
    """Decide what to run from the ``--tests`` file or trailing file arguments.

    A ``--tests`` file always wins; trailing paths are then ignored. With
    neither, nothing runs.

    Raises:
        SpecParseError: If the tests cannot be loaded

    """
    if tests_file is not None:
        if paths:
            log.info(
                "Ignoring %d test file(s) from command line in favor of %s",
                len(paths),
                tests_file,
            )
        parent = root_group(config)
        try:
            stream = resources.enter_context(tests_file.open(encoding="utf-8"))
        except OSError as exc:
            raise SpecParseError(
                f"Cannot read test file {tests_file}: {exc.strerror or exc}"
            ) from exc

        log.info("Using tests from %s.", tests_file)
        try:
            root = load_test_spec(stream, parent=parent, fmt=spec_format(tests_file))
        except SpecParseError as exc:
            raise SpecParseError(f"{tests_file}: {exc}") from exc
        return FromStructuredFile(source=tests_file, root=root)

    if paths:
        log.info("Using tests from command line.")
        return FromInlineList(root=build_inline_group(config, paths))

    log.info("No tests specified to run, exiting.")
    return NoTests()
