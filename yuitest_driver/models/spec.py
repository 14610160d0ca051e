"""Test pages, groups and the run specification built from them."""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from pathlib import Path


def join_location(base: str, path: str) -> str:
    """Resolve a page path against a base URL or directory.

    Absolute URLs and paths are returned untouched; an empty base leaves the
    path as given.
    """
    if not base or "://" in path or path.startswith("/"):
        return path
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


@dataclass(frozen=True, kw_only=True)
class TestPage:
    """A single test page, carrying the settings of the group it was built from."""

    __test__ = False

    path: str
    version: int
    timeout: int
    group: str = ""


@dataclass(frozen=True, kw_only=True)
class TestPageGroup:
    """A named, ordered collection of pages and nested groups.

    Pages created through :meth:`page` copy the group's version tag and
    wait-timeout at construction, so later changes to a group never reach
    pages already built from it.
    """

    __test__ = False

    name: str
    version: int
    timeout: int
    base: str = ""
    children: Sequence["TestPage | TestPageGroup"] = ()

    def page(self, path: str) -> TestPage:
        """Build a page that inherits this group's settings."""
        return TestPage(
            path=join_location(self.base, path),
            version=self.version,
            timeout=self.timeout,
            group=self.name,
        )

    def subgroup(
        self,
        name: str,
        *,
        version: int | None = None,
        timeout: int | None = None,
        base: str | None = None,
    ) -> "TestPageGroup":
        """Build an empty child group, inheriting unset values from this group."""
        return TestPageGroup(
            name=name,
            version=self.version if version is None else version,
            timeout=self.timeout if timeout is None else timeout,
            base=self.base if base is None else join_location(self.base, base),
        )

    def with_children(
        self, children: Iterable["TestPage | TestPageGroup"]
    ) -> "TestPageGroup":
        """Return a copy of this group holding the given children in order."""
        return replace(self, children=tuple(children))

    def with_pages(self, paths: Iterable[str]) -> "TestPageGroup":
        """Return a copy of this group with one page appended per path."""
        return self.with_children([*self.children, *map(self.page, paths)])

    def pages(self) -> Iterator[TestPage]:
        """Yield every page in the group, depth first, in declaration order."""
        for child in self.children:
            if isinstance(child, TestPageGroup):
                yield from child.pages()
            else:
                yield child


@dataclass(frozen=True, kw_only=True)
class FromStructuredFile:
    """Tests loaded from a structured test-spec file."""

    source: Path
    root: TestPageGroup


@dataclass(frozen=True, kw_only=True)
class FromInlineList:
    """Tests synthesized from file paths given on the command line."""

    root: TestPageGroup


@dataclass(frozen=True)
class NoTests:
    """Nothing was specified to run."""


type RunSpecification = FromStructuredFile | FromInlineList | NoTests
