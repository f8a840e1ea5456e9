from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum


@dataclass(frozen=True)
class Dependent:
    """
    Immutable domain entity representing one repository that depends on
    the target project.

    frozen=True also gives us value equality and hashing for free, which
    is what the record-level deduplicator compares on.

    Field names are OURS (snake_case). The on-disk name of the backward
    link is `previousGithubDependentsPageUrl`; the translation happens in
    the store, not here.
    """
    owner:               str
    repo:                str
    stars:               int
    forks:               int
    previous_page_url:   str | None = None

    def __post_init__(self) -> None:
        if not self.owner or not self.repo:
            raise ValueError("owner and repo are required")
        if self.stars < 0 or self.forks < 0:
            raise ValueError("stars and forks cannot be negative")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def with_previous_page(self, url: str | None) -> Dependent:
        """Return a copy stamped with the listing page that precedes this one."""
        return replace(self, previous_page_url=url)


@dataclass(frozen=True)
class PageElement:
    """
    Snapshot of one element of the rendered listing page.

    The fetcher translates whatever its DOM library returns into this,
    so the extractor and navigator never touch HTML objects directly.
    """
    text:        str
    attributes:  dict[str, str] = field(default_factory=dict)
    child_count: int = 0

    def attribute(self, name: str) -> str | None:
        return self.attributes.get(name)


@dataclass(frozen=True)
class RowFailure:
    """A data row that did not match the expected row shape."""
    index: int
    text:  str


@dataclass(frozen=True)
class PageExtraction:
    """
    Everything the extractor found on one listing page.

    `dependents` keeps page order. Rows that failed to parse are listed in
    `skipped` so the caller can report them.
    """
    dependents: list[Dependent]
    skipped:    list[RowFailure] = field(default_factory=list)


class CrawlState(str, Enum):
    FRESH_START = "fresh_start"
    RESUMING    = "resuming"
    FETCHING    = "fetching"
    EXTRACTING  = "extracting"
    PERSISTING  = "persisting"
    NAVIGATING  = "navigating"
    DONE        = "done"
    ABORTED     = "aborted"


@dataclass(frozen=True)
class CrawlResult:
    """
    Immutable value object summarising a finished crawl run.
    Returned by the application service whether the run completed or not.
    """
    target:           str
    status:           str
    pages_crawled:    int
    dependents_saved: int
    elapsed_secs:     float
    error_message:    str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == CrawlState.DONE.value
