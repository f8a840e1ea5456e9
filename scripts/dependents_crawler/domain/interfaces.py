"""
Domain Layer — Interfaces (Abstract Contracts)
-----------------------------------------------
These are ABSTRACT definitions of what the infrastructure must provide.
The domain layer defines the shape; the infrastructure layer implements it.

The crawl controller only ever sees these contracts, so tests can drive
it with an in-memory page fetcher and store instead of the network and
the file system.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from .entities import Dependent, PageElement


class IPageFetcher(ABC):
    """
    Contract for whatever loads and renders listing pages.
    The crawl only needs "go to URL" and "find an element on the current page";
    session and client lifecycle belong to the caller.
    """

    @property
    @abstractmethod
    def current_url(self) -> str | None:
        """URL of the page currently loaded, or None before the first navigation."""
        ...

    @abstractmethod
    async def navigate_to(self, url: str) -> None:
        """Load `url` (absolute, or relative to the current page) and make it current."""
        ...

    @abstractmethod
    async def wait_for_selector(self, selector: str, timeout: float) -> PageElement:
        """
        Return the first element on the current page matching the CSS selector.
        Raises ElementNotFoundError if nothing matches within `timeout` seconds.
        """
        ...

    @abstractmethod
    def snapshot(self, path: str) -> None:
        """Write the current page to `path` so a failure can be inspected later."""
        ...


class IDependentStore(ABC):
    """
    Contract for the persisted dependents collection of ONE target project.
    The store is the only writer to durable storage.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Where the records live (e.g. the file path), for log and error messages."""
        ...

    @abstractmethod
    def load(self) -> list[Dependent]:
        """Read every persisted record, in order. Raises StoreError if unreadable."""
        ...

    @abstractmethod
    def initialize(self) -> None:
        """Replace whatever is stored with an empty collection."""
        ...

    @abstractmethod
    def append_deduped(self, batch: list[Dependent]) -> list[Dependent]:
        """
        Drop records of `batch` that are already persisted, then write
        existing + remaining back in full. Returns the records written.
        """
        ...

    @abstractmethod
    def last(self) -> Dependent | None:
        """The most recently persisted record, or None if the store is empty."""
        ...


class IDeduplicator(ABC):
    """
    Contract for the deduplication policy.
    Separated from the store so the dedup key can be swapped in one place.
    """

    @abstractmethod
    def key(self, dependent: Dependent) -> object:
        """The value two records must share to count as duplicates."""
        ...

    @abstractmethod
    def filter_fresh(self, existing: list[Dependent], batch: list[Dependent]) -> list[Dependent]:
        """Return the records of `batch` not present in `existing`, keeping batch order."""
        ...
