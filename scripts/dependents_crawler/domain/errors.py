"""
Domain Layer — Error Taxonomy
-----------------------------
Every failure the crawl can hit is one of these. Reasons are plain string
constants so callers can branch on them without parsing messages.

Only row-level ParseErrors are recoverable (the row is skipped). Every
other error aborts the current run; pages already persisted stay put.
"""

from __future__ import annotations


class CrawlError(Exception):
    """Base class for all crawl failures."""


class ParseError(CrawlError):
    CONTAINER_NOT_FOUND = "container-not-found"
    ROW_MISMATCH        = "row-mismatch"

    def __init__(self, reason: str, text: str | None = None) -> None:
        self.reason = reason
        self.text   = text
        if reason == self.CONTAINER_NOT_FOUND:
            message = (
                "Unable to find dependents on the page, probably reached the rate limit page"
            )
        else:
            message = f"Row did not match the dependent row shape: {text!r}"
        super().__init__(message)

    @property
    def likely_rate_limited(self) -> bool:
        return self.reason == self.CONTAINER_NOT_FOUND


class NavigationError(CrawlError):
    PREVIOUS = "previous"
    NEXT     = "next"

    CONTROL_NOT_FOUND = "control-not-found"
    MISSING_HREF      = "missing-href"

    def __init__(self, direction: str, reason: str = CONTROL_NOT_FOUND) -> None:
        self.direction = direction
        self.reason    = reason
        label = "Previous" if direction == self.PREVIOUS else "Next"
        if reason == self.MISSING_HREF:
            message = f'"{label}" button has no link to the {direction} dependents page'
        else:
            message = f'Unable to find "{label}" button to go to {direction} dependents page'
        super().__init__(message)


class StoreError(CrawlError):
    CORRUPT_OR_MISSING = "corrupt-or-missing"

    def __init__(self, path: str, reason: str = CORRUPT_OR_MISSING, detail: str | None = None) -> None:
        self.path   = path
        self.reason = reason
        message = f"Dependents file {path} is {reason}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ResumeError(CrawlError):
    STORE_EMPTY = "store-empty"

    def __init__(self, source: str, reason: str = STORE_EMPTY) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot resume, {source} appears to be empty")


class FetchError(CrawlError):
    """The page could not be fetched at all (connection-level failure)."""

    def __init__(self, url: str, detail: str | None = None) -> None:
        self.url = url
        message = f"Unable to load {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ElementNotFoundError(CrawlError):
    """A selector did not resolve on the current page within the wait."""

    def __init__(self, selector: str, timeout: float) -> None:
        self.selector = selector
        self.timeout  = timeout
        super().__init__(f"No element matching {selector!r} within {timeout:g}s")
