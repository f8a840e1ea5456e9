"""
Page Extractor
--------------
Turns one rendered dependents listing page into Dependent records.

The listing is a `div.Box` inside `#dependents`. Its first child is the
header ("N Repositories / M Packages"), every following child is one
dependent. A row's text content reads like

    octo-org  /  some-repo   1,234   56

i.e. owner, a slash, repo, stars, forks, separated by arbitrary
whitespace. Counts may carry thousands separators.
"""

from __future__ import annotations
import logging
import re
from typing import NamedTuple

from dependents_crawler.domain.entities import Dependent, PageExtraction, RowFailure
from dependents_crawler.domain.errors import ElementNotFoundError, ParseError
from dependents_crawler.domain.interfaces import IPageFetcher

log = logging.getLogger(__name__)

ELEMENT_TIMEOUT = 15.0

CONTAINER_SELECTOR = "#dependents > div.Box"
ROW_SELECTOR       = "#dependents > div.Box > div:nth-child({index})"

# Index of the first data row (1-based, as in :nth-child); row 1 is the header.
FIRST_ROW_INDEX = 2

THOUSANDS_SEPARATOR = ","

_COUNT = r"[0-9]+(?:,[0-9]+)*"

ROW_PATTERN = re.compile(
    rf"""
    (?<!\S)(?P<owner>[^\s/]+)   # owner, starting at a token boundary
    \s*/\s+                      # the slash between owner and repo
    (?P<repo>\S+)
    \s+(?P<stars>{_COUNT})
    \s+(?P<forks>{_COUNT})
    """,
    re.VERBOSE,
)


class RowMatch(NamedTuple):
    owner: str
    repo:  str
    stars: int
    forks: int

    def to_dependent(self) -> Dependent:
        # The backward link is unknown until the navigator has looked at the page.
        return Dependent(owner=self.owner, repo=self.repo, stars=self.stars, forks=self.forks)


def parse_count(text: str) -> int:
    """'1,234' -> 1234. Raises ValueError on anything that is not a count."""
    digits = text.replace(THOUSANDS_SEPARATOR, "")
    if not digits.isascii() or not digits.isdigit():
        raise ValueError(f"not a count: {text!r}")
    return int(digits)


def match_row(text: str) -> RowMatch:
    """
    Match one row's text content against the dependent row shape.
    Raises ParseError(ROW_MISMATCH) if the row does not fit.
    """
    found = ROW_PATTERN.search(text or "")
    if found is None:
        raise ParseError(ParseError.ROW_MISMATCH, text=text)
    return RowMatch(
        owner = found["owner"],
        repo  = found["repo"],
        stars = parse_count(found["stars"]),
        forks = parse_count(found["forks"]),
    )


class PageExtractor:
    """
    Reads every data row of the current page.

    A missing container fails the whole page (usually the rate-limit page
    was served instead). A single malformed row is skipped and reported in
    the returned PageExtraction; the rest of the page still counts.
    """

    def __init__(self, element_timeout: float = ELEMENT_TIMEOUT) -> None:
        self._timeout = element_timeout

    async def extract(self, page: IPageFetcher) -> PageExtraction:
        try:
            container = await page.wait_for_selector(CONTAINER_SELECTOR, self._timeout)
        except ElementNotFoundError as exc:
            raise ParseError(ParseError.CONTAINER_NOT_FOUND) from exc

        row_count = container.child_count
        log.info("Found %d dependents, parsing them …", max(row_count - 1, 0))

        dependents: list[Dependent]  = []
        skipped:    list[RowFailure] = []

        for index in range(FIRST_ROW_INDEX, row_count + 1):
            text = ""
            try:
                row  = await page.wait_for_selector(ROW_SELECTOR.format(index=index), self._timeout)
                text = row.text
                dependents.append(match_row(text).to_dependent())
            except (ElementNotFoundError, ParseError) as exc:
                log.debug("Row %d skipped: %s", index, exc)
                skipped.append(RowFailure(index=index, text=text))

        return PageExtraction(dependents=dependents, skipped=skipped)
