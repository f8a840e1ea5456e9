from __future__ import annotations
import logging

from dependents_crawler.domain.entities import PageElement
from dependents_crawler.domain.errors import ElementNotFoundError, NavigationError
from dependents_crawler.domain.interfaces import IPageFetcher

log = logging.getLogger(__name__)

ELEMENT_TIMEOUT = 15.0

# The pagination block holds two controls, "Previous" then "Next". A control
# that leads somewhere is an <a>; on the first/last page the dead end is a
# disabled <button> instead.
_CONTROLS = "#dependents > div.paginate-container > div"

PREVIOUS_SELECTOR          = f"{_CONTROLS} > a:nth-child(1)"
PREVIOUS_FALLBACK_SELECTOR = f"{_CONTROLS} > button"
NEXT_SELECTOR              = f"{_CONTROLS} > a:nth-child(2)"
SOLE_CONTROL_SELECTOR      = f"{_CONTROLS} > a, {_CONTROLS} > button:last-child"


def is_disabled(element: PageElement) -> bool:
    if element.attribute("disabled") is not None:
        return True
    return (element.attribute("aria-disabled") or "").lower() == "true"


class PaginationNavigator:
    """
    Resolves where the Previous and Next controls of the current page lead.

    Each lookup has three outcomes:
      - a URL            → that page exists
      - None             → boundary reached (first/last page), not an error
      - NavigationError  → the controls could not be found at all
    """

    def __init__(self, element_timeout: float = ELEMENT_TIMEOUT) -> None:
        self._timeout = element_timeout

    async def previous_page_url(self, page: IPageFetcher) -> str | None:
        try:
            element = await page.wait_for_selector(PREVIOUS_SELECTOR, self._timeout)
        except ElementNotFoundError:
            try:
                element = await page.wait_for_selector(PREVIOUS_FALLBACK_SELECTOR, self._timeout)
            except ElementNotFoundError as exc:
                raise NavigationError(NavigationError.PREVIOUS) from exc

        return self._link_target(element, NavigationError.PREVIOUS)

    async def next_page_url(self, page: IPageFetcher) -> str | None:
        try:
            element = await page.wait_for_selector(NEXT_SELECTOR, self._timeout)
        except ElementNotFoundError:
            try:
                # Only a Previous link left: this is the last page.
                if await self.previous_page_url(page) is not None:
                    return None
                # First page without a Next link; on a one-page listing both controls are disabled buttons.
                element = await page.wait_for_selector(SOLE_CONTROL_SELECTOR, self._timeout)
            except (ElementNotFoundError, NavigationError) as exc:
                raise NavigationError(NavigationError.NEXT) from exc

        return self._link_target(element, NavigationError.NEXT)

    @staticmethod
    def _link_target(element: PageElement, direction: str) -> str | None:
        if is_disabled(element):
            log.debug("%s control is disabled", direction)
            return None

        href = element.attribute("href")
        if not href:
            raise NavigationError(direction, NavigationError.MISSING_HREF)
        return href
