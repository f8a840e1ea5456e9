from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Tag

from dependents_crawler.domain.entities import PageElement
from dependents_crawler.domain.errors import ElementNotFoundError, FetchError
from dependents_crawler.domain.interfaces import IPageFetcher

log = logging.getLogger(__name__)

REQUEST_TIMEOUT    = 30.0
MAX_RETRIES        = 3
DEFAULT_USER_AGENT = "dependents-crawler/1.0 (+https://github.com)"


class HttpPageFetcher(IPageFetcher):
    """
    Concrete implementation of IPageFetcher over plain HTTP.

    The constructor receives an httpx.AsyncClient (injected) rather than
    creating one internally. This lets callers control the client lifecycle
    and makes testing trivial — just pass a client built on MockTransport.

    GitHub serves the dependents listing fully rendered, so once a page is
    fetched its document is final: a selector that does not match now will
    never match, and wait_for_selector fails straight away instead of
    sitting out the timeout.
    """

    def __init__(
        self,
        client:          httpx.AsyncClient,
        user_agent:      str   = DEFAULT_USER_AGENT,
        request_timeout: float = REQUEST_TIMEOUT,
        max_retries:     int   = MAX_RETRIES,
        retry_backoff:   float = 1.0,
    ) -> None:
        self._client          = client
        self._request_timeout = request_timeout
        self._max_retries     = max_retries
        self._retry_backoff   = retry_backoff
        self._headers = {
            "User-Agent": user_agent,
            "Accept":     "text/html,application/xhtml+xml",
        }
        self._url:  str | None           = None
        self._html: str                  = ""
        self._soup: BeautifulSoup | None = None

    @property
    def current_url(self) -> str | None:
        return self._url

    async def navigate_to(self, url: str) -> None:
        """
        Fetch `url` and make it the current page, retrying connection
        failures with exponential backoff.

        HTTP error statuses are NOT retried: GitHub answers rate limiting
        with an error page, and that page is rendered like any other so the
        extractor can report it.
        """
        target = urljoin(self._url, url) if self._url else url

        for attempt in range(self._max_retries):
            try:
                response = await self._client.get(
                    target,
                    headers=self._headers,
                    timeout=self._request_timeout,
                    follow_redirects=True,
                )
                break
            except httpx.RequestError as exc:
                wait = self._retry_backoff * 2 ** attempt   # 1s, 2s, 4s …
                log.warning(
                    "Request error attempt %d/%d for %s: %s — retrying in %.0fs",
                    attempt + 1, self._max_retries, target, exc, wait,
                )
                await asyncio.sleep(wait)
        else:
            raise FetchError(target, f"exhausted {self._max_retries} retries")

        if response.status_code >= 400:
            log.warning("%s answered HTTP %d", target, response.status_code)

        self._url  = str(response.url)
        self._html = response.text
        self._soup = BeautifulSoup(self._html, "lxml")
        log.debug("Loaded %s (%d bytes)", self._url, len(self._html))

    async def wait_for_selector(self, selector: str, timeout: float) -> PageElement:
        if self._soup is None:
            raise ElementNotFoundError(selector, timeout)

        tag = self._soup.select_one(selector)
        if tag is None:
            raise ElementNotFoundError(selector, timeout)
        return self._to_element(tag)

    def snapshot(self, path: str) -> None:
        Path(path).write_text(self._html, encoding="utf-8")

    @staticmethod
    def _to_element(tag: Tag) -> PageElement:
        """
        Translate a BeautifulSoup tag into our PageElement.

        Multi-valued attributes (class, rel) come back from BeautifulSoup
        as lists; they are joined the way they appear in the markup.
        """
        attributes = {
            name: " ".join(value) if isinstance(value, list) else value
            for name, value in tag.attrs.items()
        }
        return PageElement(
            text        = tag.get_text(),
            attributes  = attributes,
            child_count = len(tag.find_all(True, recursive=False)),
        )
