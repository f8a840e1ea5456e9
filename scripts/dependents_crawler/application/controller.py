from __future__ import annotations
import logging

from dependents_crawler.domain.entities import CrawlState, Dependent
from dependents_crawler.domain.errors import ResumeError
from dependents_crawler.domain.interfaces import IDeduplicator, IDependentStore, IPageFetcher
from .extractor import PageExtractor
from .navigator import PaginationNavigator

log = logging.getLogger(__name__)


class CrawlController:
    """
    Walks the dependents listing one page at a time:

        extract → dedup → stamp backward link → persist → navigate → repeat

    Every page is persisted before moving on, so an abort (rate limit page,
    missing controls, unreadable store) never loses pages already saved.

    Two entry points, each usable once per instance:
      - start_fresh(): the fetcher already sits on the first listing page;
        the store is wiped before the loop.
      - resume(): picks up after the last page recorded in the store.

    All dependencies are injected, so tests can drive the state machine
    with an in-memory fetcher and store.
    """

    def __init__(
        self,
        fetcher:      IPageFetcher,
        store:        IDependentStore,
        deduplicator: IDeduplicator,
        extractor:    PageExtractor | None = None,
        navigator:    PaginationNavigator | None = None,
    ) -> None:
        self._fetcher      = fetcher
        self._store        = store
        self._deduplicator = deduplicator
        self._extractor    = extractor or PageExtractor()
        self._navigator    = navigator or PaginationNavigator()

        self._state: CrawlState | None = None
        # True only on a fresh start, until the first page is persisted.
        self._overwrite = False

        self.pages_crawled    = 0
        self.dependents_saved = 0

    @property
    def state(self) -> CrawlState | None:
        return self._state

    async def start_fresh(self) -> CrawlState:
        self._enter(CrawlState.FRESH_START)
        log.info("Starting crawl at %s …", self._fetcher.current_url)
        try:
            self._store.initialize()
            self._overwrite = True
            await self._page_loop()
        except Exception:
            self._state = CrawlState.ABORTED
            raise
        return self._state

    async def resume(self) -> CrawlState:
        self._enter(CrawlState.RESUMING)
        log.info("Resuming crawl from last dependent in %s …", self._store.location)
        try:
            last = self._store.last()
            if last is None:
                raise ResumeError(self._store.location)

            if last.previous_page_url is not None:
                # The stored link points at the page BEFORE the last one completed.
                await self._fetcher.navigate_to(last.previous_page_url)
                next_url = await self._navigator.next_page_url(self._fetcher)
                if next_url is None:
                    log.info("Reached last dependency page, nothing left to crawl")
                    self._state = CrawlState.DONE
                    return self._state
                await self._fetcher.navigate_to(next_url)

            await self._page_loop()
        except Exception:
            self._state = CrawlState.ABORTED
            raise
        return self._state

    def _enter(self, state: CrawlState) -> None:
        if self._state is not None:
            raise RuntimeError(f"crawl already ran (state: {self._state.value})")
        self._state = state

    async def _page_loop(self) -> None:
        while True:
            self._state = CrawlState.EXTRACTING
            extraction = await self._extractor.extract(self._fetcher)
            for failure in extraction.skipped:
                log.warning("Skipping dependent row %d that could not be parsed: %r", failure.index, failure.text)

            batch = self._deduplicator.filter_fresh(self._store.load(), extraction.dependents)

            self._state = CrawlState.NAVIGATING
            previous_url = await self._navigator.previous_page_url(self._fetcher)
            if previous_url is not None:
                batch = [d.with_previous_page(previous_url) for d in batch]

            self._state = CrawlState.PERSISTING
            saved = self._persist(batch)
            self.pages_crawled    += 1
            self.dependents_saved += len(saved)
            log.info(
                "Page %d | saved %d dependents to %s | running total: %d",
                self.pages_crawled, len(saved), self._store.location, self.dependents_saved,
            )

            self._state = CrawlState.NAVIGATING
            next_url = await self._navigator.next_page_url(self._fetcher)
            if next_url is None:
                log.info("Reached last dependency page, exiting …")
                self._state = CrawlState.DONE
                return

            self._state = CrawlState.FETCHING
            await self._fetcher.navigate_to(next_url)

    def _persist(self, batch: list[Dependent]) -> list[Dependent]:
        if self._overwrite:
            self._store.initialize()
        saved = self._store.append_deduped(batch)
        # From here on this run only appends.
        self._overwrite = False
        return saved
