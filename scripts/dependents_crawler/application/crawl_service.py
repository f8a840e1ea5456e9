from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from dependents_crawler.domain.entities import CrawlResult, CrawlState
from dependents_crawler.domain.errors import CrawlError, ParseError
from dependents_crawler.domain.interfaces import IPageFetcher
from dependents_crawler.domain.targets import DEFAULT_BASE_URL, TargetRepo
from .controller import CrawlController

log = logging.getLogger(__name__)

RATE_LIMIT_HINT = (
    "Try running the crawler again in a few minutes with resume set to true. "
    "NOTE: running again WITHOUT resume overwrites the dependents file if the same "
    "file name is used; pass the same file and true as third argument to continue."
)


class DependentsCrawlService:
    """
    The top-level use case: harvest the dependents of one target repository.

    Receives its collaborators via constructor injection. A fresh
    CrawlController is built per run through `controller_factory`.
    Crawl failures never escape: they are logged and reported in the
    returned CrawlResult.
    """

    def __init__(
        self,
        fetcher:            IPageFetcher,
        controller_factory: Callable[[], CrawlController],
        base_url:           str = DEFAULT_BASE_URL,
        snapshot_path:      str | None = None,
    ) -> None:
        self._fetcher            = fetcher
        self._controller_factory = controller_factory
        self._base_url           = base_url
        self._snapshot_path      = snapshot_path

    async def execute(self, target: TargetRepo, resume: bool = False) -> CrawlResult:
        """
        Run one crawl for `target`, fresh or resumed.
        Returns a CrawlResult describing what happened.
        """
        started_at = datetime.now(tz=timezone.utc)
        controller = self._controller_factory()

        log.info("Scraping dependents for %s | resume=%s", target, resume)

        try:
            # Resume repositions from the stored backward link when there is one.
            await self._fetcher.navigate_to(target.listing_url(self._base_url))
            if resume:
                state = await controller.resume()
            else:
                state = await controller.start_fresh()

            elapsed = (datetime.now(tz=timezone.utc) - started_at).total_seconds()
            log.info(
                "Crawl complete | %d pages | %d dependents saved | %.0fs",
                controller.pages_crawled, controller.dependents_saved, elapsed,
            )
            return CrawlResult(
                target           = target.full_name,
                status           = state.value,
                pages_crawled    = controller.pages_crawled,
                dependents_saved = controller.dependents_saved,
                elapsed_secs     = elapsed,
            )
        except Exception as exc:
            elapsed = (datetime.now(tz=timezone.utc) - started_at).total_seconds()
            log.error("Crawl failed: %s", exc, exc_info=not isinstance(exc, CrawlError))
            if isinstance(exc, ParseError) and exc.likely_rate_limited:
                log.error(RATE_LIMIT_HINT)
                self._save_snapshot()

            return CrawlResult(
                target           = target.full_name,
                status           = CrawlState.ABORTED.value,
                pages_crawled    = controller.pages_crawled,
                dependents_saved = controller.dependents_saved,
                elapsed_secs     = elapsed,
                error_message    = str(exc),
            )

    def _save_snapshot(self) -> None:
        if not self._snapshot_path:
            return
        try:
            self._fetcher.snapshot(self._snapshot_path)
        except OSError as exc:
            log.warning("Could not write page snapshot to %s: %s", self._snapshot_path, exc)
            return
        log.info("Saved the page that failed to parse to %s", self._snapshot_path)
