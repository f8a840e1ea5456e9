"""
main.py — Dependency Wiring (Composition Root)
------------------------------------------------
This file has ONE job: wire all the pieces together and run the crawl.

It does NOT contain any crawl logic. It just:
  1. Parses and validates the command line
  2. Reads configuration from environment variables
  3. Creates concrete implementations of each interface
  4. Injects them into the classes that need them
  5. Calls the top-level use case (DependentsCrawlService.execute)
  6. Reports the result and exits

Usage:
    python scripts/main.py owner/repo dependents.json [true|false]

The third argument resumes an interrupted crawl from the last page
recorded in the dependents file. Without it the file is overwritten.

Dependency graph (what depends on what):
                         main.py  (wires everything)
                            │
              ┌─────────────┼──────────────┐
              ▼             ▼              ▼
   DependentsCrawlService   │     JsonDependentStore
              │             │
              ▼             ▼
       CrawlController   HttpPageFetcher
              │
    ┌─────────┼──────────────┐
    ▼         ▼              ▼
PageExtractor PaginationNavigator IDeduplicator
                                  (Record / Identity)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass

import httpx

# Domain
from dependents_crawler.domain.targets import DEFAULT_BASE_URL, TargetRepo

# Application layer
from dependents_crawler.application.controller import CrawlController
from dependents_crawler.application.crawl_service import DependentsCrawlService
from dependents_crawler.application.deduplicator import DEDUPLICATORS
from dependents_crawler.application.extractor import ELEMENT_TIMEOUT, PageExtractor
from dependents_crawler.application.navigator import PaginationNavigator

# Infrastructure layer
from dependents_crawler.infrastructure.json_store import JsonDependentStore
from dependents_crawler.infrastructure.page_fetcher import (
    DEFAULT_USER_AGENT,
    REQUEST_TIMEOUT,
    HttpPageFetcher,
)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_SNAPSHOT_PATH = "failed_page.html"


@dataclass(frozen=True)
class Settings:
    base_url:        str
    element_timeout: float
    request_timeout: float
    user_agent:      str
    dedup_key:       str
    snapshot_path:   str


def _env_seconds(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        value = -1.0
    if value <= 0:
        log.error("%s must be a positive number of seconds, got %r", name, raw)
        sys.exit(1)
    return value


def _read_env() -> Settings:
    """
    Read optional environment variables.
    Fails fast with a clear error if any is set to something unusable.
    """
    dedup_key = os.environ.get("CRAWL_DEDUP_KEY", "record").strip().lower()
    if dedup_key not in DEDUPLICATORS:
        log.error(
            "CRAWL_DEDUP_KEY must be one of %s, got %r",
            ", ".join(sorted(DEDUPLICATORS)), dedup_key,
        )
        sys.exit(1)

    return Settings(
        base_url        = os.environ.get("GITHUB_BASE_URL", DEFAULT_BASE_URL),
        element_timeout = _env_seconds("CRAWL_ELEMENT_TIMEOUT", ELEMENT_TIMEOUT),
        request_timeout = _env_seconds("CRAWL_REQUEST_TIMEOUT", REQUEST_TIMEOUT),
        user_agent      = os.environ.get("CRAWL_USER_AGENT", DEFAULT_USER_AGENT),
        dedup_key       = dedup_key,
        snapshot_path   = os.environ.get("CRAWL_SNAPSHOT_PATH", DEFAULT_SNAPSHOT_PATH),
    )

# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def target_repo(value: str) -> TargetRepo:
    try:
        return TargetRepo.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def dependents_file(value: str) -> str:
    if not value.lower().endswith(".json") or len(value) <= len(".json"):
        raise argparse.ArgumentTypeError(
            f"Expected dependents file to have .json extension. {value!r} was provided"
        )
    return value


def resume_flag(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered not in ("true", "false"):
        raise argparse.ArgumentTypeError(
            f"Expected resume to be true or false. {value!r} was provided"
        )
    return lowered == "true"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scrape the repositories that depend on a GitHub project into a JSON file"
    )
    parser.add_argument("target", type=target_repo, help="Project to scrape, as owner/repo")
    parser.add_argument("dependents_file", type=dependents_file, help="JSON file to save dependents to")
    parser.add_argument(
        "resume",
        nargs   = "?",
        type    = resume_flag,
        default = False,
        help    = "true to resume from the last page saved in dependents_file (default: false)",
    )
    return parser

# ---------------------------------------------------------------------------
# Dependency wiring
# ---------------------------------------------------------------------------


async def build_and_run(target: TargetRepo, path: str, resume: bool, settings: Settings) -> bool:
    """
    Wires all dependencies together and executes the crawl use case.

    This is the Composition Root — the only place that knows which
    concrete class implements each interface.
    Returns True when the crawl reached the last page.
    """
    async with httpx.AsyncClient() as client:
        # --- Wire the dependency graph bottom-up ---

        # Infrastructure implementations
        fetcher = HttpPageFetcher(
            client          = client,     # injected — the fetcher doesn't create this
            user_agent      = settings.user_agent,
            request_timeout = settings.request_timeout,
        )
        deduplicator = DEDUPLICATORS[settings.dedup_key]()
        store = JsonDependentStore(path, deduplicator=deduplicator)

        # Application services (receive infrastructure via injection)
        def new_controller() -> CrawlController:
            return CrawlController(
                fetcher      = fetcher,
                store        = store,
                deduplicator = deduplicator,
                extractor    = PageExtractor(settings.element_timeout),
                navigator    = PaginationNavigator(settings.element_timeout),
            )

        service = DependentsCrawlService(
            fetcher            = fetcher,
            controller_factory = new_controller,
            base_url           = settings.base_url,
            snapshot_path      = settings.snapshot_path,
        )

        # --- Execute ---
        result = await service.execute(target, resume=resume)

    # --- Report ---
    if result.succeeded:
        log.info(
            "✅ Done | %s | %d pages | %d dependents saved to %s | %.0fs",
            result.target, result.pages_crawled, result.dependents_saved, path, result.elapsed_secs,
        )
        return True

    log.error(
        "❌ Aborted | %s | %d dependents saved before failure | error: %s",
        result.target, result.dependents_saved, result.error_message,
    )
    return False


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    args = build_parser().parse_args()
    settings = _read_env()

    log.info("Scraping dependents for %s", args.target)
    log.info("Saving dependents to %s", args.dependents_file)

    ok = asyncio.run(build_and_run(args.target, args.dependents_file, args.resume, settings))
    sys.exit(0 if ok else 1)
