"""Shared fixtures: GitHub-like dependents pages served through httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from dependents_crawler.application.deduplicator import RecordDeduplicator
from dependents_crawler.infrastructure.json_store import JsonDependentStore
from dependents_crawler.infrastructure.page_fetcher import HttpPageFetcher

LISTING_URL = "https://github.com/ownerA/repoB/network/dependents"


def page_url(n: int) -> str:
    if n == 1:
        return LISTING_URL
    return f"{LISTING_URL}?dependents_after=cursor{n}"


def row_html(owner: str, repo: str, stars: str, forks: str) -> str:
    return f"""
    <div class="Box-row d-flex flex-items-center" data-test-id="dg-repo-pkg-dependent">
      <img class="avatar mr-2" src="https://avatars.example/{owner}" width="20" height="20" alt="@{owner}">
      <span class="f5 color-fg-muted">
        <a data-hovercard-type="user" href="/{owner}">{owner}</a> /
        <a class="text-bold" href="/{owner}/{repo}">{repo}</a>
      </span>
      <div class="d-flex flex-auto flex-justify-end">
        <span class="color-fg-muted text-bold pl-3">
          <svg class="octicon octicon-star"></svg>
          {stars}
        </span>
        <span class="color-fg-muted text-bold pl-3">
          <svg class="octicon octicon-repo-forked"></svg>
          {forks}
        </span>
      </div>
    </div>"""


def control_html(label: str, href: str | None) -> str:
    if href is None:
        return f'<button class="btn btn-outline BtnGroup-item" disabled="disabled">{label}</button>'
    return f'<a class="btn btn-outline BtnGroup-item" rel="nofollow" href="{href}">{label}</a>'


def pagination_html(previous: str | None, next: str | None) -> str:
    """None renders the disabled button GitHub shows on the first/last page."""
    return (
        '<div class="paginate-container"><div class="BtnGroup" data-test-selector="pagination">'
        f"{control_html('Previous', previous)}{control_html('Next', next)}"
        "</div></div>"
    )


def listing_html(rows: list[str], pagination: str | None = "") -> str:
    return f"""<html><body>
    <div id="dependents">
      <div class="Box">
        <div class="Box-header clearfix">
          <a class="btn-link selected" href="#">{len(rows)} Repositories</a>
        </div>
        {''.join(rows)}
      </div>
      {pagination or ''}
    </div>
    </body></html>"""


RATE_LIMIT_HTML = "<html><body><h1>Whoa there!</h1><p>You have exceeded a secondary rate limit.</p></body></html>"


class FakeGitHub:
    """
    Serves a dict of url -> html (or (status, html)) and records every URL requested.
    Unknown URLs answer 404 with an empty body.
    """

    def __init__(self, pages: dict) -> None:
        self.pages = pages
        self.requested: list[str] = []
        self.headers: list[httpx.Headers] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        self.headers.append(request.headers)
        page = self.pages.get(url)
        if page is None:
            return httpx.Response(404, text="<html><body>Not Found</body></html>")
        status, html = page if isinstance(page, tuple) else (200, page)
        return httpx.Response(status, text=html, headers={"content-type": "text/html; charset=utf-8"})

    def fetcher(self, **kwargs) -> HttpPageFetcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return HttpPageFetcher(client, retry_backoff=0, **kwargs)


def two_page_listing() -> dict:
    """ownerA/repoB: page 1 with 3 dependents, page 2 with 2."""
    return {
        page_url(1): listing_html(
            [
                row_html("alice", "tool", "1,234", "56"),
                row_html("bob", "lib", "7", "0"),
                row_html("carol", "app", "12,345,678", "1,001"),
            ],
            pagination_html(None, page_url(2)),
        ),
        page_url(2): listing_html(
            [
                row_html("dave", "cli", "3", "1"),
                row_html("erin", "web", "42", "9"),
            ],
            pagination_html(page_url(1), None),
        ),
    }


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "dependents.json"


@pytest.fixture
def store(store_path):
    return JsonDependentStore(store_path, deduplicator=RecordDeduplicator())
