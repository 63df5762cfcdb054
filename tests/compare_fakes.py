"""
Test doubles and HTML builders shared by the comparison tests.
"""

from __future__ import annotations

import threading
import time
from urllib.parse import urlparse

from app.scraping.config.models import CompetitorConfig, CompetitorSelectors
from app.scraping.dom import QueryableDocument, SoupDocument
from app.scraping.errors import PageFetchTimeout
from app.scraping.fetchers.base import PageFetcher, RenderSettle


class FakePageFetcher(PageFetcher):
    """
    Serves canned HTML keyed by host name.

    A page value may be an exception instance, which is raised instead.
    `delays` sleep within the caller's timeout; `hangs` sleep regardless
    of it, imitating a fetch that ignores its deadline.
    """

    def __init__(
        self,
        pages: dict[str, str | Exception],
        *,
        delays: dict[str, float] | None = None,
        hangs: dict[str, float] | None = None,
    ) -> None:
        self.pages = pages
        self.delays = delays or {}
        self.hangs = hangs or {}
        self.calls: list[str] = []
        self.peak_concurrency = 0
        self._active = 0
        self._lock = threading.Lock()

    def fetch(
        self,
        url: str,
        *,
        timeout_seconds: float,
        settle: RenderSettle | None = None,
    ) -> QueryableDocument:
        host = urlparse(url).netloc
        with self._lock:
            self.calls.append(host)
            self._active += 1
            self.peak_concurrency = max(self.peak_concurrency, self._active)
        try:
            if host in self.hangs:
                time.sleep(self.hangs[host])
            delay = self.delays.get(host, 0.0)
            if delay:
                if delay > timeout_seconds:
                    time.sleep(timeout_seconds)
                    raise PageFetchTimeout(f"Timed out fetching {url}")
                time.sleep(delay)
            page = self.pages[host]
            if isinstance(page, Exception):
                raise page
            return SoupDocument.from_html(page, url=url)
        finally:
            with self._lock:
                self._active -= 1


def product_card(index: int, price: str, *, css_class: str = "product") -> str:
    return (
        f'<div class="{css_class}">'
        f'<a class="product-link" href="/p/{index}"><img src="/img/{index}.jpg" alt=""></a>'
        f'<h3 class="title">Acme Widget Model {index}</h3>'
        f'<span class="price">{price}</span>'
        "</div>"
    )


def results_page(cards: list[str], *, extra: str = "") -> str:
    return (
        "<html><head><title>Search</title></head><body>"
        f'{extra}<div class="grid">{"".join(cards)}</div>'
        "</body></html>"
    )


def make_config(
    name: str,
    host: str,
    *,
    max_results: int = 10,
    timeout_ms: int = 5000,
    is_active: bool = True,
) -> CompetitorConfig:
    return CompetitorConfig(
        name=name,
        base_url=f"https://{host}",
        search_url_template=f"https://{host}/search?q={{query}}",
        selectors=CompetitorSelectors(
            container=".product",
            name=".title",
            price=".price",
            image="img",
            url="a",
        ),
        max_results=max_results,
        timeout_ms=timeout_ms,
        is_active=is_active,
    )

