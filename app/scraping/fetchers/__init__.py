"""
Page fetcher implementations and factory.
"""

from __future__ import annotations

from app.scraping.config.models import ComparisonSettings
from app.scraping.fetchers.base import PageFetcher, RenderSettle
from app.scraping.fetchers.http_fetcher import HttpPageFetcher
from app.scraping.fetchers.pool import PooledPageFetcher, RenderSlotPool


def build_page_fetcher(settings: ComparisonSettings) -> PooledPageFetcher:
    """
    Build the configured fetcher wrapped in a bounded render pool.
    """

    fetcher: PageFetcher
    if settings.page_fetcher == "http":
        fetcher = HttpPageFetcher(
            user_agent=settings.user_agent,
            max_retries=settings.http_max_retries,
            backoff_initial_seconds=settings.http_backoff_seconds,
        )
    else:
        from app.scraping.fetchers.playwright_fetcher import PlaywrightPageFetcher

        fetcher = PlaywrightPageFetcher(
            user_agent=settings.user_agent,
            headless=settings.headless,
        )
    return PooledPageFetcher(fetcher, RenderSlotPool(max_slots=settings.max_render_contexts))


__all__ = [
    "HttpPageFetcher",
    "PageFetcher",
    "PooledPageFetcher",
    "RenderSettle",
    "RenderSlotPool",
    "build_page_fetcher",
]
