"""
Headless Chromium renderer built on Playwright's sync API.
"""

from __future__ import annotations

import logging
import time

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from app.scraping.dom import QueryableDocument, SoupDocument
from app.scraping.errors import PageFetchError, PageFetchTimeout
from app.scraping.fetchers.base import PageFetcher, RenderSettle, remaining_seconds
from app.scraping.logging_utils import elapsed_ms, log_event

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]
VIEWPORT = {"width": 1920, "height": 1080}


class PlaywrightPageFetcher(PageFetcher):
    """
    Renders each URL in a fresh browser context so worker threads never share
    Playwright objects.
    """

    def __init__(self, *, user_agent: str, headless: bool = True) -> None:
        self._user_agent = user_agent
        self._headless = headless

    def fetch(
        self,
        url: str,
        *,
        timeout_seconds: float,
        settle: RenderSettle | None = None,
    ) -> QueryableDocument:
        started_at = time.monotonic()
        deadline = started_at + timeout_seconds
        try:
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch(
                    headless=self._headless,
                    args=LAUNCH_ARGS,
                    timeout=_to_ms(remaining_seconds(deadline, url=url)),
                )
                try:
                    context = browser.new_context(
                        user_agent=self._user_agent,
                        viewport=VIEWPORT,
                        bypass_csp=True,
                    )
                    page = context.new_page()
                    page.goto(
                        url,
                        wait_until="domcontentloaded",
                        timeout=_to_ms(remaining_seconds(deadline, url=url)),
                    )
                    if settle is not None:
                        self._settle(page, settle=settle, deadline=deadline)
                    html = page.content()
                    final_url = page.url or url
                finally:
                    browser.close()
        except PlaywrightTimeoutError as exc:
            raise PageFetchTimeout(f"Timed out rendering {url}: {exc}") from exc
        except PlaywrightError as exc:
            raise PageFetchError(f"Failed to render {url}: {exc}") from exc

        log_event(
            logger,
            logging.DEBUG,
            "page_rendered",
            url=url,
            final_url=final_url,
            duration_ms=elapsed_ms(started_at),
            html_bytes=len(html),
        )
        return SoupDocument.from_html(html, url=final_url)

    @staticmethod
    def _settle(page: Page, *, settle: RenderSettle, deadline: float) -> None:
        # Best effort: settling stops quietly when the allowance runs low.
        budget_ms = _to_ms(deadline - time.monotonic())
        delay = min(settle.settle_delay_ms, budget_ms)
        if delay > 0:
            page.wait_for_timeout(delay)

        for _ in range(settle.scroll_cycles):
            budget_ms = _to_ms(deadline - time.monotonic())
            if budget_ms <= 0:
                return
            page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
            delay = min(settle.scroll_delay_ms, budget_ms)
            if delay > 0:
                page.wait_for_timeout(delay)


def _to_ms(seconds: float) -> int:
    return max(0, int(seconds * 1000))
