from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from app.scraping.errors import PageFetchError, PageFetchTimeout
from app.scraping.fetchers.base import RenderSettle
from app.scraping.fetchers.playwright_fetcher import PlaywrightPageFetcher

URL = "https://alpha.example/search?q=widget"


class TestPlaywrightPageFetcher(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch("app.scraping.fetchers.playwright_fetcher.sync_playwright")
        self.sync_playwright = patcher.start()
        self.addCleanup(patcher.stop)

        playwright = self.sync_playwright.return_value.__enter__.return_value
        self.browser = playwright.chromium.launch.return_value
        self.page = self.browser.new_context.return_value.new_page.return_value
        self.page.url = URL
        self.page.content.return_value = '<html><body><div class="product">Rendered</div></body></html>'
        self.fetcher = PlaywrightPageFetcher(user_agent="compare-tests/1.0")

    def test_renders_settles_and_closes_browser(self) -> None:
        settle = RenderSettle(settle_delay_ms=10, scroll_cycles=2, scroll_delay_ms=5)

        document = self.fetcher.fetch(URL, timeout_seconds=5.0, settle=settle)

        self.assertEqual(document.select_first(".product").text(), "Rendered")
        self.assertEqual(self.page.evaluate.call_count, 2)
        self.assertEqual(self.page.wait_for_timeout.call_count, 3)
        self.page.goto.assert_called_once()
        self.assertEqual(self.page.goto.call_args.kwargs["wait_until"], "domcontentloaded")
        self.browser.close.assert_called_once()

    def test_navigation_timeout(self) -> None:
        self.page.goto.side_effect = PlaywrightTimeoutError("Timeout 5000ms exceeded.")

        with self.assertRaises(PageFetchTimeout):
            self.fetcher.fetch(URL, timeout_seconds=5.0)
        self.browser.close.assert_called_once()

    def test_render_error(self) -> None:
        self.page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

        with self.assertRaises(PageFetchError) as caught:
            self.fetcher.fetch(URL, timeout_seconds=5.0)
        self.assertNotIsInstance(caught.exception, PageFetchTimeout)


if __name__ == "__main__":
    unittest.main()
