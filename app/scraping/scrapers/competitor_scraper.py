"""
Scrape job for one competitor: render, extract, normalize.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from app.domain.compare import CompetitorJobState, ProductMatch
from app.scraping.config.models import CompetitorConfig
from app.scraping.dom import SelectorSyntaxError
from app.scraping.errors import (
    CompetitorFetchError,
    CompetitorTimeoutError,
    NoProductNodesError,
    PageFetchError,
    PageFetchTimeout,
    PriceParseError,
)
from app.scraping.fetchers.base import PageFetcher, RenderSettle
from app.scraping.logging_utils import elapsed_ms, log_event
from app.scraping.normalization import build_search_url
from app.scraping.parsing import ProductNodeParser

logger = logging.getLogger(__name__)

StateCallback = Callable[[CompetitorJobState], None]


def _ignore_state(state: CompetitorJobState) -> None:
    return None


class CompetitorScraper:
    """
    Runs the render → extract pipeline for one competitor configuration.
    """

    def __init__(
        self,
        *,
        config: CompetitorConfig,
        fetcher: PageFetcher,
        settle: RenderSettle | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.settle = settle

    def search_url(self, product_name: str) -> str:
        try:
            return build_search_url(self.config.search_url_template, product_name)
        except ValueError as exc:
            raise CompetitorFetchError(
                self.config.name,
                f"invalid search URL template {self.config.search_url_template!r}: {exc}",
            ) from exc

    def scrape(
        self,
        product_name: str,
        *,
        deadline: float | None = None,
        on_state: StateCallback = _ignore_state,
    ) -> list[ProductMatch]:
        """
        Scrape search results for `product_name`.

        Raises a CompetitorFetchError subclass on any failure; the caller
        decides whether that is fatal.
        """

        started_at = time.monotonic()
        if deadline is None:
            deadline = started_at + self.config.timeout_seconds
        search_url = self.search_url(product_name)

        on_state(CompetitorJobState.RENDERING)
        log_event(
            logger,
            logging.INFO,
            "competitor_render_started",
            competitor=self.config.name,
            search_url=search_url,
        )
        try:
            document = self.fetcher.fetch(
                search_url,
                timeout_seconds=self._remaining(deadline),
                settle=self.settle,
            )
        except PageFetchTimeout as exc:
            raise CompetitorTimeoutError(self.config.name, str(exc)) from exc
        except PageFetchError as exc:
            raise CompetitorFetchError(self.config.name, str(exc)) from exc

        self._remaining(deadline)
        on_state(CompetitorJobState.EXTRACTING)
        try:
            outcome = ProductNodeParser.extract(
                document=document,
                config=self.config,
                search_url=search_url,
            )
        except SelectorSyntaxError as exc:
            raise CompetitorFetchError(self.config.name, str(exc)) from exc

        if outcome.nodes_found == 0:
            raise NoProductNodesError(
                self.config.name,
                f"container selector {self.config.selectors.container!r} matched nothing",
            )
        if not outcome.products:
            raise PriceParseError(
                self.config.name,
                f"none of {outcome.nodes_processed} product nodes had a name and parsable price",
            )

        log_event(
            logger,
            logging.INFO,
            "competitor_extraction_completed",
            competitor=self.config.name,
            nodes_found=outcome.nodes_found,
            nodes_processed=outcome.nodes_processed,
            products=len(outcome.products),
            dropped=outcome.dropped,
            duration_ms=elapsed_ms(started_at),
        )
        return outcome.products

    def _remaining(self, deadline: float) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise CompetitorTimeoutError(
                self.config.name,
                f"exceeded timeout of {self.config.timeout_ms}ms",
            )
        return remaining
