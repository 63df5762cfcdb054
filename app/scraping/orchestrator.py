"""
Concurrent fan-out of per-competitor scrape jobs with per-job deadlines.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from app.domain.compare import (
    ComparisonResult,
    CompetitorJobState,
    CompetitorScrapeSummary,
    ProductMatch,
)
from app.scraping.config.models import CompetitorConfig
from app.scraping.errors import CompetitorFetchError, CompetitorTimeoutError
from app.scraping.fetchers.base import PageFetcher, RenderSettle
from app.scraping.logging_utils import elapsed_ms, log_event
from app.scraping.scrapers import CompetitorScraper

logger = logging.getLogger(__name__)


class _CompetitorJob:
    """
    One scrape job. Its state is written by the worker thread until the
    orchestrator records a terminal state; later worker updates are ignored.
    """

    def __init__(self, scraper: CompetitorScraper, product_name: str) -> None:
        self.scraper = scraper
        self.config = scraper.config
        try:
            self.search_url = scraper.search_url(product_name)
        except CompetitorFetchError:
            # The worker raises the same error, which fails this job only.
            self.search_url = scraper.config.search_url_template
        self.product_name = product_name
        self.results: list[ProductMatch] = []
        self.error: str | None = None
        self.started_at = 0.0
        self.deadline = 0.0
        self.finished_at: float | None = None
        self._state = CompetitorJobState.PENDING
        self._state_lock = threading.Lock()
        self._future: Future[list[ProductMatch]] | None = None

    @property
    def state(self) -> CompetitorJobState:
        with self._state_lock:
            return self._state

    def set_state(self, state: CompetitorJobState) -> None:
        with self._state_lock:
            if self._state.is_terminal:
                return
            self._state = state

    def launch(self, executor: ThreadPoolExecutor) -> None:
        self.started_at = time.monotonic()
        self.deadline = self.started_at + self.config.timeout_seconds
        self._future = executor.submit(self._run)

    def _run(self) -> list[ProductMatch]:
        return self.scraper.scrape(
            self.product_name,
            deadline=self.deadline,
            on_state=self.set_state,
        )

    def await_terminal(self, *, budget_deadline: float | None) -> None:
        """
        Block until the job finishes, its deadline passes, or the outer budget runs out.
        """

        if self._future is None:
            raise RuntimeError(f"Job for competitor '{self.config.name}' was never launched.")

        wait_until = self.deadline
        if budget_deadline is not None:
            wait_until = min(wait_until, budget_deadline)

        try:
            products = self._future.result(timeout=max(0.0, wait_until - time.monotonic()))
        except FutureTimeoutError:
            self._future.cancel()
            reason = (
                f"exceeded timeout of {self.config.timeout_ms}ms"
                if wait_until == self.deadline
                else "abandoned when the comparison budget ran out"
            )
            self._finish(CompetitorJobState.FAILED_TIMEOUT, error=reason)
        except CompetitorTimeoutError as exc:
            self._finish(CompetitorJobState.FAILED_TIMEOUT, error=str(exc))
        except Exception as exc:
            self._finish(CompetitorJobState.FAILED_ERROR, error=str(exc) or type(exc).__name__)
        else:
            self.results = products
            self._finish(CompetitorJobState.SUCCEEDED)

    def _finish(self, state: CompetitorJobState, *, error: str | None = None) -> None:
        self.finished_at = time.monotonic()
        self.error = error
        self.set_state(state)
        level = logging.INFO if state is CompetitorJobState.SUCCEEDED else logging.WARNING
        log_event(
            logger,
            level,
            "competitor_scrape_succeeded" if error is None else "competitor_scrape_failed",
            competitor=self.config.name,
            state=state.value,
            results=len(self.results),
            duration_ms=self.duration_ms,
            search_url=self.search_url,
            error=error,
        )

    @property
    def duration_ms(self) -> int:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return max(0, int((end - self.started_at) * 1000))

    def summary(self) -> CompetitorScrapeSummary:
        return CompetitorScrapeSummary(
            competitor=self.config.name,
            state=self.state,
            results_count=len(self.results),
            duration_ms=self.duration_ms,
            search_url=self.search_url,
            error=self.error,
        )


class ScrapeOrchestrator:
    """
    Runs one scrape job per active competitor concurrently and merges the
    surviving entries into a single price-ascending list.
    """

    def __init__(
        self,
        *,
        fetcher: PageFetcher,
        settle: RenderSettle | None = None,
        overall_budget_ms: int | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._settle = settle
        self._overall_budget_ms = overall_budget_ms

    def compare(
        self,
        product_name: str,
        configs: Sequence[CompetitorConfig],
    ) -> ComparisonResult:
        started_at = time.monotonic()
        active = [config for config in configs if config.is_active]
        log_event(
            logger,
            logging.INFO,
            "compare_started",
            product_name=product_name,
            active_competitors=[config.name for config in active],
            skipped_inactive=len(configs) - len(active),
        )
        if not active:
            return ComparisonResult(
                product_name=product_name,
                results=[],
                duration_ms=elapsed_ms(started_at),
            )

        budget_deadline = None
        if self._overall_budget_ms:
            budget_deadline = started_at + self._overall_budget_ms / 1000.0

        jobs = [
            _CompetitorJob(
                CompetitorScraper(config=config, fetcher=self._fetcher, settle=self._settle),
                product_name,
            )
            for config in active
        ]

        executor = ThreadPoolExecutor(
            max_workers=len(jobs),
            thread_name_prefix="competitor-scrape",
        )
        try:
            for job in jobs:
                job.launch(executor)
            for job in jobs:
                job.await_terminal(budget_deadline=budget_deadline)
        finally:
            # Abandoned workers finish in the background; never wait on them here.
            executor.shutdown(wait=False, cancel_futures=True)

        merged = [product for job in jobs for product in job.results]
        merged.sort(key=lambda product: product.price)
        summaries = [job.summary() for job in jobs]

        result = ComparisonResult(
            product_name=product_name,
            results=merged,
            duration_ms=elapsed_ms(started_at),
            summaries=summaries,
        )
        log_event(
            logger,
            logging.INFO,
            "compare_completed",
            product_name=product_name,
            total_results=result.total_results,
            duration_ms=result.duration_ms,
            succeeded=sum(1 for item in summaries if item.state is CompetitorJobState.SUCCEEDED),
            failed=sum(1 for item in summaries if item.state is not CompetitorJobState.SUCCEEDED),
        )
        return result
