"""
app/services/compare_service.py

Service orchestration for live competitor price comparison and selector detection.
"""

from __future__ import annotations

import logging
import threading
from functools import lru_cache

from app.domain.compare import ComparisonResult, DetectionResult
from app.scraping.config import (
    ComparisonSettings,
    DetectionSettings,
    get_comparison_settings,
    get_detection_settings,
)
from app.scraping.detection import SelectorDetector
from app.scraping.errors import CompareValidationError, DetectionFailure
from app.scraping.fetchers import PageFetcher, RenderSettle, build_page_fetcher
from app.scraping.logging_utils import log_event
from app.scraping.normalization import is_http_url
from app.scraping.orchestrator import ScrapeOrchestrator
from app.scraping.registry import CompetitorRegistry

logger = logging.getLogger(__name__)


class CompareService:
    """
    Entry point used by the API and CLI. Owns the shared render pool so that
    concurrent requests stay within one bound.
    """

    def __init__(
        self,
        *,
        fetcher: PageFetcher | None = None,
        comparison_settings: ComparisonSettings | None = None,
        detection_settings: DetectionSettings | None = None,
    ) -> None:
        self._comparison_settings = comparison_settings or get_comparison_settings()
        self._detection_settings = detection_settings or get_detection_settings()
        self._fetcher = fetcher
        self._fetcher_lock = threading.Lock()

    @property
    def accept_confidence(self) -> int:
        return self._detection_settings.accept_confidence

    @property
    def fetcher(self) -> PageFetcher:
        with self._fetcher_lock:
            if self._fetcher is None:
                self._fetcher = build_page_fetcher(self._comparison_settings)
            return self._fetcher

    def search(self, product_name: str, registry: CompetitorRegistry) -> ComparisonResult:
        """
        Compare `product_name` across every active competitor in `registry`.

        Raises CompareValidationError on blank input; RegistryUnavailableError
        from the registry propagates unchanged.
        """

        cleaned = (product_name or "").strip()
        if not cleaned:
            raise CompareValidationError("Product name is required.")

        configs = registry.list_active()
        settings = self._comparison_settings
        orchestrator = ScrapeOrchestrator(
            fetcher=self.fetcher,
            settle=RenderSettle(
                settle_delay_ms=settings.settle_delay_ms,
                scroll_cycles=settings.scroll_cycles,
                scroll_delay_ms=settings.scroll_delay_ms,
            ),
            overall_budget_ms=settings.overall_budget_ms,
        )
        return orchestrator.compare(cleaned, configs)

    def detect_selectors(self, search_url: str) -> DetectionResult:
        """
        Infer a selector set for an unseen competitor search page.

        A low-confidence result is still returned; callers decide whether to
        accept it via `is_accepted`.
        """

        cleaned = (search_url or "").strip()
        if not cleaned:
            raise CompareValidationError("Search URL is required.")
        if not is_http_url(cleaned):
            raise CompareValidationError(f"Search URL must be an absolute http(s) URL: {cleaned}")

        detector = SelectorDetector(fetcher=self.fetcher, settings=self._detection_settings)
        result = detector.detect(cleaned)
        if result is None:
            log_event(logger, logging.INFO, "selector_detection_failed", search_url=cleaned)
            raise DetectionFailure(
                "Could not detect selectors automatically. Please enter them manually."
            )
        return result

    def is_accepted(self, result: DetectionResult) -> bool:
        return result.confidence >= self.accept_confidence

    def close(self) -> None:
        with self._fetcher_lock:
            if self._fetcher is not None:
                self._fetcher.close()


@lru_cache(maxsize=1)
def get_compare_service() -> CompareService:
    """
    Build and cache the comparison service.
    """

    return CompareService()
