"""
app/domain/compare.py

Domain models for live competitor comparison and selector detection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from app.scraping.config.models import CompetitorSelectors


class CompetitorJobState(str, Enum):
    """
    Lifecycle of one per-competitor scrape job.
    """

    PENDING = "pending"
    RENDERING = "rendering"
    EXTRACTING = "extracting"
    SUCCEEDED = "succeeded"
    FAILED_TIMEOUT = "failed_timeout"
    FAILED_ERROR = "failed_error"

    @property
    def is_terminal(self) -> bool:
        return self in {
            CompetitorJobState.SUCCEEDED,
            CompetitorJobState.FAILED_TIMEOUT,
            CompetitorJobState.FAILED_ERROR,
        }


@dataclass(frozen=True)
class ProductMatch:
    """
    One normalized product scraped from a competitor search page.
    """

    competitor_name: str
    product_name: str
    price: float
    product_url: str
    source_search_url: str
    price_text: str = ""
    image_url: str | None = None


@dataclass(frozen=True)
class CompetitorScrapeSummary:
    """
    Diagnostic outcome for one competitor within a comparison.
    """

    competitor: str
    state: CompetitorJobState
    results_count: int
    duration_ms: int
    search_url: str
    error: str | None = None


@dataclass(frozen=True)
class ComparisonResult:
    """
    Merged, price-sorted output of one comparison call.
    """

    product_name: str
    results: list[ProductMatch]
    duration_ms: int
    summaries: list[CompetitorScrapeSummary] = field(default_factory=list)

    @property
    def total_results(self) -> int:
        return len(self.results)


@dataclass(frozen=True)
class DetectionResult:
    """
    Inferred selector set for a competitor search page.
    """

    selectors: CompetitorSelectors
    confidence: int
    container_count: int
    sampled: int

    def __post_init__(self) -> None:
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"confidence must be within [0, 100], got {self.confidence}.")
