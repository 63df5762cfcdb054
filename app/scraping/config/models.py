"""
Comparison engine configuration models.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

DEFAULT_MAX_RESULTS = 10
DEFAULT_TIMEOUT_MS = 30000


@dataclass(frozen=True)
class CompetitorSelectors:
    """
    CSS selectors used to scrape one competitor's search results page.
    """

    container: str = ".product-item"
    name: str = ".product-name"
    price: str = ".product-price"
    image: str = ".product-image img"
    url: str = ".product-link"

    def as_dict(self) -> dict[str, str]:
        return {
            "container": self.container,
            "name": self.name,
            "price": self.price,
            "image": self.image,
            "url": self.url,
        }


@dataclass(frozen=True)
class CompetitorConfig:
    """
    One competitor scrape target as supplied by the registry.
    """

    name: str
    base_url: str
    search_url_template: str
    selectors: CompetitorSelectors = field(default_factory=CompetitorSelectors)
    max_results: int = DEFAULT_MAX_RESULTS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    is_active: bool = True
    id: uuid.UUID | None = None

    def __post_init__(self) -> None:
        if self.max_results <= 0:
            raise ValueError(f"max_results must be positive for competitor '{self.name}'.")
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive for competitor '{self.name}'.")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


@dataclass(frozen=True)
class ComparisonSettings:
    """
    Runtime settings for live competitor comparison.
    """

    page_fetcher: str
    user_agent: str
    headless: bool
    max_render_contexts: int
    overall_budget_ms: int | None
    settle_delay_ms: int
    scroll_cycles: int
    scroll_delay_ms: int
    http_max_retries: int
    http_backoff_seconds: float
    config_path: str


@dataclass(frozen=True)
class DetectionSettings:
    """
    Tunable thresholds for selector auto-detection.
    """

    timeout_ms: int = 30000
    settle_delay_ms: int = 3000
    scroll_delay_ms: int = 1500
    sample_size: int = 5
    min_repetitions: int = 2
    min_usable_samples: int = 2
    accept_confidence: int = 50
    near_equal_ratio: float = 0.8
    max_candidate_groups: int = 5
    completeness_weight: float = 50.0
    consistency_weight: float = 30.0
    repetition_weight: float = 20.0
    repetition_saturation: int = 10
