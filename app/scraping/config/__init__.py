"""
Config helpers for competitor comparison.
"""

from app.scraping.config.loader import (
    competitor_config_from_mapping,
    get_comparison_settings,
    get_detection_settings,
    load_competitor_configs,
    normalize_selectors,
)
from app.scraping.config.models import (
    CompetitorConfig,
    CompetitorSelectors,
    ComparisonSettings,
    DetectionSettings,
)

__all__ = [
    "CompetitorConfig",
    "CompetitorSelectors",
    "ComparisonSettings",
    "DetectionSettings",
    "competitor_config_from_mapping",
    "get_comparison_settings",
    "get_detection_settings",
    "load_competitor_configs",
    "normalize_selectors",
]
