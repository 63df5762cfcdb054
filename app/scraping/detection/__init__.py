"""
Selector auto-detection.
"""

from app.scraping.detection.detector import FALLBACK_SELECTORS, SelectorDetector

__all__ = ["FALLBACK_SELECTORS", "SelectorDetector"]
