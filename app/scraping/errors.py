"""
Exception taxonomy for the comparison and selector detection engine.
"""

from __future__ import annotations


class CompareEngineError(Exception):
    """Base exception for comparison engine failures."""


class CompareValidationError(CompareEngineError):
    """Raised when a caller supplies a missing or malformed input."""


class DetectionFailure(CompareEngineError):
    """Raised when no repeating product container could be inferred."""


class RegistryUnavailableError(CompareEngineError):
    """Raised when competitor configurations cannot be read."""


class CompetitorFetchError(CompareEngineError):
    """
    Per-competitor scrape failure. Absorbed by the orchestrator.
    """

    def __init__(self, competitor: str, message: str) -> None:
        super().__init__(f"{competitor}: {message}")
        self.competitor = competitor


class CompetitorTimeoutError(CompetitorFetchError):
    """Raised when a competitor job runs past its deadline."""


class NoProductNodesError(CompetitorFetchError):
    """Raised when the container selector matches nothing."""


class PriceParseError(CompetitorFetchError):
    """Raised when product nodes exist but none carry a usable name and price."""


class PageFetchError(Exception):
    """Raised by page fetchers when a page cannot be rendered."""


class PageFetchTimeout(PageFetchError):
    """Raised by page fetchers when rendering exceeds its time allowance."""
