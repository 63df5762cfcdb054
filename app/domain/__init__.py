"""
app/domain package marker.
"""

from app.domain.compare import (
    ComparisonResult,
    CompetitorJobState,
    CompetitorScrapeSummary,
    DetectionResult,
    ProductMatch,
)

__all__ = [
    "ComparisonResult",
    "CompetitorJobState",
    "CompetitorScrapeSummary",
    "DetectionResult",
    "ProductMatch",
]
