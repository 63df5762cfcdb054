"""
app/schemas package marker.
"""

from app.schemas.compare import (
    CompareSearchRequest,
    CompareSearchResponse,
    CompetitorConfigRequest,
    CompetitorConfigResponse,
    CompetitorListResponse,
    CompetitorSaveResponse,
    CompetitorSummaryResponse,
    DetectSelectorsRequest,
    DetectSelectorsResponse,
    MessageResponse,
    ProductMatchResponse,
    SelectorSet,
    SelectorSetInput,
)

__all__ = [
    "CompareSearchRequest",
    "CompareSearchResponse",
    "CompetitorConfigRequest",
    "CompetitorConfigResponse",
    "CompetitorListResponse",
    "CompetitorSaveResponse",
    "CompetitorSummaryResponse",
    "DetectSelectorsRequest",
    "DetectSelectorsResponse",
    "MessageResponse",
    "ProductMatchResponse",
    "SelectorSet",
    "SelectorSetInput",
]
