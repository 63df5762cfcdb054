"""
app/api/routers/compare.py

Live price comparison and selector detection endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_competitor_registry
from app.schemas.compare import (
    CompareSearchRequest,
    CompareSearchResponse,
    CompetitorSummaryResponse,
    DetectSelectorsRequest,
    DetectSelectorsResponse,
    ProductMatchResponse,
    SelectorSet,
)
from app.scraping.errors import (
    CompareValidationError,
    DetectionFailure,
    RegistryUnavailableError,
)
from app.scraping.registry import CompetitorRegistry
from app.services.compare_service import CompareService, get_compare_service

router = APIRouter(prefix="/compare", tags=["compare"])


@router.post("/search", response_model=CompareSearchResponse)
def search_products(
    body: CompareSearchRequest,
    registry: CompetitorRegistry = Depends(get_competitor_registry),
    compare_service: CompareService = Depends(get_compare_service),
) -> CompareSearchResponse:
    """
    Search every active competitor for a product and return offers cheapest first.
    """

    try:
        result = compare_service.search(body.product_name or "", registry)
    except CompareValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RegistryUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc

    return CompareSearchResponse(
        product_name=result.product_name,
        results=[
            ProductMatchResponse(
                competitor_name=match.competitor_name,
                product_name=match.product_name,
                price=match.price,
                price_text=match.price_text,
                image_url=match.image_url,
                product_url=match.product_url,
                source_search_url=match.source_search_url,
            )
            for match in result.results
        ],
        total_results=result.total_results,
        duration=f"{result.duration_ms / 1000:.2f}s",
        duration_ms=result.duration_ms,
        competitors=[
            CompetitorSummaryResponse(
                competitor=summary.competitor,
                state=summary.state.value,
                results_count=summary.results_count,
                duration_ms=summary.duration_ms,
                search_url=summary.search_url,
                error=summary.error,
            )
            for summary in result.summaries
        ],
    )


@router.post(
    "/detect-selectors",
    response_model=DetectSelectorsResponse,
    response_model_exclude_none=True,
)
def detect_selectors(
    body: DetectSelectorsRequest,
    compare_service: CompareService = Depends(get_compare_service),
) -> DetectSelectorsResponse:
    """
    Infer scrape selectors for a competitor search page.

    Low-confidence detections are still returned, flagged with a warning.
    """

    try:
        result = compare_service.detect_selectors(body.search_url or "")
    except (CompareValidationError, DetectionFailure) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    accepted = compare_service.is_accepted(result)
    return DetectSelectorsResponse(
        selectors=SelectorSet(**result.selectors.as_dict()),
        confidence=result.confidence,
        accepted=accepted,
        container_count=result.container_count,
        message=(
            "Selectors detected successfully."
            if accepted
            else "Selectors detected with low confidence. Please verify."
        ),
        warning=None if accepted else "Low confidence detection",
    )
