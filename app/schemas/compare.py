"""
app/schemas/compare.py

Request and response schemas for competitor comparison endpoints.

Wire payloads use camelCase keys; Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SelectorSet(CamelModel):
    container: str
    name: str
    price: str
    image: str
    url: str


class SelectorSetInput(CamelModel):
    """
    Partial selector overrides; omitted fields fall back to registry defaults.
    """

    container: str | None = None
    name: str | None = None
    price: str | None = None
    image: str | None = None
    url: str | None = None


class CompareSearchRequest(CamelModel):
    product_name: str | None = None


class ProductMatchResponse(CamelModel):
    competitor_name: str
    product_name: str
    price: float = Field(..., ge=0)
    price_text: str = ""
    image_url: str | None = None
    product_url: str
    source_search_url: str


class CompetitorSummaryResponse(CamelModel):
    competitor: str
    state: str
    results_count: int = Field(..., ge=0)
    duration_ms: int = Field(..., ge=0)
    search_url: str
    error: str | None = None


class CompareSearchResponse(CamelModel):
    success: bool = True
    product_name: str
    results: list[ProductMatchResponse] = Field(default_factory=list)
    total_results: int = Field(..., ge=0)
    duration: str
    duration_ms: int = Field(..., ge=0)
    competitors: list[CompetitorSummaryResponse] = Field(default_factory=list)


class DetectSelectorsRequest(CamelModel):
    search_url: str | None = None


class DetectSelectorsResponse(CamelModel):
    success: bool = True
    selectors: SelectorSet
    confidence: int = Field(..., ge=0, le=100)
    accepted: bool
    container_count: int = Field(..., ge=0)
    message: str
    warning: str | None = None


class CompetitorConfigRequest(CamelModel):
    name: str | None = None
    base_url: str | None = None
    search_url: str | None = None
    selectors: SelectorSetInput | None = None
    max_results: int | None = None
    timeout_ms: int | None = None
    is_active: bool | None = None


class CompetitorConfigResponse(CamelModel):
    id: UUID
    name: str
    base_url: str
    search_url: str
    selectors: SelectorSet
    max_results: int
    timeout_ms: int
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CompetitorListResponse(CamelModel):
    success: bool = True
    competitors: list[CompetitorConfigResponse] = Field(default_factory=list)


class CompetitorSaveResponse(CamelModel):
    success: bool = True
    message: str
    competitor: CompetitorConfigResponse


class MessageResponse(CamelModel):
    success: bool = True
    message: str
