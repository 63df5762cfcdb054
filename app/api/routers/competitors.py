"""
app/api/routers/competitors.py

Competitor registry management endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_registry_session
from app.repositories.competitor_config_repository import (
    CompetitorConfigRepository,
    to_competitor_config,
)
from app.schemas.compare import (
    CompetitorConfigRequest,
    CompetitorConfigResponse,
    CompetitorListResponse,
    CompetitorSaveResponse,
    MessageResponse,
    SelectorSet,
)
from app.scraping.config import CompetitorConfig, CompetitorSelectors, normalize_selectors
from app.scraping.config.models import DEFAULT_MAX_RESULTS, DEFAULT_TIMEOUT_MS
from app.scraping.errors import RegistryUnavailableError
from app.scraping.normalization import is_http_url
from db.models.competitor_config import (
    NAME_MAX_LENGTH,
    SEARCH_URL_MAX_LENGTH,
    SELECTOR_MAX_LENGTH,
    URL_MAX_LENGTH,
    CompetitorConfigRecord,
)

router = APIRouter(prefix="/compare/competitors", tags=["competitors"])


def _to_response(record: CompetitorConfigRecord) -> CompetitorConfigResponse:
    config = to_competitor_config(record)
    return CompetitorConfigResponse(
        id=record.id,
        name=config.name,
        base_url=config.base_url,
        search_url=config.search_url_template,
        selectors=SelectorSet(**config.selectors.as_dict()),
        max_results=config.max_results,
        timeout_ms=config.timeout_ms,
        is_active=config.is_active,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _registry_unavailable(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(exc),
    )


def _field_problems(
    name: str,
    base_url: str,
    search_url: str,
    selectors: CompetitorSelectors,
) -> list[str]:
    problems: list[str] = []
    if len(name) > NAME_MAX_LENGTH:
        problems.append(f"name must be at most {NAME_MAX_LENGTH} characters")
    if not is_http_url(base_url):
        problems.append("baseUrl must be an absolute http(s) URL")
    elif len(base_url) > URL_MAX_LENGTH:
        problems.append(f"baseUrl must be at most {URL_MAX_LENGTH} characters")
    if not is_http_url(search_url):
        problems.append("searchUrl must be an absolute http(s) URL")
    elif len(search_url) > SEARCH_URL_MAX_LENGTH:
        problems.append(f"searchUrl must be at most {SEARCH_URL_MAX_LENGTH} characters")
    for field_name, pattern in selectors.as_dict().items():
        if len(pattern) > SELECTOR_MAX_LENGTH:
            problems.append(
                f"{field_name} selector must be at most {SELECTOR_MAX_LENGTH} characters"
            )
    return problems


@router.get("", response_model=CompetitorListResponse)
def list_competitors(db: Session = Depends(get_registry_session)) -> CompetitorListResponse:
    try:
        records = CompetitorConfigRepository(db).list_all()
    except RegistryUnavailableError as exc:
        raise _registry_unavailable(exc) from exc
    return CompetitorListResponse(competitors=[_to_response(record) for record in records])


@router.post("", response_model=CompetitorSaveResponse)
def save_competitor(
    body: CompetitorConfigRequest,
    db: Session = Depends(get_registry_session),
) -> CompetitorSaveResponse:
    """
    Create or update a competitor configuration keyed by name.
    """

    name = (body.name or "").strip()
    base_url = (body.base_url or "").strip()
    search_url = (body.search_url or "").strip()
    if not name or not base_url or not search_url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name, baseUrl, and searchUrl are required.",
        )

    selectors = normalize_selectors(
        body.selectors.model_dump(exclude_none=True) if body.selectors else None
    )
    problems = _field_problems(name, base_url, search_url, selectors)
    if problems:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="; ".join(problems),
        )

    try:
        config = CompetitorConfig(
            name=name,
            base_url=base_url.rstrip("/"),
            search_url_template=search_url,
            selectors=selectors,
            max_results=body.max_results if body.max_results is not None else DEFAULT_MAX_RESULTS,
            timeout_ms=body.timeout_ms if body.timeout_ms is not None else DEFAULT_TIMEOUT_MS,
            is_active=body.is_active if body.is_active is not None else True,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    try:
        record = CompetitorConfigRepository(db).upsert_by_name(config)
        db.commit()
        db.refresh(record)
    except (RegistryUnavailableError, SQLAlchemyError) as exc:
        db.rollback()
        raise _registry_unavailable(exc) from exc

    return CompetitorSaveResponse(
        message="Competitor configuration saved successfully.",
        competitor=_to_response(record),
    )


@router.delete("", response_model=MessageResponse)
def delete_competitor(
    competitor_id: str | None = Query(default=None, alias="id", description="Competitor UUID"),
    db: Session = Depends(get_registry_session),
) -> MessageResponse:
    if not competitor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Competitor ID is required.",
        )
    try:
        parsed_id = uuid.UUID(competitor_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid competitor ID: {competitor_id}",
        ) from exc

    try:
        deleted = CompetitorConfigRepository(db).delete_by_id(parsed_id)
        db.commit()
    except (RegistryUnavailableError, SQLAlchemyError) as exc:
        db.rollback()
        raise _registry_unavailable(exc) from exc

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Competitor {parsed_id} not found.",
        )
    return MessageResponse(message="Competitor deleted successfully.")
