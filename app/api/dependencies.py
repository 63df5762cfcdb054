"""
app/api/dependencies.py

Shared FastAPI dependencies for the comparison endpoints.
"""

from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.scraping.registry import CompetitorRegistry, DatabaseCompetitorRegistry
from db.session import SessionLocal


def get_registry_session() -> Generator[Session, None, None]:
    """
    Open a database session, answering 503 when the database is not configured.
    """

    try:
        db = SessionLocal()
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Competitor registry unavailable: {exc}",
        ) from exc
    try:
        yield db
    finally:
        db.close()


def get_competitor_registry(
    db: Session = Depends(get_registry_session),
) -> CompetitorRegistry:
    return DatabaseCompetitorRegistry(db)
