from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> bool:
    """Open a session and run SELECT 1. Returns False if the registry DB is unreachable."""
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except (RuntimeError, SQLAlchemyError) as exc:
        logging.getLogger(__name__).warning(
            "Competitor registry database unavailable: %s. "
            "Comparison endpoints will answer 503 until it is reachable.",
            exc,
        )
        return False
    return True


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Report registry connectivity on boot; release the render fetcher on exit."""
    if _check_db():
        logging.getLogger(__name__).info("Database connectivity confirmed")
    try:
        yield
    finally:
        from app.services.compare_service import get_compare_service

        if get_compare_service.cache_info().currsize:
            get_compare_service().close()
            logging.getLogger(__name__).info("Page fetcher closed")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    from db.config import load_env_files

    load_env_files()
    _configure_logging()

    application = FastAPI(
        title="Competitor Price Compare API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import compare_router, competitors_router

    application.include_router(compare_router)
    application.include_router(competitors_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        return HealthResponse(status="ok")

    return application


app = create_app()
