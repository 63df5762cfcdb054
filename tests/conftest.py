from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401  registers models on Base.metadata
from app.scraping.config.models import ComparisonSettings
from db.base import Base


@pytest.fixture()
def comparison_settings() -> ComparisonSettings:
    return ComparisonSettings(
        page_fetcher="http",
        user_agent="compare-tests/1.0",
        headless=True,
        max_render_contexts=4,
        overall_budget_ms=None,
        settle_delay_ms=0,
        scroll_cycles=0,
        scroll_delay_ms=0,
        http_max_retries=0,
        http_backoff_seconds=0.1,
        config_path="app/scraping/config/competitors.json",
    )


@pytest.fixture()
def sqlite_engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(sqlite_engine: Engine) -> Generator[Session, None, None]:
    factory = sessionmaker(bind=sqlite_engine, autoflush=False, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()
