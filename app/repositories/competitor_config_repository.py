"""
app/repositories/competitor_config_repository.py

Persistence helpers for competitor scrape configurations.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.scraping.config.models import CompetitorConfig, CompetitorSelectors
from app.scraping.errors import RegistryUnavailableError
from db.models.competitor_config import CompetitorConfigRecord


def to_competitor_config(record: CompetitorConfigRecord) -> CompetitorConfig:
    """
    Convert a persisted row into the engine's read-only config value.
    """

    return CompetitorConfig(
        id=record.id,
        name=record.name,
        base_url=record.base_url,
        search_url_template=record.search_url,
        selectors=CompetitorSelectors(
            container=record.container_selector,
            name=record.name_selector,
            price=record.price_selector,
            image=record.image_selector,
            url=record.url_selector,
        ),
        max_results=record.max_results,
        timeout_ms=record.timeout_ms,
        is_active=record.is_active,
    )


class CompetitorConfigRepository:
    """
    Repository for CRUD + upsert-by-name on competitor configurations.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[CompetitorConfigRecord]:
        stmt = select(CompetitorConfigRecord).order_by(CompetitorConfigRecord.name.asc())
        try:
            return list(self._session.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            raise RegistryUnavailableError(f"Failed to read competitor configs: {exc}") from exc

    def list_active(self) -> list[CompetitorConfigRecord]:
        stmt = (
            select(CompetitorConfigRecord)
            .where(CompetitorConfigRecord.is_active.is_(True))
            .order_by(CompetitorConfigRecord.name.asc())
        )
        try:
            return list(self._session.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            raise RegistryUnavailableError(f"Failed to read competitor configs: {exc}") from exc

    def get_by_name(self, name: str) -> CompetitorConfigRecord | None:
        stmt = select(CompetitorConfigRecord).where(CompetitorConfigRecord.name == name.strip())
        return self._session.execute(stmt).scalars().first()

    def upsert_by_name(self, config: CompetitorConfig) -> CompetitorConfigRecord:
        """
        Insert or update the record keyed by competitor name.
        """

        try:
            existing = self.get_by_name(config.name)
            if existing is None:
                existing = CompetitorConfigRecord(name=config.name.strip())
                self._session.add(existing)

            existing.base_url = config.base_url
            existing.search_url = config.search_url_template
            existing.container_selector = config.selectors.container
            existing.name_selector = config.selectors.name
            existing.price_selector = config.selectors.price
            existing.image_selector = config.selectors.image
            existing.url_selector = config.selectors.url
            existing.max_results = config.max_results
            existing.timeout_ms = config.timeout_ms
            existing.is_active = config.is_active

            self._session.flush()
        except SQLAlchemyError as exc:
            raise RegistryUnavailableError(f"Failed to save competitor config: {exc}") from exc
        return existing

    def delete_by_id(self, config_id: uuid.UUID) -> bool:
        """
        Delete one record. Returns False when no record has that id.
        """

        try:
            existing = self._session.get(CompetitorConfigRecord, config_id)
            if existing is None:
                return False
            self._session.delete(existing)
            self._session.flush()
        except SQLAlchemyError as exc:
            raise RegistryUnavailableError(f"Failed to delete competitor config: {exc}") from exc
        return True
