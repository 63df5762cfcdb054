"""
db/models/competitor_config.py

Persisted scrape configuration for one competitor site.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

NAME_MAX_LENGTH = 120
URL_MAX_LENGTH = 500
SEARCH_URL_MAX_LENGTH = 1000
SELECTOR_MAX_LENGTH = 500


class CompetitorConfigRecord(Base, TimestampMixin):
    __tablename__ = "competitor_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH),
        nullable=False,
        unique=True,
        comment="Unique competitor display name",
    )
    base_url: Mapped[str] = mapped_column(String(URL_MAX_LENGTH), nullable=False)
    search_url: Mapped[str] = mapped_column(
        String(SEARCH_URL_MAX_LENGTH),
        nullable=False,
        comment="Search URL template with a {query} placeholder",
    )
    container_selector: Mapped[str] = mapped_column(
        String(SELECTOR_MAX_LENGTH), nullable=False, default=".product-item"
    )
    name_selector: Mapped[str] = mapped_column(
        String(SELECTOR_MAX_LENGTH), nullable=False, default=".product-name"
    )
    price_selector: Mapped[str] = mapped_column(
        String(SELECTOR_MAX_LENGTH), nullable=False, default=".product-price"
    )
    image_selector: Mapped[str] = mapped_column(
        String(SELECTOR_MAX_LENGTH), nullable=False, default=".product-image img"
    )
    url_selector: Mapped[str] = mapped_column(
        String(SELECTOR_MAX_LENGTH), nullable=False, default=".product-link"
    )
    max_results: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    timeout_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=30000)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("ix_competitor_configs_is_active", "is_active"),)
