"""
Read contract for competitor configurations used by the comparison engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from sqlalchemy.orm import Session

from app.repositories.competitor_config_repository import (
    CompetitorConfigRepository,
    to_competitor_config,
)
from app.scraping.config.models import CompetitorConfig


class CompetitorRegistry(ABC):
    """
    Source of competitor configurations. Implementations raise
    RegistryUnavailableError when the backing store cannot be read.
    """

    @abstractmethod
    def list_active(self) -> list[CompetitorConfig]:
        """Active competitor configurations in a stable order."""


class StaticCompetitorRegistry(CompetitorRegistry):
    """
    In-memory registry, typically built from the JSON seed file.
    """

    def __init__(self, configs: Iterable[CompetitorConfig]) -> None:
        self._configs = list(configs)

    def list_active(self) -> list[CompetitorConfig]:
        return [config for config in self._configs if config.is_active]


class DatabaseCompetitorRegistry(CompetitorRegistry):
    """
    Registry backed by the `competitor_configs` table.
    """

    def __init__(self, session: Session) -> None:
        self._repository = CompetitorConfigRepository(session)

    def list_active(self) -> list[CompetitorConfig]:
        return [to_competitor_config(record) for record in self._repository.list_active()]
