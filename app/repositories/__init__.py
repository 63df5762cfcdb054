"""
app/repositories package marker.
"""

from app.repositories.competitor_config_repository import (
    CompetitorConfigRepository,
    to_competitor_config,
)

__all__ = [
    "CompetitorConfigRepository",
    "to_competitor_config",
]
