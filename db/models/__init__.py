"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.competitor_config import CompetitorConfigRecord

__all__ = [
    "CompetitorConfigRecord",
]
