"""
app/services package marker.
"""

from app.services.compare_service import CompareService, get_compare_service

__all__ = [
    "CompareService",
    "get_compare_service",
]
