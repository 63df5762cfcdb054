"""
app/api/routers package marker.
"""

from app.api.routers.compare import router as compare_router
from app.api.routers.competitors import router as competitors_router

__all__ = [
    "compare_router",
    "competitors_router",
]
