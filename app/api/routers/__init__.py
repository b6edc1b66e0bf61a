"""
app/api/routers package marker.
"""

from app.api.routers.stats_router import router as stats_router

__all__ = [
    "stats_router",
]
