"""
RouletteBot - API Routers
=========================

Route handlers for the API.
"""

from .health import router as health_router
from .pools import router as pools_router

__all__ = [
    "health_router",
    "pools_router",
]
