"""
RouletteBot - Roulette
======================

Weighted draws against versioned pools with per-user exclusion rules.
Draws are serialized per (pool, user) and recorded atomically.
"""

from .errors import ErrorKind, RouletteError
from .models import DrawPreferences, DrawRecord, DrawResult, Pool, PoolEntry
from .service import RouletteService, get_roulette_service

__all__ = [
    "ErrorKind",
    "RouletteError",
    "DrawPreferences",
    "DrawRecord",
    "DrawResult",
    "Pool",
    "PoolEntry",
    "RouletteService",
    "get_roulette_service",
]
