"""
RouletteBot - Database Module
=============================

Modular SQLite database for the roulette.

Structure:
    - core.py: Base class with connection management and table init
    - pools.py: Versioned pool definitions
    - history.py: Append-only draw log and sequence counters
    - preferences.py: Per-user exclude/target lists
"""

from typing import Optional

from src.services.roulette.errors import DatabaseUnavailableError

from .core import DatabaseCore
from .pools import PoolsMixin
from .history import HistoryMixin
from .preferences import PreferencesMixin


class Database(
    PoolsMixin,
    HistoryMixin,
    PreferencesMixin,
    DatabaseCore,
):
    """
    Complete database class combining all mixins.

    Inherits from all feature mixins and the core database class.
    The order matters - DatabaseCore must be last so its __init__ runs.
    """
    pass


# Singleton instance (created on first use)
_db: Optional[Database] = None


def get_database() -> Database:
    """Get or create the database singleton at the configured path."""
    global _db
    if _db is None:
        _db = Database()
    return _db


__all__ = ["Database", "get_database", "DatabaseUnavailableError"]
