"""
RouletteBot - History Store
===========================

Async access to the draw log. Every call runs on a worker thread and is
bounded by a timeout; a call that runs out of time raises StorageTimeout,
which means the outcome is unknown (a write may still land).
"""

import asyncio
from typing import Callable, Dict, List, Optional, TypeVar

from src.core.logger import logger

from .errors import StorageTimeout
from .models import DrawRecord, PendingDraw


T = TypeVar("T")


class BoundedStore:
    """Runs blocking database calls on a worker thread with a deadline."""

    def __init__(self, db, timeout: float) -> None:
        self._db = db
        self.timeout = timeout

    async def _call(self, operation: str, func: Callable[..., T], *args) -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.tree("Storage Timeout", [
                ("Operation", operation),
                ("Waited", f"{self.timeout}s"),
            ], emoji="⏳")
            raise StorageTimeout(f"{operation} did not finish within {self.timeout}s") from None


class HistoryStore(BoundedStore):
    """Bounded-wait wrapper around the history database mixin."""

    async def append(
        self,
        draw: PendingDraw,
        expected_last_sequence: Optional[int] = None,
    ) -> DrawRecord:
        """Persist a draw and return it with its sequence number."""
        return await self._call("append", self._db.append_draw, draw, expected_last_sequence)

    async def recent(self, pool_id: str, user_id: str, limit: int) -> List[DrawRecord]:
        """A user's most recent draws on a pool, newest first, at most ``limit``."""
        return await self._call("recent", self._db.get_recent_draws, pool_id, user_id, limit)

    async def counts(
        self,
        pool_id: str,
        user_id: str,
        since: Optional[float] = None,
        until: Optional[float] = None,
    ) -> Dict[str, int]:
        """Per-entry draw counts for a user on a pool."""
        return await self._call("counts", self._db.get_draw_counts, pool_id, user_id, since, until)


__all__ = ["BoundedStore", "HistoryStore"]
