"""
RouletteBot - Keyed Locks
=========================

One asyncio.Lock per key, created on demand and dropped once nobody
holds or waits for it. Work on different keys never waits on each other.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable, Optional

from .errors import ContentionError


class KeyedLocks:
    """Map of per-key locks with idle cleanup."""

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}  # key -> holders + waiters

    def __len__(self) -> int:
        return len(self._locks)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._locks

    def locked(self, key: Hashable) -> bool:
        """Check if a key is currently held."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def _checkout(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
            self._users[key] = 0
        self._users[key] += 1
        return lock

    def _checkin(self, key: Hashable) -> None:
        self._users[key] -= 1
        if self._users[key] == 0:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, key: Hashable, timeout: Optional[float] = None) -> AsyncIterator[None]:
        """
        Hold the lock for ``key``.

        Raises:
            ContentionError: If the lock was not acquired within ``timeout`` seconds.
        """
        lock = self._checkout(key)
        try:
            try:
                # Lock.acquire is awaited directly so a timeout that lands as the
                # lock is handed over gives it straight to the next waiter
                async with asyncio.timeout(timeout):
                    await lock.acquire()
            except TimeoutError:
                raise ContentionError(f"Timed out after {timeout}s waiting for {key!r}") from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)


__all__ = ["KeyedLocks"]
