"""
RouletteBot - Pool Store
========================

Latest snapshot of every pool, backed by the pools table.

Readers grab the current snapshot map with a single attribute read and
never lock. A refresh validates the new pool, stores it as the next
version, and then installs a new map; the old snapshot objects are never
touched, so a draw that already holds one keeps a consistent version.
"""

import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

from src.core.logger import logger

from .definitions import load_pools_file
from .errors import DatabaseUnavailableError, PoolNotFoundError, RouletteError
from .models import Pool, validate_pool


class PoolStore:
    """Versioned pool snapshots."""

    def __init__(self, db) -> None:
        self._db = db
        self._snapshots: Dict[str, Pool] = {}
        self._write_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, pool_id: str) -> bool:
        return pool_id in self._snapshots

    # =========================================================================
    # Reads
    # =========================================================================

    def load(self, pool_id: str) -> Pool:
        """
        Get the latest snapshot of a pool.

        Raises:
            PoolNotFoundError: If the pool is unknown.
        """
        pool = self._snapshots.get(pool_id)
        if pool is None:
            raise PoolNotFoundError(pool_id)
        return pool

    def get(self, pool_id: str) -> Optional[Pool]:
        """Get the latest snapshot of a pool, or None."""
        return self._snapshots.get(pool_id)

    def all(self) -> List[Pool]:
        """Get every current snapshot, ordered by pool id."""
        snapshots = self._snapshots
        return [snapshots[pool_id] for pool_id in sorted(snapshots)]

    # =========================================================================
    # Writes
    # =========================================================================

    def replace(self, pool: Pool) -> Pool:
        """
        Install a new version of a pool.

        The incoming version number is ignored; the stored version is the
        previous one plus one.

        Returns:
            The installed snapshot.

        Raises:
            ValidationError: If the pool breaks an invariant. Nothing changes.
            PersistenceFailure: If the new version could not be stored.
                The previous snapshot stays active.
        """
        try:
            validate_pool(pool)
        except RouletteError as e:
            logger.tree("Pool Rejected", [
                ("Pool", str(pool.id)),
                ("Reason", str(e)[:100]),
                ("Active Version", str(self._snapshots[pool.id].version) if pool.id in self._snapshots else "None"),
            ], emoji="🚫")
            raise

        with self._write_lock:
            installed = self._db.insert_pool_version(pool)
            snapshots = dict(self._snapshots)
            snapshots[installed.id] = installed
            self._snapshots = snapshots

        logger.tree("Pool Installed", [
            ("Pool", installed.id),
            ("Name", installed.display_name),
            ("Version", str(installed.version)),
            ("Entries", str(len(installed.entries))),
            ("Exclusion", type(installed.exclusion_rule).__name__),
        ], emoji="🎡")

        return installed

    def warm(self) -> int:
        """Load the latest stored version of every pool. Returns the pool count."""
        pools = self._db.get_latest_pools()
        with self._write_lock:
            snapshots = dict(self._snapshots)
            for pool in pools:
                current = snapshots.get(pool.id)
                if current is None or current.version < pool.version:
                    snapshots[pool.id] = pool
            self._snapshots = snapshots

        logger.tree("Pool Store Warmed", [
            ("Pools", str(len(pools))),
            ("IDs", ", ".join(pool.id for pool in pools[:10]) or "None"),
        ], emoji="🔥")
        return len(pools)

    def seed_from_file(self, path: Union[str, Path]) -> List[Pool]:
        """
        Install pools from a local document that are not stored yet.

        Pools that already exist are left alone; the sync adapter owns
        refreshes. Invalid pools and pools that could not be stored are
        logged and skipped.

        Returns:
            The pools that were installed.
        """
        pools, errors = load_pools_file(path)

        for pool_id, error in errors.items():
            logger.tree("Seed Pool Invalid", [
                ("File", str(path)),
                ("Pool", pool_id),
                ("Reason", str(error)[:100]),
            ], emoji="⚠️")

        installed = []
        for pool in pools:
            if pool.id in self._snapshots:
                continue
            try:
                installed.append(self.replace(pool))
            except DatabaseUnavailableError:
                raise
            except RouletteError as e:
                logger.error_tree("Seed Pool Not Stored", e, [
                    ("File", str(path)),
                    ("Pool", pool.id),
                    ("Kind", e.kind.value),
                ])

        if installed:
            logger.tree("Pools Seeded", [
                ("File", str(path)),
                ("Installed", ", ".join(pool.id for pool in installed)),
            ], emoji="🌱")
        return installed


__all__ = ["PoolStore"]
