"""
RouletteBot - Pools Database Mixin
==================================

Versioned pool definitions. Every refresh is stored as a new row keyed by
(pool_id, version); older versions are kept so past draws stay explainable.
"""

import json
import time
from typing import Any, Dict, List, Optional

from src.core.logger import logger
from src.services.roulette.errors import ValidationError
from src.services.roulette.models import Pool, PoolEntry, exclusion_from_dict


def _row_to_pool(row) -> Pool:
    """Rebuild a Pool snapshot from a pools row."""
    entries = tuple(
        PoolEntry.create(
            id=item["id"],
            weight=item["weight"],
            tags=item.get("tags", ()),
            metadata=item.get("metadata"),
        )
        for item in json.loads(row["entries_json"])
    )
    exclusion = json.loads(row["exclusion_json"]) if row["exclusion_json"] else None
    return Pool(
        id=row["pool_id"],
        entries=entries,
        version=row["version"],
        exclusion_rule=exclusion_from_dict(exclusion),
        name=row["name"] or "",
        description=row["description"] or "",
    )


class PoolsMixin:
    """Mixin for pool definition database operations."""

    def insert_pool_version(self, pool: Pool) -> Pool:
        """
        Store a pool as the next version.

        The version is assigned here (previous + 1) inside one write
        transaction, so concurrent refreshes cannot claim the same number.

        Returns:
            The pool with its assigned version.
        """
        entries_json = json.dumps([entry.to_dict() for entry in pool.entries], ensure_ascii=False)
        exclusion = pool.exclusion_rule.to_dict()
        exclusion_json = json.dumps(exclusion) if exclusion else None

        with self._get_conn(immediate=True) as conn:
            row = conn.execute(
                "SELECT MAX(version) AS version FROM pools WHERE pool_id = ?",
                (pool.id,)
            ).fetchone()
            version = (row["version"] or 0) + 1
            conn.execute("""
                INSERT INTO pools (
                    pool_id, version, name, description,
                    exclusion_json, entries_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                pool.id, version, pool.name, pool.description,
                exclusion_json, entries_json, time.time()
            ))

        logger.tree("Pool Version Stored", [
            ("Pool", pool.id),
            ("Version", str(version)),
            ("Entries", str(len(pool.entries))),
        ], emoji="📦")

        return pool.with_version(version)

    def get_pool(self, pool_id: str, version: Optional[int] = None) -> Optional[Pool]:
        """Get a specific version of a pool, or the latest if version is None."""
        with self._get_conn() as conn:
            if version is None:
                row = conn.execute("""
                    SELECT * FROM pools WHERE pool_id = ?
                    ORDER BY version DESC LIMIT 1
                """, (pool_id,)).fetchone()
            else:
                row = conn.execute(
                    "SELECT * FROM pools WHERE pool_id = ? AND version = ?",
                    (pool_id, version)
                ).fetchone()
        return _row_to_pool(row) if row else None

    def get_latest_pools(self) -> List[Pool]:
        """Get the latest version of every stored pool, ordered by pool id."""
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT p.* FROM pools p
                JOIN (
                    SELECT pool_id, MAX(version) AS version
                    FROM pools GROUP BY pool_id
                ) latest
                ON p.pool_id = latest.pool_id AND p.version = latest.version
                ORDER BY p.pool_id
            """).fetchall()

        pools = []
        for row in rows:
            try:
                pools.append(_row_to_pool(row))
            except (ValidationError, ValueError, KeyError) as e:
                logger.error_tree("Stored Pool Unreadable", e, [
                    ("Pool", row["pool_id"]),
                    ("Version", str(row["version"])),
                ])
        return pools

    def get_pool_versions(self, pool_id: str) -> List[Dict[str, Any]]:
        """Get version numbers and timestamps for a pool, newest first."""
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT version, created_at FROM pools
                WHERE pool_id = ? ORDER BY version DESC
            """, (pool_id,)).fetchall()
            return [dict(row) for row in rows]
