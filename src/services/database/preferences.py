"""
RouletteBot - Draw Preferences Database Mixin
=============================================

Per-user exclude/target lists for a pool. Each row is one entry id in one
list; a list is replaced, extended, or trimmed inside a single write
transaction.
"""

import time
from typing import Iterable

from src.services.roulette.models import DrawPreferences


class PreferencesMixin:
    """Mixin for draw preference database operations."""

    def get_preferences(self, pool_id: str, user_id: str) -> DrawPreferences:
        """Get a user's exclude and target lists for a pool."""
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT kind, entry_id FROM draw_preferences
                WHERE pool_id = ? AND user_id = ?
            """, (pool_id, user_id)).fetchall()

        excluded = frozenset(row["entry_id"] for row in rows if row["kind"] == "exclude")
        targets = frozenset(row["entry_id"] for row in rows if row["kind"] == "target")
        return DrawPreferences(excluded=excluded, targets=targets)

    def update_preferences(
        self,
        pool_id: str,
        user_id: str,
        kind: str,
        action: str,
        entry_ids: Iterable[str],
    ) -> DrawPreferences:
        """
        Change one of a user's lists.

        Args:
            kind: "exclude" or "target".
            action: "set" replaces the list, "add" extends it, "remove" trims it.

        Returns:
            Both lists after the change.
        """
        entry_ids = list(dict.fromkeys(entry_ids))
        now = time.time()

        with self._get_conn(immediate=True) as conn:
            if action == "set":
                conn.execute("""
                    DELETE FROM draw_preferences
                    WHERE pool_id = ? AND user_id = ? AND kind = ?
                """, (pool_id, user_id, kind))

            if action in ("set", "add"):
                conn.executemany("""
                    INSERT OR IGNORE INTO draw_preferences
                        (pool_id, user_id, kind, entry_id, created_at)
                    VALUES (?, ?, ?, ?, ?)
                """, [(pool_id, user_id, kind, entry_id, now) for entry_id in entry_ids])
            elif action == "remove":
                conn.executemany("""
                    DELETE FROM draw_preferences
                    WHERE pool_id = ? AND user_id = ? AND kind = ? AND entry_id = ?
                """, [(pool_id, user_id, kind, entry_id) for entry_id in entry_ids])

        return self.get_preferences(pool_id, user_id)

    def clear_preferences(self, pool_id: str, user_id: str) -> int:
        """Drop both of a user's lists for a pool. Returns rows removed."""
        with self._get_conn(immediate=True) as conn:
            cursor = conn.execute("""
                DELETE FROM draw_preferences
                WHERE pool_id = ? AND user_id = ?
            """, (pool_id, user_id))
            return cursor.rowcount
