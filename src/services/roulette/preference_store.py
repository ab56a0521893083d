"""
RouletteBot - Preference Store
==============================

Async access to users' exclude/target lists, with the same bounded wait
as the history store.
"""

from typing import Iterable

from .history_store import BoundedStore
from .models import DrawPreferences


class PreferenceStore(BoundedStore):
    """Bounded-wait wrapper around the preferences database mixin."""

    async def get(self, pool_id: str, user_id: str) -> DrawPreferences:
        return await self._call("preferences", self._db.get_preferences, pool_id, user_id)

    async def update(
        self,
        pool_id: str,
        user_id: str,
        kind: str,
        action: str,
        entry_ids: Iterable[str],
    ) -> DrawPreferences:
        return await self._call(
            "update_preferences", self._db.update_preferences,
            pool_id, user_id, kind, action, list(entry_ids),
        )

    async def clear(self, pool_id: str, user_id: str) -> int:
        return await self._call("clear_preferences", self._db.clear_preferences, pool_id, user_id)


__all__ = ["PreferenceStore"]
