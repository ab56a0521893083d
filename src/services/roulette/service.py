"""
RouletteBot - Roulette Service
==============================

Coordinates draws: one atomic decide-and-record unit per request.

For every draw the service:
    1. Holds the (pool_id, user_id) lock so draws for the same user on the
       same pool run one at a time (other keys are not affected).
    2. Reads the pool snapshot once and uses it for the whole draw.
    3. Reads the user's recent history and exclude/target preferences,
       asks the engine for an entry.
    4. Appends the record, conditional on the history it decided from
       still being the latest (so a stale decision is never stored).

Failures come back as DrawResult(success=False, error=kind). Nothing is
retried here: retrying after a timeout could record a draw twice, so that
call belongs to the caller after checking history().
"""

import asyncio
import random
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from src.core.config import config
from src.core.constants import STATS_DATE_FORMAT
from src.core.logger import logger

from .engine import Exhausted, RandomSource, history_window, select
from .errors import ErrorKind, RouletteError, Triage, ValidationError
from .history_store import HistoryStore
from .locks import KeyedLocks
from .models import (
    PREFERENCE_ACTIONS,
    PREFERENCE_KINDS,
    DrawPreferences,
    DrawRecord,
    DrawResult,
    PendingDraw,
    Pool,
)
from .pool_store import PoolStore
from .preference_store import PreferenceStore


def _parse_day(value: str, param: str) -> datetime:
    """Parse a YYYY-MM-DD date as UTC midnight."""
    try:
        return datetime.strptime(value.strip(), STATS_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ValidationError(f"Invalid date for {param}: {value!r} (expected YYYY-MM-DD)") from e


class RouletteService:
    """
    Session coordinator for draws.

    Owns the pool, history, and preference stores plus the per-key locks.
    """

    def __init__(
        self,
        db,
        rng: Optional[RandomSource] = None,
        storage_timeout: Optional[float] = None,
        lock_timeout: Optional[float] = None,
        max_history_limit: Optional[int] = None,
    ) -> None:
        self.db = db
        self.pool_store = PoolStore(db)
        self.history_store = HistoryStore(
            db,
            timeout=storage_timeout if storage_timeout is not None else config.STORAGE_TIMEOUT,
        )
        self.preference_store = PreferenceStore(db, timeout=self.history_store.timeout)
        self.lock_timeout = lock_timeout if lock_timeout is not None else config.LOCK_TIMEOUT
        self.max_history_limit = max_history_limit or config.MAX_HISTORY_LIMIT
        self._rng: RandomSource = rng or random.Random()
        self._locks = KeyedLocks()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def setup(self, pools_file: Optional[str] = None) -> None:
        """Load stored pools and seed any missing ones from the local file."""
        self.db.require_healthy()
        await asyncio.to_thread(self.pool_store.warm)

        pools_file = pools_file if pools_file is not None else config.POOLS_FILE
        if pools_file:
            try:
                await asyncio.to_thread(self.pool_store.seed_from_file, pools_file)
            except ValidationError as e:
                logger.error_tree("Pool Seed File Rejected", e, [
                    ("File", pools_file),
                ])

        logger.tree("Roulette Service Ready", [
            ("Pools", str(len(self.pool_store))),
            ("Storage Timeout", f"{self.history_store.timeout}s"),
            ("Lock Timeout", f"{self.lock_timeout}s"),
        ], emoji="🎰")

    # =========================================================================
    # Draw
    # =========================================================================

    async def draw(self, pool_id: str, user_id: str) -> DrawResult:
        """
        Draw one entry from a pool for a user.

        Returns:
            DrawResult with the stored record on success, or the error kind
            (POOL_NOT_FOUND, POOL_EXHAUSTED, CONTENTION, TIMEOUT,
            PERSISTENCE_FAILURE) on failure.
        """
        try:
            async with self._locks.hold((pool_id, user_id), timeout=self.lock_timeout):
                return await self._draw_locked(pool_id, user_id)
        except RouletteError as e:
            self._log_failure(pool_id, user_id, e)
            return DrawResult.failed(e.kind)

    async def _draw_locked(self, pool_id: str, user_id: str) -> DrawResult:
        """Decide and record a draw (called with the key lock held)."""
        pool = self.pool_store.load(pool_id)

        window = max(history_window(pool), 1)
        history = await self.history_store.recent(pool_id, user_id, window)
        preferences = await self.preference_store.get(pool_id, user_id)

        selection = select(pool, history, self._rng, preferences)
        if selection is Exhausted:
            logger.tree("Pool Exhausted", [
                ("Pool", pool_id),
                ("User", user_id),
                ("Version", str(pool.version)),
                ("Rule", type(pool.exclusion_rule).__name__),
                ("Excluded By User", str(len(preferences.excluded))),
                ("Targets", str(len(preferences.targets))),
            ], emoji="🈳")
            return DrawResult.failed(ErrorKind.POOL_EXHAUSTED)

        pending = PendingDraw(
            user_id=user_id,
            pool_id=pool_id,
            pool_version=pool.version,
            entry_id=selection,
            timestamp=time.time(),
        )
        expected = history[0].sequence_no if history else 0
        record = await self._commit(pending, expected)

        logger.tree("Draw Recorded", [
            ("Pool", f"{pool.display_name} (v{pool.version})"),
            ("User", user_id),
            ("Entry", selection),
            ("Sequence", f"#{record.sequence_no}"),
        ], emoji="🎯")
        return DrawResult.ok(record, pool)

    async def _commit(self, pending: PendingDraw, expected_last_sequence: int) -> DrawRecord:
        """Append a decided draw. A caller going away does not interrupt the write."""
        write = asyncio.ensure_future(self.history_store.append(pending, expected_last_sequence))
        try:
            return await asyncio.shield(write)
        except asyncio.CancelledError:
            write.add_done_callback(lambda task: self._log_abandoned(pending, task))
            raise

    def _log_abandoned(self, pending: PendingDraw, task: "asyncio.Future") -> None:
        if task.cancelled():
            outcome = "Cancelled before commit"
        elif task.exception() is not None:
            outcome = f"Not stored ({type(task.exception()).__name__})"
        else:
            outcome = f"Stored as #{task.result().sequence_no}"
        logger.tree("Draw Abandoned By Caller", [
            ("Pool", pending.pool_id),
            ("User", pending.user_id),
            ("Entry", pending.entry_id),
            ("Outcome", outcome),
        ], emoji="👻")

    def _log_failure(self, pool_id: str, user_id: str, error: RouletteError) -> None:
        items = [
            ("Pool", pool_id),
            ("User", user_id),
            ("Kind", error.kind.value),
            ("Reason", str(error)[:100]),
        ]
        if error.triage in (Triage.IMMEDIATE, Triage.DELAYED):
            logger.error("Draw Failed", items)
        else:
            logger.tree("Draw Refused", items, emoji="✋")

    # =========================================================================
    # Queries
    # =========================================================================

    def pools(self) -> List[Pool]:
        """Current snapshot of every pool."""
        return self.pool_store.all()

    def get_pool(self, pool_id: str) -> Pool:
        """
        Current snapshot of a pool.

        Raises:
            PoolNotFoundError: If the pool is unknown.
        """
        return self.pool_store.load(pool_id)

    async def history(self, pool_id: str, user_id: str, limit: int = 10) -> List[DrawRecord]:
        """
        A user's draws on a pool, most recent first.

        ``limit`` is clamped to [1, max_history_limit].

        Raises:
            StorageTimeout, PersistenceFailure, ContentionError
        """
        limit = max(1, min(int(limit), self.max_history_limit))
        return await self.history_store.recent(pool_id, user_id, limit)

    async def stats(
        self,
        pool_id: str,
        user_id: str,
        since: Optional[str] = None,
        until: Optional[str] = None,
    ) -> Dict[str, int]:
        """
        Count a user's draws per entry, optionally within a date range.

        Args:
            since: First day included (YYYY-MM-DD, UTC).
            until: Last day included (YYYY-MM-DD, UTC).

        Raises:
            ValidationError: On malformed dates or since after until.
        """
        since_dt = _parse_day(since, "since") if since else None
        until_dt = _parse_day(until, "until") + timedelta(days=1) if until else None
        if since_dt and until_dt and since_dt >= until_dt:
            raise ValidationError(f"since ({since}) is after until ({until})")

        return await self.history_store.counts(
            pool_id,
            user_id,
            since_dt.timestamp() if since_dt else None,
            until_dt.timestamp() if until_dt else None,
        )

    # =========================================================================
    # Preferences
    # =========================================================================

    async def preferences(self, pool_id: str, user_id: str) -> DrawPreferences:
        """A user's exclude/target lists for a pool."""
        return await self.preference_store.get(pool_id, user_id)

    async def update_preferences(
        self,
        pool_id: str,
        user_id: str,
        kind: str,
        action: str,
        entry_ids: List[str],
    ) -> DrawPreferences:
        """
        Change a user's exclude or target list for a pool.

        Runs under the same key lock as draws, so a draw sees either the old
        lists or the new ones.

        Args:
            kind: "exclude" or "target".
            action: "set", "add", or "remove".
            entry_ids: Entries to apply the action to. For set/add every id
                must exist in the current pool version; remove accepts any id
                so stale ones can be cleaned up.

        Raises:
            ValidationError: On an unknown kind, action, or entry id.
            PoolNotFoundError: If the pool is unknown.
        """
        if kind not in PREFERENCE_KINDS:
            raise ValidationError(f"Unknown preference list {kind!r}")
        if action not in PREFERENCE_ACTIONS:
            raise ValidationError(f"Unknown preference action {action!r}")

        pool = self.pool_store.load(pool_id)
        if action in ("set", "add"):
            unknown = [entry_id for entry_id in entry_ids if pool.entry(entry_id) is None]
            if unknown:
                raise ValidationError(f"Not in pool {pool.display_name}: {', '.join(unknown)}")
        if action != "set" and not entry_ids:
            raise ValidationError("No entries given")

        async with self._locks.hold((pool_id, user_id), timeout=self.lock_timeout):
            updated = await self.preference_store.update(pool_id, user_id, kind, action, entry_ids)

        logger.tree("Preferences Updated", [
            ("Pool", pool_id),
            ("User", user_id),
            ("Change", f"{kind} {action} {', '.join(entry_ids) or '(empty)'}"[:100]),
            ("Excluded", str(len(updated.excluded))),
            ("Targets", str(len(updated.targets))),
        ], emoji="🎚️")
        return updated

    async def clear_preferences(self, pool_id: str, user_id: str) -> int:
        """Drop both of a user's lists for a pool. Returns how many ids were removed."""
        async with self._locks.hold((pool_id, user_id), timeout=self.lock_timeout):
            removed = await self.preference_store.clear(pool_id, user_id)

        logger.tree("Preferences Cleared", [
            ("Pool", pool_id),
            ("User", user_id),
            ("Removed", str(removed)),
        ], emoji="🧹")
        return removed

    # =========================================================================
    # Pool Refresh
    # =========================================================================

    async def pool_updated_notification(self, pool: Pool) -> Pool:
        """
        Install a refreshed pool definition.

        In-flight draws keep the snapshot they already read.

        Raises:
            ValidationError: If the pool is invalid. The previous version stays active.
            PersistenceFailure: If the new version could not be stored.
        """
        return await asyncio.to_thread(self.pool_store.replace, pool)


# Singleton instance
_service: Optional[RouletteService] = None


def get_roulette_service(db=None) -> RouletteService:
    """Get or create the roulette service singleton."""
    global _service
    if _service is None:
        if db is None:
            from src.services.database import get_database
            db = get_database()
        _service = RouletteService(db)
    return _service
