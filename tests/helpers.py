"""Shared builders for the test suite."""

import time
from typing import Dict, Iterable, Optional, Sequence

from src.services.roulette.models import (
    DrawRecord,
    ExclusionRule,
    NoExclusion,
    PendingDraw,
    Pool,
    PoolEntry,
)


class FixedRandom:
    """Random source that replays the given values in a loop."""

    def __init__(self, *values: float) -> None:
        self.values = list(values) or [0.0]
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


def make_pool(
    pool_id: str = "quests",
    weights: Optional[Dict[str, object]] = None,
    rule: ExclusionRule = NoExclusion(),
    tags: Optional[Dict[str, Iterable[str]]] = None,
    version: int = 0,
    name: str = "",
) -> Pool:
    weights = weights if weights is not None else {"a": 1, "b": 1}
    tags = tags or {}
    return Pool(
        id=pool_id,
        entries=tuple(
            PoolEntry.create(entry_id, weight, tags=tags.get(entry_id, ()), metadata={"title": entry_id.upper()})
            for entry_id, weight in weights.items()
        ),
        version=version,
        exclusion_rule=rule,
        name=name,
    )


def make_history(entry_ids: Sequence[str], pool_id: str = "quests", user_id: str = "u1") -> list:
    """Most-recent-first records for the given entry ids."""
    count = len(entry_ids)
    return [
        DrawRecord(
            user_id=user_id,
            pool_id=pool_id,
            pool_version=1,
            entry_id=entry_id,
            timestamp=1_700_000_000.0 + (count - index),
            sequence_no=count - index,
        )
        for index, entry_id in enumerate(entry_ids)
    ]


def pending(entry_id: str, pool_id: str = "quests", user_id: str = "u1", timestamp: Optional[float] = None) -> PendingDraw:
    return PendingDraw(
        user_id=user_id,
        pool_id=pool_id,
        pool_version=1,
        entry_id=entry_id,
        timestamp=time.time() if timestamp is None else timestamp,
    )
