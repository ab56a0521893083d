"""
RouletteBot - Draw Engine
=========================

Pure decision logic: which entry does a user get next?

No I/O and no shared state. Given the same pool snapshot, history, and
random value, the result is always the same. The random source is passed
in explicitly so tests can pin it.

Selection:
    1. Apply the pool's exclusion rule against the user's recent history,
       then the user's own exclude/target preferences, to get the candidate
       entries (kept in pool insertion order).
    2. If nothing is left, the pool is exhausted for this user.
    3. Build the cumulative weight distribution, draw one uniform point in
       [0, total_weight), and pick the first entry whose cumulative weight
       exceeds the point.
"""

from fractions import Fraction
from typing import List, Optional, Protocol, Sequence, Set, Union

from .models import DrawPreferences, DrawRecord, ExcludeLastN, ExcludeTag, NoExclusion, Pool, PoolEntry


class RandomSource(Protocol):
    """Anything with a ``random()`` returning a float in [0.0, 1.0)."""

    def random(self) -> float: ...


class _Exhausted:
    """No eligible entries remain. A legitimate outcome, not an error."""

    _instance: Optional["_Exhausted"] = None

    def __new__(cls) -> "_Exhausted":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Exhausted"

    def __bool__(self) -> bool:
        return False


Exhausted = _Exhausted()

Selection = Union[str, _Exhausted]


# =============================================================================
# Exclusion
# =============================================================================

def history_window(pool: Pool) -> int:
    """How many of the user's most recent records the pool's rule looks at."""
    rule = pool.exclusion_rule
    if isinstance(rule, ExcludeLastN):
        return rule.n
    if isinstance(rule, ExcludeTag):
        return 1
    return 0


def excluded_ids(pool: Pool, history: Sequence[DrawRecord]) -> Set[str]:
    """
    Entry ids the exclusion rule removes for this history.

    ``history`` is most-recent-first. Records pointing at entries that this
    pool version no longer has cannot match anything.
    """
    rule = pool.exclusion_rule

    if isinstance(rule, NoExclusion) or not history:
        return set()

    if isinstance(rule, ExcludeLastN):
        present = set(pool.entry_ids)
        return {record.entry_id for record in history[:rule.n] if record.entry_id in present}

    if isinstance(rule, ExcludeTag):
        last_entry = pool.entry(history[0].entry_id)
        if last_entry is None or rule.tag not in last_entry.tags:
            return set()
        return {entry.id for entry in pool.entries if rule.tag in entry.tags}

    return set()


def candidates(
    pool: Pool,
    history: Sequence[DrawRecord],
    preferences: Optional[DrawPreferences] = None,
) -> List[PoolEntry]:
    """
    Eligible entries in pool insertion order.

    Preference ids this pool version does not have are ignored, so a target
    list that matches nothing leaves the draw unrestricted.
    """
    excluded = excluded_ids(pool, history)
    targets: Set[str] = set()
    if preferences is not None:
        excluded |= preferences.excluded
        targets = set(preferences.targets).intersection(pool.entry_ids)

    return [
        entry for entry in pool.entries
        if entry.id not in excluded and (not targets or entry.id in targets)
    ]


# =============================================================================
# Weighted Selection
# =============================================================================

def pick(entries: Sequence[PoolEntry], point: Fraction) -> PoolEntry:
    """
    Pick the first entry whose cumulative weight exceeds ``point``.

    ``point`` must lie in [0, total_weight). A point at or past the total
    selects the last entry.
    """
    if not entries:
        raise ValueError("pick() needs at least one entry")

    cumulative = Fraction(0)
    for entry in entries:
        cumulative += entry.weight
        if cumulative > point:
            return entry
    return entries[-1]


def sample_point(entries: Sequence[PoolEntry], rng: RandomSource) -> Fraction:
    """Draw one uniform point in [0, total_weight) from ``rng``."""
    total = sum((entry.weight for entry in entries), Fraction(0))
    return Fraction(rng.random()) * total


def select(
    pool: Pool,
    history: Sequence[DrawRecord],
    rng: RandomSource,
    preferences: Optional[DrawPreferences] = None,
) -> Selection:
    """
    Select the next entry for a user.

    Args:
        pool: The pool snapshot to draw from.
        history: The user's records for this pool, most recent first.
        rng: Uniform random source.
        preferences: The user's exclude/target filters for this pool, if any.

    Returns:
        The selected entry id, or ``Exhausted`` if no entry is eligible.
    """
    eligible = candidates(pool, history, preferences)
    if not eligible:
        return Exhausted
    return pick(eligible, sample_point(eligible, rng)).id


__all__ = [
    "RandomSource",
    "Exhausted",
    "Selection",
    "history_window",
    "excluded_ids",
    "candidates",
    "pick",
    "sample_point",
    "select",
]
