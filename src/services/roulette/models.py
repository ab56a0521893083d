"""
RouletteBot - Roulette Models
=============================

Immutable data types for pools, exclusion rules, and draws.

Pools are replaced wholesale on every refresh and never mutated in place,
so a Pool instance is a snapshot of exactly one version.
"""

import math
from dataclasses import dataclass, field
from fractions import Fraction
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

from .errors import ErrorKind, ValidationError, message_for


# =============================================================================
# Exclusion Rules
# =============================================================================

@dataclass(frozen=True)
class NoExclusion:
    """Every entry is always eligible."""

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return None


@dataclass(frozen=True)
class ExcludeLastN:
    """Entries drawn in the user's last ``n`` draws are not eligible."""

    n: int

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "last_n", "n": self.n}


@dataclass(frozen=True)
class ExcludeTag:
    """If the user's last draw carried ``tag``, every entry with ``tag`` is not eligible."""

    tag: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "tag", "tag": self.tag}


ExclusionRule = Union[NoExclusion, ExcludeLastN, ExcludeTag]


def exclusion_from_dict(data: Optional[Mapping[str, Any]]) -> ExclusionRule:
    """Build an exclusion rule from its stored/wire form."""
    if not data:
        return NoExclusion()
    rule_type = data.get("type")
    if rule_type in (None, "none"):
        return NoExclusion()
    if rule_type == "last_n":
        return ExcludeLastN(n=data.get("n"))
    if rule_type == "tag":
        return ExcludeTag(tag=data.get("tag"))
    raise ValidationError(f"Unknown exclusion rule type: {rule_type!r}")


# =============================================================================
# Pools
# =============================================================================

def _freeze_metadata(metadata: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(metadata or {}))


@dataclass(frozen=True)
class PoolEntry:
    """A drawable item with a positive weight."""

    id: str
    weight: Fraction
    tags: FrozenSet[str] = frozenset()
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def create(
        cls,
        id: str,
        weight: Union[int, float, str, Fraction],
        tags: Iterable[str] = (),
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> "PoolEntry":
        """Create an entry, normalizing weight to a Fraction."""
        return cls(
            id=id,
            weight=to_weight(weight),
            tags=frozenset(tags),
            metadata=_freeze_metadata(metadata),
        )

    @property
    def title(self) -> str:
        """Display title from metadata, falling back to the id."""
        return str(self.metadata.get("title") or self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "weight": str(self.weight),
            "tags": sorted(self.tags),
            "metadata": dict(self.metadata),
        }


def to_weight(value: Union[int, float, str, Fraction]) -> Fraction:
    """
    Convert a weight to an exact Fraction.

    Accepts ints, floats, decimal strings, and rational strings ("1/3").

    Raises:
        ValidationError: If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid weight: {value!r}")
    if isinstance(value, Fraction):
        return value
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"Invalid weight: {value!r}")
    try:
        return Fraction(str(value).strip())
    except (ValueError, ZeroDivisionError) as e:
        raise ValidationError(f"Invalid weight: {value!r}") from e


@dataclass(frozen=True)
class Pool:
    """A versioned snapshot of a weighted pool plus its exclusion rule."""

    id: str
    entries: Tuple[PoolEntry, ...]
    version: int = 0
    exclusion_rule: ExclusionRule = NoExclusion()
    name: str = ""
    description: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def entry_ids(self) -> Tuple[str, ...]:
        return tuple(entry.id for entry in self.entries)

    @property
    def total_weight(self) -> Fraction:
        return sum((entry.weight for entry in self.entries), Fraction(0))

    def entry(self, entry_id: str) -> Optional[PoolEntry]:
        """Get an entry by id, or None if this version does not have it."""
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def with_version(self, version: int) -> "Pool":
        return Pool(
            id=self.id,
            entries=self.entries,
            version=version,
            exclusion_rule=self.exclusion_rule,
            name=self.name,
            description=self.description,
        )

    def same_definition(self, other: "Pool") -> bool:
        """Compare everything except the version."""
        return self.with_version(0) == other.with_version(0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "description": self.description,
            "version": self.version,
            "exclusion": self.exclusion_rule.to_dict(),
            "entries": [entry.to_dict() for entry in self.entries],
        }


def validate_pool(pool: Pool) -> None:
    """
    Check pool invariants.

    Raises:
        ValidationError: On empty id, no entries, duplicate or empty entry ids,
            non-positive weights, or a malformed exclusion rule.
    """
    if not isinstance(pool.id, str) or not pool.id.strip():
        raise ValidationError("Pool id must be a non-empty string")
    if not pool.entries:
        raise ValidationError(f"Pool {pool.id!r} has no entries")

    seen = set()
    for entry in pool.entries:
        if not isinstance(entry.id, str) or not entry.id.strip():
            raise ValidationError(f"Pool {pool.id!r} has an entry with an empty id")
        if entry.id in seen:
            raise ValidationError(f"Pool {pool.id!r} has duplicate entry id {entry.id!r}")
        seen.add(entry.id)
        if not isinstance(entry.weight, Fraction) or entry.weight <= 0:
            raise ValidationError(
                f"Entry {entry.id!r} in pool {pool.id!r} must have a positive weight, got {entry.weight}"
            )

    rule = pool.exclusion_rule
    if isinstance(rule, ExcludeLastN):
        if isinstance(rule.n, bool) or not isinstance(rule.n, int) or rule.n < 1:
            raise ValidationError(f"Pool {pool.id!r}: last_n exclusion needs n >= 1, got {rule.n!r}")
    elif isinstance(rule, ExcludeTag):
        if not isinstance(rule.tag, str) or not rule.tag.strip():
            raise ValidationError(f"Pool {pool.id!r}: tag exclusion needs a non-empty tag")
    elif not isinstance(rule, NoExclusion):
        raise ValidationError(f"Pool {pool.id!r}: unknown exclusion rule {rule!r}")


# =============================================================================
# Draws
# =============================================================================

@dataclass(frozen=True)
class PendingDraw:
    """A draw decision that has not been persisted yet (no sequence number)."""

    user_id: str
    pool_id: str
    pool_version: int
    entry_id: str
    timestamp: float


@dataclass(frozen=True)
class DrawRecord:
    """A persisted draw. Immutable once written."""

    user_id: str
    pool_id: str
    pool_version: int
    entry_id: str
    timestamp: float
    sequence_no: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "pool_id": self.pool_id,
            "pool_version": self.pool_version,
            "entry_id": self.entry_id,
            "timestamp": self.timestamp,
            "sequence_no": self.sequence_no,
        }


@dataclass(frozen=True)
class DrawPreferences:
    """
    A user's own filters for one pool, applied on top of the pool's rule.

    ``excluded`` entries are never drawn for the user. When ``targets`` is
    non-empty only those entries are drawn. Ids missing from the pool
    version being drawn are ignored.
    """

    excluded: FrozenSet[str] = frozenset()
    targets: FrozenSet[str] = frozenset()

    @property
    def empty(self) -> bool:
        return not self.excluded and not self.targets

    def to_dict(self) -> Dict[str, Any]:
        return {
            "excluded": sorted(self.excluded),
            "targets": sorted(self.targets),
        }


PREFERENCE_KINDS = ("exclude", "target")
PREFERENCE_ACTIONS = ("set", "add", "remove")


@dataclass(frozen=True)
class DrawResult:
    """
    Outcome of one draw request.

    On success ``pool`` is the snapshot the draw was decided against, so
    callers can render the entry from the same version as the record.
    """

    success: bool
    record: Optional[DrawRecord] = None
    error: Optional[ErrorKind] = None
    pool: Optional[Pool] = field(default=None, compare=False, repr=False)

    @classmethod
    def ok(cls, record: DrawRecord, pool: Optional[Pool] = None) -> "DrawResult":
        return cls(success=True, record=record, pool=pool)

    @classmethod
    def failed(cls, kind: ErrorKind) -> "DrawResult":
        return cls(success=False, error=kind)

    @property
    def message(self) -> str:
        if self.success:
            return "OK"
        return message_for(self.error)


__all__ = [
    "NoExclusion",
    "ExcludeLastN",
    "ExcludeTag",
    "ExclusionRule",
    "exclusion_from_dict",
    "PoolEntry",
    "Pool",
    "to_weight",
    "validate_pool",
    "PendingDraw",
    "DrawRecord",
    "DrawPreferences",
    "PREFERENCE_KINDS",
    "PREFERENCE_ACTIONS",
    "DrawResult",
]
