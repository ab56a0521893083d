"""
RouletteBot - Roulette API Models
=================================

Pydantic models for pool, history, statistics, and preference responses.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.services.roulette.models import DrawPreferences, DrawRecord, Pool, PoolEntry


# =============================================================================
# Pools
# =============================================================================

class PoolEntryModel(BaseModel):
    """A drawable entry. Weight is an exact rational rendered as a string."""

    id: str
    weight: str = Field(description="Exact weight, e.g. '3' or '1/3'")
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, entry: PoolEntry) -> "PoolEntryModel":
        return cls(**entry.to_dict())


class PoolSummary(BaseModel):
    """Pool listing item."""

    id: str
    name: str
    description: str = ""
    version: int
    exclusion: Optional[dict[str, Any]] = None
    entry_count: int

    @classmethod
    def from_pool(cls, pool: Pool) -> "PoolSummary":
        return cls(
            id=pool.id,
            name=pool.display_name,
            description=pool.description,
            version=pool.version,
            exclusion=pool.exclusion_rule.to_dict(),
            entry_count=len(pool.entries),
        )


class PoolDetail(BaseModel):
    """Full pool snapshot."""

    id: str
    name: str
    description: str = ""
    version: int
    exclusion: Optional[dict[str, Any]] = None
    entries: list[PoolEntryModel]

    @classmethod
    def from_pool(cls, pool: Pool) -> "PoolDetail":
        return cls(
            id=pool.id,
            name=pool.display_name,
            description=pool.description,
            version=pool.version,
            exclusion=pool.exclusion_rule.to_dict(),
            entries=[PoolEntryModel.from_entry(entry) for entry in pool.entries],
        )


# =============================================================================
# History
# =============================================================================

class DrawRecordModel(BaseModel):
    """A stored draw."""

    sequence_no: int
    user_id: str
    pool_id: str
    pool_version: int
    entry_id: str
    timestamp: float
    drawn_at: datetime

    @classmethod
    def from_record(cls, record: DrawRecord) -> "DrawRecordModel":
        return cls(
            **record.to_dict(),
            drawn_at=datetime.fromtimestamp(record.timestamp, tz=timezone.utc),
        )


class HistoryResponse(BaseModel):
    """A user's recent draws on a pool, newest first."""

    success: bool = True
    pool_id: str
    user_id: str
    limit: int
    data: list[DrawRecordModel]


# =============================================================================
# Statistics
# =============================================================================

class EntryCount(BaseModel):
    """Draw count for one entry."""

    entry_id: str
    title: str
    count: int = Field(ge=0)


class StatsResponse(BaseModel):
    """Per-entry draw counts for a user on a pool."""

    success: bool = True
    pool_id: str
    user_id: str
    since: Optional[str] = None
    until: Optional[str] = None
    total: int = Field(ge=0)
    data: list[EntryCount]


# =============================================================================
# Preferences
# =============================================================================

class PreferencesResponse(BaseModel):
    """A user's exclude/target lists for a pool."""

    success: bool = True
    pool_id: str
    user_id: str
    excluded: list[str] = Field(default_factory=list)
    targets: list[str] = Field(default_factory=list)

    @classmethod
    def from_preferences(cls, pool_id: str, user_id: str, preferences: DrawPreferences) -> "PreferencesResponse":
        return cls(pool_id=pool_id, user_id=user_id, **preferences.to_dict())


__all__ = [
    "PoolEntryModel",
    "PoolSummary",
    "PoolDetail",
    "DrawRecordModel",
    "HistoryResponse",
    "EntryCount",
    "StatsResponse",
    "PreferencesResponse",
]
