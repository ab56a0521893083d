"""
RouletteBot - Pools Router
==========================

Read-only views over pools, draw history, draw statistics, and user preferences.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_history_limit, get_service
from src.api.errors import from_roulette_error
from src.api.models.base import APIResponse
from src.api.models.roulette import (
    DrawRecordModel,
    EntryCount,
    HistoryResponse,
    PoolDetail,
    PoolSummary,
    PreferencesResponse,
    StatsResponse,
)
from src.services.roulette import RouletteError, RouletteService


router = APIRouter(prefix="/api/roulette", tags=["Pools"])


@router.get("/pools")
async def list_pools(
    service: RouletteService = Depends(get_service),
) -> APIResponse[list[PoolSummary]]:
    """List current snapshots of every pool."""
    pools = service.pools()
    return APIResponse[list[PoolSummary]](
        data=[PoolSummary.from_pool(pool) for pool in pools],
    )


@router.get("/pools/{pool_id}")
async def get_pool(
    pool_id: str,
    service: RouletteService = Depends(get_service),
) -> APIResponse[PoolDetail]:
    """Get the current snapshot of one pool."""
    try:
        pool = service.get_pool(pool_id)
    except RouletteError as e:
        raise from_roulette_error(e)
    return APIResponse[PoolDetail](data=PoolDetail.from_pool(pool))


@router.get("/pools/{pool_id}/history/{user_id}")
async def get_history(
    pool_id: str,
    user_id: str,
    limit: int = Depends(get_history_limit),
    service: RouletteService = Depends(get_service),
) -> HistoryResponse:
    """
    A user's draws on a pool, newest first.

    History of a pool that no longer exists is still returned.
    """
    try:
        records = await service.history(pool_id, user_id, limit)
    except RouletteError as e:
        raise from_roulette_error(e)

    return HistoryResponse(
        pool_id=pool_id,
        user_id=user_id,
        limit=limit,
        data=[DrawRecordModel.from_record(record) for record in records],
    )


@router.get("/pools/{pool_id}/stats/{user_id}")
async def get_stats(
    pool_id: str,
    user_id: str,
    since: Optional[str] = Query(None, description="First day included (YYYY-MM-DD, UTC)"),
    until: Optional[str] = Query(None, description="Last day included (YYYY-MM-DD, UTC)"),
    service: RouletteService = Depends(get_service),
) -> StatsResponse:
    """Per-entry draw counts, optionally within a date range."""
    try:
        counts = await service.stats(pool_id, user_id, since, until)
    except RouletteError as e:
        raise from_roulette_error(e)

    pool = service.pool_store.get(pool_id)
    data = []
    for entry_id, count in sorted(counts.items(), key=lambda item: (-item[1], item[0])):
        entry = pool.entry(entry_id) if pool else None
        data.append(EntryCount(
            entry_id=entry_id,
            title=entry.title if entry else entry_id,
            count=count,
        ))

    return StatsResponse(
        pool_id=pool_id,
        user_id=user_id,
        since=since,
        until=until,
        total=sum(counts.values()),
        data=data,
    )


@router.get("/pools/{pool_id}/preferences/{user_id}")
async def get_preferences(
    pool_id: str,
    user_id: str,
    service: RouletteService = Depends(get_service),
) -> PreferencesResponse:
    """A user's exclude/target lists for a pool."""
    try:
        preferences = await service.preferences(pool_id, user_id)
    except RouletteError as e:
        raise from_roulette_error(e)

    return PreferencesResponse.from_preferences(pool_id, user_id, preferences)


__all__ = ["router"]
