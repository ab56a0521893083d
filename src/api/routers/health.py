"""
RouletteBot - Health Router
===========================

Health check and system status endpoints.
"""

import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends

from src.core.constants import BOT_VERSION
from src.api.dependencies import get_service_optional
from src.api.models.base import HealthResponse
from src.services.roulette import RouletteService


router = APIRouter(prefix="/api/roulette", tags=["Health"])

# Track startup time
_start_time: float = 0


def set_start_time() -> None:
    """Set the API start time."""
    global _start_time
    _start_time = time.time()


@router.get("/health")
async def health_check(
    service: Optional[RouletteService] = Depends(get_service_optional),
) -> HealthResponse:
    """
    Health check endpoint.

    Reports "starting" until the roulette service is attached and
    "degraded" while the database is unhealthy.
    """
    now = datetime.now(timezone.utc)
    start = datetime.fromtimestamp(_start_time, tz=timezone.utc) if _start_time else now
    uptime_seconds = int(time.time() - _start_time) if _start_time else 0

    # Format uptime as human-readable
    hours, remainder = divmod(uptime_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    uptime_str = f"{hours}h {minutes}m {seconds}s"

    if service is None:
        status, database, pools = "starting", "unknown", 0
    elif not service.db.is_healthy:
        status, database, pools = "degraded", "unhealthy", len(service.pool_store)
    else:
        status, database, pools = "healthy", "ok", len(service.pool_store)

    return HealthResponse(
        status=status,
        version=BOT_VERSION,
        uptime=uptime_str,
        uptime_seconds=uptime_seconds,
        started_at=start,
        timestamp=now,
        database=database,
        pools=pools,
    )


__all__ = ["router", "set_start_time"]
