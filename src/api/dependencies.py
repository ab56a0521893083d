"""
RouletteBot - API Dependencies
==============================

FastAPI dependency injection utilities.
"""

from typing import Optional

from fastapi import Query

from src.api.config import get_api_config
from src.api.errors import APIError, ErrorCode
from src.services.roulette import RouletteService


# =============================================================================
# Service Reference
# =============================================================================

_service_instance: Optional[RouletteService] = None


def set_service(service: Optional[RouletteService]) -> None:
    """Set the roulette service for dependency injection."""
    global _service_instance
    _service_instance = service


def get_service() -> RouletteService:
    """Get the roulette service."""
    if _service_instance is None:
        raise APIError(ErrorCode.SERVICE_NOT_INITIALIZED)
    return _service_instance


def get_service_optional() -> Optional[RouletteService]:
    """Get the roulette service if available, None otherwise."""
    return _service_instance


# =============================================================================
# History Limit
# =============================================================================

def get_history_limit(
    limit: Optional[int] = Query(None, ge=1, description="Number of draws to return"),
) -> int:
    """Get the history limit, clamped to the configured maximum."""
    config = get_api_config()
    if limit is None:
        return config.default_history_limit
    return min(limit, config.max_history_limit)


__all__ = [
    "set_service",
    "get_service",
    "get_service_optional",
    "get_history_limit",
]
