"""
RouletteBot - Base API Models
=============================

Common response models and utilities.
"""

from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field


# =============================================================================
# Generic Type Variables
# =============================================================================

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Base Response Models
# =============================================================================

class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error_code: str
    message: str
    details: Optional[dict[str, Any]] = None


# =============================================================================
# Health Models
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    bot: str = "RouletteBot"
    version: str
    uptime: str
    uptime_seconds: int
    started_at: datetime
    timestamp: datetime
    database: str = "unknown"
    pools: int = 0


__all__ = [
    "APIResponse",
    "ErrorResponse",
    "HealthResponse",
]
