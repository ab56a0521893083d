"""
RouletteBot - API Models
========================

Pydantic models for API request/response schemas.
"""

from .base import APIResponse, ErrorResponse, HealthResponse
from .roulette import (
    DrawRecordModel,
    EntryCount,
    HistoryResponse,
    PoolDetail,
    PoolEntryModel,
    PoolSummary,
    PreferencesResponse,
    StatsResponse,
)

__all__ = [
    # Base
    "APIResponse",
    "ErrorResponse",
    "HealthResponse",
    # Roulette
    "PoolEntryModel",
    "PoolSummary",
    "PoolDetail",
    "DrawRecordModel",
    "HistoryResponse",
    "EntryCount",
    "StatsResponse",
    "PreferencesResponse",
]
