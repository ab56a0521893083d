"""RouletteBot - Utils Package."""

from src.utils.http import http_session, SYNC_TIMEOUT
from src.utils.async_utils import create_safe_task

__all__ = [
    "http_session",
    "SYNC_TIMEOUT",
    "create_safe_task",
]
