"""
RouletteBot - API Configuration
===============================

Configuration for the FastAPI service, derived from the bot config.
"""

from dataclasses import dataclass
from typing import Optional

from src.core.config import config


@dataclass(frozen=True)
class APIConfig:
    """API configuration settings."""

    # Server
    host: str = "127.0.0.1"
    port: int = 8089
    debug: bool = False

    # CORS
    cors_origins: tuple[str, ...] = (
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    )

    # History paging
    default_history_limit: int = 10
    max_history_limit: int = 50


def load_api_config() -> APIConfig:
    """Load API configuration from the bot config."""
    return APIConfig(
        host=config.API_HOST,
        port=config.API_PORT,
        debug=config.API_DEBUG,
        max_history_limit=config.MAX_HISTORY_LIMIT,
    )


# Singleton instance
_config: Optional[APIConfig] = None


def get_api_config() -> APIConfig:
    """Get the API configuration singleton."""
    global _config
    if _config is None:
        _config = load_api_config()
    return _config


__all__ = ["APIConfig", "get_api_config", "load_api_config"]
