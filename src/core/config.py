"""
RouletteBot - Configuration
===========================

Central configuration from environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path


ROOT_DIR = Path(__file__).parent.parent.parent
DATA_DIR = ROOT_DIR / "data"
LOGS_DIR = ROOT_DIR / "logs"

DATA_DIR.mkdir(exist_ok=True)
LOGS_DIR.mkdir(exist_ok=True)


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int with default."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float with default."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as bool ("1", "true", "yes" are truthy)."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Bot configuration from environment variables."""

    # Bot settings
    TOKEN: str = os.getenv("ROULETTE_BOT_TOKEN", "")
    GUILD_ID: int = _get_env_int("ROULETTE_GUILD_ID", 0)
    OWNER_ID: int = _get_env_int("ROULETTE_OWNER_ID", 0)

    # Database
    DATABASE_PATH: str = os.getenv("ROULETTE_DATABASE_PATH", str(DATA_DIR / "roulette.db"))

    # Pool definitions
    POOLS_FILE: str = os.getenv("ROULETTE_POOLS_FILE", str(DATA_DIR / "pools.json"))
    POOLS_SYNC_URL: str = os.getenv("ROULETTE_POOLS_SYNC_URL", "")
    POOLS_SYNC_TOKEN: str = os.getenv("ROULETTE_POOLS_SYNC_TOKEN", "")
    POOLS_SYNC_INTERVAL: int = _get_env_int("ROULETTE_POOLS_SYNC_INTERVAL", 900)  # 15 minutes

    # Draw coordination (seconds)
    STORAGE_TIMEOUT: float = _get_env_float("ROULETTE_STORAGE_TIMEOUT", 5.0)
    LOCK_TIMEOUT: float = _get_env_float("ROULETTE_LOCK_TIMEOUT", 10.0)
    MAX_HISTORY_LIMIT: int = _get_env_int("ROULETTE_MAX_HISTORY_LIMIT", 50)

    # HTTP API
    API_ENABLED: bool = _get_env_bool("ROULETTE_API_ENABLED", False)
    API_HOST: str = os.getenv("ROULETTE_API_HOST", "127.0.0.1")
    API_PORT: int = _get_env_int("ROULETTE_API_PORT", 8089)
    API_DEBUG: bool = _get_env_bool("ROULETTE_API_DEBUG", False)


config = Config()
