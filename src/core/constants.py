"""
RouletteBot - Shared Constants
==============================

Centralized constants for the entire codebase.
Import from here instead of defining locally.
"""

from zoneinfo import ZoneInfo


# =============================================================================
# Bot Info
# =============================================================================

BOT_NAME = "RouletteBot"
BOT_VERSION = "1.0.0"


# =============================================================================
# Timezone
# =============================================================================

TIMEZONE_UTC = ZoneInfo("UTC")


# =============================================================================
# Roulette
# =============================================================================

DEFAULT_HISTORY_LIMIT = 10     # Entries shown by /history when no limit given
EMBED_FIELD_LIMIT = 25         # Discord max fields per embed
STATS_DATE_FORMAT = "%Y-%m-%d"  # since/until format for statistics


# =============================================================================
# Pool Sync
# =============================================================================

SYNC_HTTP_TIMEOUT = 30  # Total seconds for one remote fetch
SYNC_RETRY_DELAY = 60   # Seconds before retrying after a failed loop iteration
