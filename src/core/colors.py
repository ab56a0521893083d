"""
RouletteBot - Colors Module
===========================

Color definitions for Discord embeds.
"""


# =============================================================================
# Base Color Values (Hex)
# =============================================================================

# Primary brand color
COLOR_BLUE = 0x3498DB

# Status colors
COLOR_SUCCESS = 0x43B581    # Green - successful draws
COLOR_ERROR = 0xF04747      # Red - errors and failures
COLOR_WARNING = 0xFAA61A    # Orange - contention, timeouts

# Neutral colors
COLOR_NEUTRAL = 0x95A5A6    # Gray - exhausted pools, empty history
