"""
RouletteBot - API Middleware
============================

Request processing middleware.
"""

from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
