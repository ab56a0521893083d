"""
RouletteBot - Logging Middleware
================================

Request/response logging for API monitoring.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.logger import logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request ID tracking, timing, and status-based logging.

    5xx responses are logged as errors, 409/504 as warnings, slow
    successes at debug level.
    """

    # Paths to skip logging entirely (high-frequency, low-value)
    SKIP_PATHS = {
        "/api/roulette/health",
    }

    SLOW_REQUEST_MS = 500

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.SKIP_PATHS:
            return await call_next(request)

        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start_time = time.time()
        method = request.method

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error("API Error", [
                ("ID", request_id),
                ("Method", method),
                ("Path", path[:50]),
                ("Error", str(e)[:50]),
                ("Duration", f"{duration_ms:.0f}ms"),
            ])
            raise

        duration_ms = (time.time() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id

        status = response.status_code
        log_data = [
            ("ID", request_id),
            ("Method", method),
            ("Path", path[:50]),
            ("Status", str(status)),
            ("Duration", f"{duration_ms:.0f}ms"),
            ("IP", request.client.host if request.client else "unknown"),
        ]

        if status >= 500 and status != 504:
            logger.error("API Response", log_data)
        elif status in (409, 504):
            logger.warning("API Response", log_data)
        elif duration_ms > self.SLOW_REQUEST_MS:
            logger.debug("API Response (Slow)", log_data)

        return response


__all__ = ["LoggingMiddleware"]
