"""
RouletteBot - API Package
=========================

FastAPI-based read-only REST API over pools, draw history, and statistics.

Endpoints (prefix /api/roulette):
- GET /health
- GET /pools
- GET /pools/{pool_id}
- GET /pools/{pool_id}/history/{user_id}?limit=
- GET /pools/{pool_id}/stats/{user_id}?since=&until=

Usage with bot:
    from src.api import APIService

    api_service = APIService(roulette_service)
    await api_service.start()

    # On shutdown
    await api_service.stop()
"""

import asyncio
from typing import Optional

import uvicorn

from src.core.logger import logger
from src.api.config import get_api_config, APIConfig
from src.api.app import create_app
from src.services.roulette import RouletteService


# =============================================================================
# API Service
# =============================================================================

class APIService:
    """
    Manages the FastAPI server lifecycle within the Discord bot.

    This service runs the API server in a background task, allowing
    the bot and API to run concurrently.
    """

    def __init__(self, service: RouletteService) -> None:
        self._config = get_api_config()
        self._app = create_app(service)
        self._server: Optional[uvicorn.Server] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        """Check if the API server is running."""
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the API server in a background task."""
        if self.is_running:
            logger.warning("API Already Running", [])
            return

        config = uvicorn.Config(
            app=self._app,
            host=self._config.host,
            port=self._config.port,
            log_level="warning",  # Reduce uvicorn logging
            access_log=False,  # We have our own logging middleware
        )

        self._server = uvicorn.Server(config)
        self._task = asyncio.create_task(self._run_server())

        logger.tree("Roulette API Ready", [
            ("Host", self._config.host),
            ("Port", str(self._config.port)),
            ("Endpoints", "/api/roulette/pools, /api/roulette/health"),
            ("Docs", "Enabled" if self._config.debug else "Disabled"),
        ], emoji="🌐")

    async def _run_server(self) -> None:
        """Run the uvicorn server."""
        try:
            await self._server.serve()
        except asyncio.CancelledError:
            logger.debug("API Server Cancelled", [])
        except (OSError, SystemExit) as e:
            # uvicorn exits on bind failures
            logger.error("API Server Error", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])

    async def stop(self) -> None:
        """Stop the API server gracefully."""
        if not self.is_running:
            return

        logger.tree("Roulette API Stopping", [], emoji="🛑")

        if self._server:
            self._server.should_exit = True

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except asyncio.TimeoutError:
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass

        self._server = None
        self._task = None

        logger.tree("Roulette API Stopped", [
            ("Status", "Shutdown complete"),
        ], emoji="✅")


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "APIService",
    "get_api_config",
    "APIConfig",
    "create_app",
]
