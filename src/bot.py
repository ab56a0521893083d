"""
RouletteBot - Main Bot
======================

Discord bot that draws weighted entries from pools.
"""

from typing import Optional

import discord
from discord.ext import commands

from src.core.config import config
from src.core.logger import logger
from src.services.database import get_database
from src.services.pool_sync import PoolSyncService
from src.services.roulette import RouletteError, RouletteService, get_roulette_service
from src.utils.http import http_session


class RouletteBot(commands.Bot):
    """Main bot class for RouletteBot."""

    def __init__(self) -> None:
        intents = discord.Intents.default()

        super().__init__(
            command_prefix="!",
            intents=intents,
            help_command=None,
        )

        # Services
        self.roulette: Optional[RouletteService] = None
        self.pool_sync: Optional[PoolSyncService] = None
        self.api_service = None
        self.services_ready = False

    async def setup_hook(self) -> None:
        """Called when the bot is starting up."""
        # Load handlers
        await self.load_extension("src.handlers.ready")

        # Load commands
        await self.load_extension("src.commands.roulette")

    async def _init_services(self) -> None:
        """Initialize bot services."""
        # Roulette
        try:
            service = get_roulette_service(get_database())
            await service.setup()
        except RouletteError as e:
            # Left uninitialized; the next on_ready tries again
            logger.error_tree("Roulette Service Unavailable", e, [
                ("Database", config.DATABASE_PATH),
                ("Kind", e.kind.value),
            ])
            return
        self.roulette = service

        # Pool Sync
        self.pool_sync = PoolSyncService(self.roulette)
        await self.pool_sync.setup()

        # HTTP API
        if config.API_ENABLED:
            from src.api import APIService
            self.api_service = APIService(self.roulette)
            await self.api_service.start()

        self.services_ready = True

    async def close(self) -> None:
        """Clean up when bot is shutting down."""
        logger.info("Bot shutting down...")
        if self.pool_sync:
            await self.pool_sync.stop()
        if self.api_service:
            await self.api_service.stop()
        await http_session.close()
        await super().close()
