"""
RouletteBot - Ready Handler
===========================

Handles bot startup events.
"""

import discord
from discord.ext import commands

from src.core.config import config
from src.core.constants import BOT_VERSION
from src.core.logger import logger


class ReadyHandler(commands.Cog):
    """Handles bot ready event."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    def _log_feature_status(self) -> None:
        """Log enabled/disabled features based on configuration."""
        logger.tree("Feature Status", [
            ("Pool Seed File", "✅" if config.POOLS_FILE else "❌"),
            ("Pool Sync", "✅" if config.POOLS_SYNC_URL else "❌"),
            ("HTTP API", "✅" if config.API_ENABLED else "❌"),
        ], emoji="📋")

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        """Called when the bot is ready (and again after every reconnect)."""
        logger.tree("Bot Ready", [
            ("User", str(self.bot.user)),
            ("ID", str(self.bot.user.id)),
            ("Guilds", str(len(self.bot.guilds))),
            ("Version", BOT_VERSION),
            ("Latency", f"{self.bot.latency * 1000:.0f}ms"),
        ], emoji="🚀")

        if self.bot.services_ready:
            return

        self._log_feature_status()

        # Sync slash commands to the configured guild, or globally without one
        try:
            if config.GUILD_ID:
                guild_obj = discord.Object(id=config.GUILD_ID)
                self.bot.tree.copy_global_to(guild=guild_obj)
                synced = await self.bot.tree.sync(guild=guild_obj)
            else:
                synced = await self.bot.tree.sync()

            logger.tree("Commands Synced", [
                ("Guild ID", str(config.GUILD_ID) if config.GUILD_ID else "Global"),
                ("Commands", str(len(synced))),
                ("Names", ", ".join(sorted(c.name for c in synced))),
            ], emoji="🔄")
        except discord.HTTPException as e:
            logger.error_tree("Command Sync Failed", e)

        await self.bot._init_services()

        await self.bot.change_presence(
            activity=discord.Activity(
                type=discord.ActivityType.playing,
                name="/draw",
            )
        )


async def setup(bot: commands.Bot) -> None:
    """Register the ready handler cog with the bot."""
    await bot.add_cog(ReadyHandler(bot))
    logger.tree("Handler Loaded", [
        ("Name", "ReadyHandler"),
    ], emoji="✅")
