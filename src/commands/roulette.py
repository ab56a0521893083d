"""
RouletteBot - Roulette Commands
===============================

Slash commands for drawing from pools and inspecting draw history.

Commands:
    /draw     Draw one entry from a pool
    /history  Show your recent draws on a pool
    /pools    List available pools
    /stats    Count your draws per entry, optionally within a date range
    /version  Show the bot version

    /settings info     Show your exclude/target lists for a pool
    /settings exclude  Set, add to, or remove from your excluded entries
    /settings target   Set, add to, or remove from your target entries
    /settings clear    Drop both lists for a pool
"""

import re
import time
from typing import List, Optional

import discord
from discord import app_commands
from discord.ext import commands

from src.core.colors import COLOR_BLUE, COLOR_ERROR, COLOR_NEUTRAL, COLOR_SUCCESS, COLOR_WARNING
from src.core.constants import BOT_NAME, BOT_VERSION, DEFAULT_HISTORY_LIMIT, EMBED_FIELD_LIMIT
from src.core.logger import logger
from src.services.roulette import (
    DrawPreferences,
    DrawRecord,
    DrawResult,
    ErrorKind,
    Pool,
    RouletteError,
)


# Kinds that are the user's situation rather than a fault
_SOFT_KINDS = {ErrorKind.POOL_EXHAUSTED, ErrorKind.CONTENTION}

_ACTION_CHOICES = [
    app_commands.Choice(name="Set (replace the list)", value="set"),
    app_commands.Choice(name="Add", value="add"),
    app_commands.Choice(name="Remove", value="remove"),
]


def parse_entry_ids(text: Optional[str]) -> List[str]:
    """Split a comma or space separated list of entry ids, keeping order."""
    if not text:
        return []
    return list(dict.fromkeys(part for part in re.split(r"[,\s]+", text) if part))


# =============================================================================
# Embed Builders
# =============================================================================

def build_draw_embed(pool: Optional[Pool], result: DrawResult, user: discord.abc.User) -> discord.Embed:
    """Embed for a /draw outcome."""
    if result.success:
        record = result.record
        entry = pool.entry(record.entry_id) if pool else None
        title = entry.title if entry else record.entry_id

        embed = discord.Embed(
            title=f"🎯 {title}",
            description=f"{user.mention} drew from **{pool.display_name if pool else record.pool_id}**",
            color=COLOR_SUCCESS,
        )
        if entry:
            for key, value in list(entry.metadata.items())[:EMBED_FIELD_LIMIT - 1]:
                if key in ("title", "name"):
                    continue
                embed.add_field(name=str(key).replace("_", " ").title(), value=str(value)[:1024], inline=True)
        embed.set_footer(text=f"Draw #{record.sequence_no} • Pool v{record.pool_version}")
        return embed

    color = COLOR_NEUTRAL if result.error in _SOFT_KINDS else COLOR_ERROR
    if result.error == ErrorKind.TIMEOUT:
        color = COLOR_WARNING
    return discord.Embed(description=f"❌ {result.message}", color=color)


def build_history_embed(pool: Pool, records: List[DrawRecord], user: discord.abc.User) -> discord.Embed:
    """Embed listing a user's recent draws, newest first."""
    embed = discord.Embed(
        title=f"📜 {pool.display_name}",
        color=COLOR_BLUE if records else COLOR_NEUTRAL,
    )
    if not records:
        embed.description = f"{user.mention} has not drawn from this pool yet."
        return embed

    lines = []
    for record in records:
        entry = pool.entry(record.entry_id)
        name = entry.title if entry else f"{record.entry_id} (removed)"
        lines.append(f"`#{record.sequence_no}` {name} • <t:{int(record.timestamp)}:R>")
    embed.description = "\n".join(lines)
    embed.set_footer(text=f"{len(records)} most recent draws for {user.display_name}")
    return embed


def build_pools_embed(pools: List[Pool]) -> discord.Embed:
    """Embed listing every available pool."""
    embed = discord.Embed(title="🎡 Pools", color=COLOR_BLUE if pools else COLOR_NEUTRAL)
    if not pools:
        embed.description = "No pools are available."
        return embed

    for pool in pools[:EMBED_FIELD_LIMIT]:
        value = pool.description[:200] if pool.description else "No description"
        embed.add_field(
            name=f"{pool.display_name} (`{pool.id}`)",
            value=f"{value}\n-# {len(pool.entries)} entries • v{pool.version}",
            inline=False,
        )
    return embed


def build_stats_embed(
    pool: Pool,
    counts: dict,
    user: discord.abc.User,
    since: Optional[str],
    until: Optional[str],
) -> discord.Embed:
    """Embed with per-entry draw counts."""
    embed = discord.Embed(
        title=f"📊 {pool.display_name}",
        color=COLOR_BLUE if counts else COLOR_NEUTRAL,
    )
    period = f"{since or 'start'} → {until or 'today'}"
    if not counts:
        embed.description = f"No draws for {user.mention} in {period}."
        return embed

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    lines = []
    for entry_id, count in ranked[:EMBED_FIELD_LIMIT]:
        entry = pool.entry(entry_id)
        name = entry.title if entry else f"{entry_id} (removed)"
        lines.append(f"**{count}×** {name}")
    embed.description = "\n".join(lines)
    embed.set_footer(text=f"{sum(counts.values())} draws • {period}")
    return embed


def build_preferences_embed(pool: Pool, preferences: DrawPreferences, user: discord.abc.User) -> discord.Embed:
    """Embed showing a user's exclude/target lists for a pool."""
    embed = discord.Embed(
        title=f"🎚️ {pool.display_name}",
        color=COLOR_NEUTRAL if preferences.empty else COLOR_BLUE,
    )
    if preferences.empty:
        embed.description = f"{user.mention} draws from the whole pool."
        return embed

    def _names(entry_ids) -> str:
        names = []
        for entry_id in sorted(entry_ids):
            entry = pool.entry(entry_id)
            names.append(entry.title if entry else f"{entry_id} (not in v{pool.version})")
        return ", ".join(names)[:1024] or "None"

    embed.add_field(name="Excluded", value=_names(preferences.excluded), inline=False)
    embed.add_field(name="Targets", value=_names(preferences.targets), inline=False)
    if preferences.targets:
        embed.set_footer(text="Only targets are drawn while the target list is not empty")
    return embed


def _error_embed(error: RouletteError) -> discord.Embed:
    return discord.Embed(description=f"❌ {error}", color=COLOR_ERROR)


# =============================================================================
# Autocomplete
# =============================================================================

async def pool_autocomplete(interaction: discord.Interaction, current: str) -> List[app_commands.Choice[str]]:
    """Suggest pools matching what the user typed."""
    service = getattr(interaction.client, "roulette", None)
    if service is None:
        return []

    current = current.lower()
    choices = []
    for pool in service.pools():
        if current in pool.id.lower() or current in pool.display_name.lower():
            choices.append(app_commands.Choice(name=pool.display_name[:100], value=pool.id))
        if len(choices) >= 25:
            break
    return choices


# =============================================================================
# Cog
# =============================================================================

class RouletteCog(commands.Cog):
    """Roulette draw commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @property
    def service(self):
        return getattr(self.bot, "roulette", None)

    async def _service_unavailable(self, interaction: discord.Interaction, command: str) -> bool:
        """Reply and return True if the roulette service is not up yet."""
        if self.service is not None:
            return False
        await interaction.response.send_message(
            "The roulette is still starting up. Try again in a moment.",
            ephemeral=True,
        )
        logger.tree(f"{command} Command Rejected", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Reason", "Service not initialized"),
        ], emoji="⚠️")
        return True

    @app_commands.command(name="draw", description="Draw an entry from a pool")
    @app_commands.describe(pool="Pool to draw from")
    @app_commands.autocomplete(pool=pool_autocomplete)
    async def draw(self, interaction: discord.Interaction, pool: str) -> None:
        """Draw one entry for the calling user."""
        if await self._service_unavailable(interaction, "Draw"):
            return

        await interaction.response.defer()
        start = time.monotonic()
        result = await self.service.draw(pool, str(interaction.user.id))
        snapshot = result.pool if result.pool is not None else self.service.pool_store.get(pool)

        embed = build_draw_embed(snapshot, result, interaction.user)
        try:
            await interaction.followup.send(embed=embed)
        except discord.HTTPException as e:
            logger.error_tree("Draw Response Failed", e, [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Pool", pool),
            ])
            return

        logger.tree("Draw Command", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Pool", pool),
            ("Result", result.record.entry_id if result.success else result.error.value),
            ("Took", f"{(time.monotonic() - start) * 1000:.0f}ms"),
        ], emoji="🎰")

    @app_commands.command(name="history", description="Show your recent draws on a pool")
    @app_commands.describe(pool="Pool to look at", limit="How many draws to show")
    @app_commands.autocomplete(pool=pool_autocomplete)
    async def history(
        self,
        interaction: discord.Interaction,
        pool: str,
        limit: app_commands.Range[int, 1, 50] = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        """Show the calling user's recent draws."""
        if await self._service_unavailable(interaction, "History"):
            return

        try:
            snapshot = self.service.get_pool(pool)
            records = await self.service.history(pool, str(interaction.user.id), limit)
        except RouletteError as e:
            await interaction.response.send_message(embed=_error_embed(e), ephemeral=True)
            logger.tree("History Command Failed", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Pool", pool),
                ("Kind", e.kind.value),
            ], emoji="⚠️")
            return

        await interaction.response.send_message(
            embed=build_history_embed(snapshot, records, interaction.user),
            ephemeral=True,
        )
        logger.tree("History Command", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Pool", pool),
            ("Records", str(len(records))),
        ], emoji="📜")

    @app_commands.command(name="pools", description="List the available pools")
    async def pools(self, interaction: discord.Interaction) -> None:
        """List every pool."""
        if await self._service_unavailable(interaction, "Pools"):
            return

        pools = self.service.pools()
        await interaction.response.send_message(embed=build_pools_embed(pools), ephemeral=True)
        logger.tree("Pools Command", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Pools", str(len(pools))),
        ], emoji="🎡")

    @app_commands.command(name="stats", description="Count your draws per entry")
    @app_commands.describe(
        pool="Pool to look at",
        user="Whose draws to count (defaults to yourself)",
        since="First day to include (YYYY-MM-DD)",
        until="Last day to include (YYYY-MM-DD)",
    )
    @app_commands.autocomplete(pool=pool_autocomplete)
    async def stats(
        self,
        interaction: discord.Interaction,
        pool: str,
        user: Optional[discord.User] = None,
        since: Optional[str] = None,
        until: Optional[str] = None,
    ) -> None:
        """Per-entry draw counts for a user (the caller by default)."""
        if await self._service_unavailable(interaction, "Stats"):
            return

        target = user or interaction.user

        try:
            snapshot = self.service.get_pool(pool)
            counts = await self.service.stats(pool, str(target.id), since, until)
        except RouletteError as e:
            await interaction.response.send_message(embed=_error_embed(e), ephemeral=True)
            logger.tree("Stats Command Failed", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Pool", pool),
                ("Kind", e.kind.value),
                ("Reason", str(e)[:80]),
            ], emoji="⚠️")
            return

        await interaction.response.send_message(
            embed=build_stats_embed(snapshot, counts, target, since, until),
            ephemeral=True,
        )
        logger.tree("Stats Command", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Target", str(target.id)),
            ("Pool", pool),
            ("Range", f"{since or '-'} → {until or '-'}"),
            ("Entries", str(len(counts))),
        ], emoji="📊")

    @app_commands.command(name="version", description="Show the bot version")
    async def version(self, interaction: discord.Interaction) -> None:
        embed = discord.Embed(
            description=f"**{BOT_NAME}** v{BOT_VERSION}\n-# discord.py {discord.__version__}",
            color=COLOR_BLUE,
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)
        logger.tree("Version Command", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Version", BOT_VERSION),
        ], emoji="🏷️")

    # =========================================================================
    # Settings
    # =========================================================================

    settings_group = app_commands.Group(
        name="settings",
        description="Exclude or target entries for your own draws"
    )

    @settings_group.command(name="info", description="Show your exclude/target lists for a pool")
    @app_commands.describe(pool="Pool to look at")
    @app_commands.autocomplete(pool=pool_autocomplete)
    async def settings_info(self, interaction: discord.Interaction, pool: str) -> None:
        """Show the calling user's lists."""
        if await self._service_unavailable(interaction, "Settings"):
            return

        try:
            snapshot = self.service.get_pool(pool)
            preferences = await self.service.preferences(pool, str(interaction.user.id))
        except RouletteError as e:
            await interaction.response.send_message(embed=_error_embed(e), ephemeral=True)
            logger.tree("Settings Info Failed", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Pool", pool),
                ("Kind", e.kind.value),
            ], emoji="⚠️")
            return

        await interaction.response.send_message(
            embed=build_preferences_embed(snapshot, preferences, interaction.user),
            ephemeral=True,
        )
        logger.tree("Settings Info Command", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Pool", pool),
            ("Excluded", str(len(preferences.excluded))),
            ("Targets", str(len(preferences.targets))),
        ], emoji="🎚️")

    @settings_group.command(name="exclude", description="Never draw these entries for you")
    @app_commands.describe(
        pool="Pool the entries belong to",
        action="How to change the list",
        entries="Entry ids, separated by commas or spaces",
    )
    @app_commands.choices(action=_ACTION_CHOICES)
    @app_commands.autocomplete(pool=pool_autocomplete)
    async def settings_exclude(
        self,
        interaction: discord.Interaction,
        pool: str,
        action: str,
        entries: Optional[str] = None,
    ) -> None:
        """Change the calling user's excluded entries."""
        await self._update_preferences(interaction, pool, "exclude", action, entries)

    @settings_group.command(name="target", description="Only draw these entries for you")
    @app_commands.describe(
        pool="Pool the entries belong to",
        action="How to change the list",
        entries="Entry ids, separated by commas or spaces",
    )
    @app_commands.choices(action=_ACTION_CHOICES)
    @app_commands.autocomplete(pool=pool_autocomplete)
    async def settings_target(
        self,
        interaction: discord.Interaction,
        pool: str,
        action: str,
        entries: Optional[str] = None,
    ) -> None:
        """Change the calling user's target entries."""
        await self._update_preferences(interaction, pool, "target", action, entries)

    @settings_group.command(name="clear", description="Drop your exclude and target lists for a pool")
    @app_commands.describe(pool="Pool to reset")
    @app_commands.autocomplete(pool=pool_autocomplete)
    async def settings_clear(self, interaction: discord.Interaction, pool: str) -> None:
        """Remove every preference the calling user has on a pool."""
        if await self._service_unavailable(interaction, "Settings"):
            return

        try:
            removed = await self.service.clear_preferences(pool, str(interaction.user.id))
        except RouletteError as e:
            await interaction.response.send_message(embed=_error_embed(e), ephemeral=True)
            logger.tree("Settings Clear Failed", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Pool", pool),
                ("Kind", e.kind.value),
            ], emoji="⚠️")
            return

        await interaction.response.send_message(
            f"🧹 Cleared {removed} saved {'entry' if removed == 1 else 'entries'} for `{pool}`.",
            ephemeral=True,
        )
        logger.tree("Settings Clear Command", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Pool", pool),
            ("Removed", str(removed)),
        ], emoji="🧹")

    async def _update_preferences(
        self,
        interaction: discord.Interaction,
        pool: str,
        kind: str,
        action: str,
        entries: Optional[str],
    ) -> None:
        if await self._service_unavailable(interaction, "Settings"):
            return

        entry_ids = parse_entry_ids(entries)
        try:
            preferences = await self.service.update_preferences(
                pool, str(interaction.user.id), kind, action, entry_ids,
            )
            snapshot = self.service.get_pool(pool)
        except RouletteError as e:
            await interaction.response.send_message(embed=_error_embed(e), ephemeral=True)
            logger.tree("Settings Update Failed", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Pool", pool),
                ("Change", f"{kind} {action}"),
                ("Kind", e.kind.value),
                ("Reason", str(e)[:80]),
            ], emoji="⚠️")
            return

        await interaction.response.send_message(
            embed=build_preferences_embed(snapshot, preferences, interaction.user),
            ephemeral=True,
        )
        logger.tree("Settings Update Command", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Pool", pool),
            ("Change", f"{kind} {action}"),
            ("Entries", str(len(entry_ids))),
        ], emoji="🎚️")


async def setup(bot: commands.Bot) -> None:
    """Add the cog to the bot."""
    await bot.add_cog(RouletteCog(bot))
    logger.tree("Command Loaded", [
        ("Name", "roulette"),
        ("Commands", "draw, history, pools, stats, version, settings"),
    ], emoji="✅")


__all__ = [
    "RouletteCog",
    "build_draw_embed",
    "build_history_embed",
    "build_pools_embed",
    "build_preferences_embed",
    "build_stats_embed",
    "parse_entry_ids",
    "pool_autocomplete",
]
