from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.commands.roulette import (
    RouletteCog,
    build_draw_embed,
    build_history_embed,
    build_pools_embed,
    build_preferences_embed,
    build_stats_embed,
    parse_entry_ids,
    pool_autocomplete,
)
from src.core.colors import COLOR_ERROR, COLOR_NEUTRAL, COLOR_SUCCESS
from src.services.roulette.errors import ErrorKind
from src.services.roulette.models import DrawPreferences, DrawRecord, DrawResult, PoolEntry, Pool
from tests.helpers import make_pool, make_history


def _user(user_id=42):
    user = MagicMock()
    user.id = user_id
    user.name = "hunter"
    user.display_name = "Hunter"
    user.mention = f"<@{user_id}>"
    return user


def _interaction(service=None, user=None):
    interaction = MagicMock()
    interaction.user = user or _user()
    interaction.client = SimpleNamespace(roulette=service)
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


# =============================================================================
# Embeds
# =============================================================================

def test_draw_embed_success_shows_entry_metadata():
    pool = Pool(
        id="quests",
        entries=(PoolEntry.create("rathalos", 1, metadata={"title": "Rathalos", "rank": "HR 4"}),),
        version=3,
        name="Quest Roulette",
    )
    record = DrawRecord("42", "quests", 3, "rathalos", 1_700_000_000.0, 7)

    embed = build_draw_embed(pool, DrawResult.ok(record), _user())

    assert embed.title == "🎯 Rathalos"
    assert "Quest Roulette" in embed.description
    assert embed.color.value == COLOR_SUCCESS
    assert [(field.name, field.value) for field in embed.fields] == [("Rank", "HR 4")]
    assert embed.footer.text == "Draw #7 • Pool v3"


def test_draw_embed_failure_colors():
    exhausted = build_draw_embed(None, DrawResult.failed(ErrorKind.POOL_EXHAUSTED), _user())
    broken = build_draw_embed(None, DrawResult.failed(ErrorKind.PERSISTENCE_FAILURE), _user())

    assert exhausted.color.value == COLOR_NEUTRAL
    assert broken.color.value == COLOR_ERROR
    assert "did not happen" in broken.description


def test_history_embed_marks_removed_entries():
    pool = make_pool(weights={"a": 1})
    embed = build_history_embed(pool, make_history(["gone", "a"]), _user())

    lines = embed.description.splitlines()
    assert lines[0].startswith("`#2` gone (removed)")
    assert lines[1].startswith("`#1` A")


def test_empty_embeds():
    assert "not drawn" in build_history_embed(make_pool(), [], _user()).description
    assert build_pools_embed([]).description == "No pools are available."
    assert "No draws" in build_stats_embed(make_pool(), {}, _user(), None, None).description


def test_stats_embed_orders_by_count():
    embed = build_stats_embed(make_pool(), {"a": 1, "b": 4}, _user(), "2024-01-01", None)

    assert embed.description.splitlines() == ["**4×** B", "**1×** A"]
    assert embed.footer.text == "5 draws • 2024-01-01 → today"


# =============================================================================
# Commands
# =============================================================================

@pytest.mark.asyncio
async def test_draw_command_records_for_caller(service, db):
    service.pool_store.replace(make_pool())
    cog = RouletteCog(SimpleNamespace(roulette=service))
    interaction = _interaction(service)

    await cog.draw.callback(cog, interaction, "quests")

    interaction.response.defer.assert_awaited_once()
    embed = interaction.followup.send.call_args.kwargs["embed"]
    assert embed.color.value == COLOR_SUCCESS
    assert len(db.get_recent_draws("quests", "42", 5)) == 1


@pytest.mark.asyncio
async def test_draw_embed_uses_the_version_that_was_drawn(service):
    service.pool_store.replace(make_pool(weights={"a": 1, "b": 1}))
    real_draw = service.draw

    async def draw_then_refresh(pool_id, user_id):
        result = await real_draw(pool_id, user_id)
        await service.pool_updated_notification(make_pool(weights={"x": 1}))
        return result

    service.draw = draw_then_refresh
    cog = RouletteCog(SimpleNamespace(roulette=service))
    interaction = _interaction(service)

    await cog.draw.callback(cog, interaction, "quests")

    embed = interaction.followup.send.call_args.kwargs["embed"]
    assert embed.title in ("🎯 A", "🎯 B")
    assert embed.footer.text.endswith("Pool v1")
    assert service.get_pool("quests").version == 2


@pytest.mark.asyncio
async def test_draw_command_unknown_pool(service):
    cog = RouletteCog(SimpleNamespace(roulette=service))
    interaction = _interaction(service)

    await cog.draw.callback(cog, interaction, "missing")

    embed = interaction.followup.send.call_args.kwargs["embed"]
    assert embed.color.value == COLOR_ERROR
    assert "No such pool" in embed.description


@pytest.mark.asyncio
async def test_commands_wait_for_service():
    cog = RouletteCog(SimpleNamespace(roulette=None))
    interaction = _interaction()

    await cog.draw.callback(cog, interaction, "quests")

    interaction.response.send_message.assert_awaited_once()
    assert interaction.response.send_message.call_args.kwargs["ephemeral"] is True
    interaction.response.defer.assert_not_awaited()


@pytest.mark.asyncio
async def test_stats_command_reports_bad_dates(service):
    service.pool_store.replace(make_pool())
    cog = RouletteCog(SimpleNamespace(roulette=service))
    interaction = _interaction(service)

    await cog.stats.callback(cog, interaction, "quests", None, "not-a-date", None)

    embed = interaction.response.send_message.call_args.kwargs["embed"]
    assert embed.color.value == COLOR_ERROR
    assert "since" in embed.description


@pytest.mark.asyncio
async def test_pool_autocomplete_filters(service):
    service.pool_store.replace(make_pool(pool_id="weapons", name="Weapon Roulette"))
    service.pool_store.replace(make_pool(pool_id="quests", name="Quest Roulette"))

    choices = await pool_autocomplete(_interaction(service), "weap")

    assert [(choice.name, choice.value) for choice in choices] == [("Weapon Roulette", "weapons")]
    assert await pool_autocomplete(_interaction(None), "") == []


# =============================================================================
# Settings
# =============================================================================

@pytest.mark.parametrize("text, expected", [
    (None, []),
    ("", []),
    ("a", ["a"]),
    ("a, b  c,,a", ["a", "b", "c"]),
])
def test_parse_entry_ids(text, expected):
    assert parse_entry_ids(text) == expected


def test_preferences_embed_names_entries():
    pool = make_pool(weights={"a": 1, "b": 1}, version=4)
    prefs = DrawPreferences(excluded=frozenset({"a"}), targets=frozenset({"b", "gone"}))

    embed = build_preferences_embed(pool, prefs, _user())

    assert [(field.name, field.value) for field in embed.fields] == [
        ("Excluded", "A"),
        ("Targets", "B, gone (not in v4)"),
    ]
    assert embed.footer.text


def test_preferences_embed_without_lists():
    embed = build_preferences_embed(make_pool(), DrawPreferences(), _user())
    assert "whole pool" in embed.description
    assert embed.color.value == COLOR_NEUTRAL


@pytest.mark.asyncio
async def test_settings_exclude_command_updates_caller(service):
    service.pool_store.replace(make_pool(weights={"a": 1, "b": 1, "c": 1}))
    cog = RouletteCog(SimpleNamespace(roulette=service))
    interaction = _interaction(service)

    await cog.settings_exclude.callback(cog, interaction, "quests", "add", "a, c")

    assert interaction.response.send_message.call_args.kwargs["ephemeral"] is True
    embed = interaction.response.send_message.call_args.kwargs["embed"]
    assert embed.fields[0].value == "A, C"
    assert (await service.preferences("quests", "42")).excluded == frozenset({"a", "c"})


@pytest.mark.asyncio
async def test_settings_target_command_rejects_unknown_entries(service):
    service.pool_store.replace(make_pool())
    cog = RouletteCog(SimpleNamespace(roulette=service))
    interaction = _interaction(service)

    await cog.settings_target.callback(cog, interaction, "quests", "set", "a nope")

    embed = interaction.response.send_message.call_args.kwargs["embed"]
    assert embed.color.value == COLOR_ERROR
    assert "nope" in embed.description
    assert (await service.preferences("quests", "42")).empty


@pytest.mark.asyncio
async def test_settings_info_and_clear_commands(service):
    service.pool_store.replace(make_pool())
    await service.update_preferences("quests", "42", "target", "set", ["b"])
    cog = RouletteCog(SimpleNamespace(roulette=service))

    info = _interaction(service)
    await cog.settings_info.callback(cog, info, "quests")
    assert info.response.send_message.call_args.kwargs["embed"].fields[1].value == "B"

    cleared = _interaction(service)
    await cog.settings_clear.callback(cog, cleared, "quests")
    assert "Cleared 1 saved entry" in cleared.response.send_message.call_args.args[0]
    assert (await service.preferences("quests", "42")).empty


@pytest.mark.asyncio
async def test_settings_commands_wait_for_service():
    cog = RouletteCog(SimpleNamespace(roulette=None))
    interaction = _interaction()

    await cog.settings_exclude.callback(cog, interaction, "quests", "add", "a")

    interaction.response.send_message.assert_awaited_once()
    assert interaction.response.send_message.call_args.kwargs["ephemeral"] is True
