from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.services.pool_sync import PoolSyncService
from src.services.roulette.errors import PersistenceFailure


DOCUMENT = {
    "pools": [
        {"id": "weapons", "exclusion": {"type": "last_n", "n": 1}, "entries": [{"id": "bow"}, {"id": "lance"}]},
        {"id": "quests", "entries": [{"id": "rathalos", "weight": 3}, {"id": "tigrex"}]},
    ]
}


def _response(status=200, payload=None, etag=None):
    response = MagicMock()
    response.status = status
    response.headers = {"ETag": etag} if etag else {}
    response.json = AsyncMock(return_value=payload)
    response.raise_for_status = MagicMock()
    return response


def _session(*responses):
    session = MagicMock()
    contexts = []
    for response in responses:
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=False)
        contexts.append(context)
    session.get = MagicMock(side_effect=contexts)
    return session


def _conditional_session(payload, etag):
    """Session that answers 304 when the request carries the current ETag."""
    session = MagicMock()

    def get(url, headers=None, **kwargs):
        if (headers or {}).get("If-None-Match") == etag:
            response = _response(status=304)
        else:
            response = _response(payload=payload, etag=etag)
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=False)
        return context

    session.get = MagicMock(side_effect=get)
    return session


# =============================================================================
# Sync pass
# =============================================================================

@pytest.mark.asyncio
async def test_first_sync_installs_every_pool(service):
    sync = PoolSyncService(service, url="https://example.invalid/pools.json")

    with patch.object(sync, "fetch_document", AsyncMock(return_value=DOCUMENT)):
        report = await sync.sync_once()

    assert report.updated == ["weapons (v1)", "quests (v1)"]
    assert report.rejected == {}
    assert [pool.id for pool in service.pools()] == ["quests", "weapons"]


@pytest.mark.asyncio
async def test_unchanged_pools_are_not_reversioned(service):
    sync = PoolSyncService(service, url="https://example.invalid/pools.json")
    changed = {
        "pools": [
            DOCUMENT["pools"][0],
            {"id": "quests", "entries": [{"id": "rathalos", "weight": 1}, {"id": "tigrex"}]},
        ]
    }

    with patch.object(sync, "fetch_document", AsyncMock(side_effect=[DOCUMENT, DOCUMENT, changed])):
        await sync.sync_once()
        again = await sync.sync_once()
        third = await sync.sync_once()

    assert again.updated == []
    assert sorted(again.unchanged) == ["quests", "weapons"]
    assert third.updated == ["quests (v2)"]
    assert third.unchanged == ["weapons"]
    assert service.get_pool("weapons").version == 1


@pytest.mark.asyncio
async def test_invalid_pool_is_rejected_and_others_applied(service):
    sync = PoolSyncService(service, url="https://example.invalid/pools.json")
    document = {
        "pools": [
            {"id": "good", "entries": [{"id": "a"}]},
            {"id": "bad", "entries": [{"id": "a", "weight": 0}]},
        ]
    }

    with patch.object(sync, "fetch_document", AsyncMock(return_value=document)):
        report = await sync.sync_once()

    assert report.updated == ["good (v1)"]
    assert "bad" in report.rejected
    assert service.pool_store.get("bad") is None


@pytest.mark.asyncio
async def test_not_modified_document_is_skipped(service):
    sync = PoolSyncService(service, url="https://example.invalid/pools.json")

    with patch.object(sync, "fetch_document", AsyncMock(return_value=None)):
        report = await sync.sync_once()

    assert report.not_modified
    assert service.pools() == []


# =============================================================================
# Fetch
# =============================================================================

@pytest.mark.asyncio
async def test_fetch_sends_token_and_etag_after_clean_pass(service):
    sync = PoolSyncService(service, url="https://example.invalid/pools.json", token="secret")
    session = _session(_response(payload=DOCUMENT, etag='"v1"'), _response(status=304))

    with patch("src.services.pool_sync.service.http_session", session):
        first = await sync.sync_once()
        second = await sync.sync_once()

    assert first.updated == ["weapons (v1)", "quests (v1)"]
    assert second.not_modified

    first_headers = session.get.call_args_list[0].kwargs["headers"]
    second_headers = session.get.call_args_list[1].kwargs["headers"]
    assert first_headers["Authorization"] == "Bearer secret"
    assert "If-None-Match" not in first_headers
    assert second_headers["If-None-Match"] == '"v1"'


@pytest.mark.asyncio
async def test_failed_install_is_retried_on_next_pass(service):
    """A pass that stops on a storage error must not leave the document marked as seen."""
    sync = PoolSyncService(service, url="https://example.invalid/pools.json")
    session = _conditional_session(DOCUMENT, '"v1"')
    real_notification = service.pool_updated_notification

    with patch("src.services.pool_sync.service.http_session", session):
        with patch.object(service, "pool_updated_notification", AsyncMock(side_effect=PersistenceFailure("disk full"))):
            with pytest.raises(PersistenceFailure):
                await sync.sync_once()

        assert sync._etag is None

        with patch.object(service, "pool_updated_notification", AsyncMock(side_effect=real_notification)):
            report = await sync.sync_once()

    assert not report.not_modified
    assert report.updated == ["weapons (v1)", "quests (v1)"]
    assert [pool.id for pool in service.pools()] == ["quests", "weapons"]
    assert "If-None-Match" not in session.get.call_args_list[1].kwargs["headers"]


@pytest.mark.asyncio
async def test_rejected_pool_clears_etag(service):
    document = {"pools": [{"id": "bad", "entries": []}]}
    sync = PoolSyncService(service, url="https://example.invalid/pools.json")
    session = _conditional_session(document, '"v2"')

    with patch("src.services.pool_sync.service.http_session", session):
        first = await sync.sync_once()
        second = await sync.sync_once()

    assert "bad" in first.rejected
    assert not second.not_modified
    assert sync._etag is None


@pytest.mark.asyncio
async def test_fetch_without_token_sends_no_auth(service):
    sync = PoolSyncService(service, url="https://example.invalid/pools.json", token="")
    session = _session(_response(payload=DOCUMENT))

    with patch("src.services.pool_sync.service.http_session", session):
        await sync.fetch_document()

    assert "Authorization" not in session.get.call_args.kwargs["headers"]


# =============================================================================
# Lifecycle
# =============================================================================

@pytest.mark.asyncio
async def test_setup_without_url_is_disabled(service):
    sync = PoolSyncService(service, url="")

    await sync.setup()

    assert not sync.enabled
    assert sync._task is None
    await sync.stop()


@pytest.mark.asyncio
async def test_setup_starts_and_stops_scheduler(service):
    sync = PoolSyncService(service, url="https://example.invalid/pools.json", interval=3600)

    with patch.object(sync, "fetch_document", AsyncMock(return_value=DOCUMENT)):
        await sync.setup()

    assert sync._task is not None
    assert len(service.pools()) == 2

    await sync.stop()
    assert sync._task is None
