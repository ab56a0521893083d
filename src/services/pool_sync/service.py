"""
RouletteBot - Pool Sync Service
===============================

Fetches the hosted pools document on a fixed interval and pushes every
changed pool into the roulette service. Unchanged pools keep their version.

The document URL usually points at a raw file in a git repository; an
optional token is sent as a bearer token for private repositories.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp

from src.core.config import config
from src.core.constants import SYNC_RETRY_DELAY
from src.core.logger import logger
from src.services.roulette.definitions import parse_pools_document
from src.services.roulette.errors import RouletteError, ValidationError
from src.utils.async_utils import create_safe_task
from src.utils.http import SYNC_TIMEOUT, http_session


@dataclass
class SyncReport:
    """What one sync pass did."""

    updated: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    rejected: Dict[str, str] = field(default_factory=dict)
    not_modified: bool = False


class PoolSyncService:
    """Periodic pool refresh from a remote document."""

    def __init__(
        self,
        roulette,
        url: Optional[str] = None,
        token: Optional[str] = None,
        interval: Optional[int] = None,
    ) -> None:
        self.roulette = roulette
        self.url = url if url is not None else config.POOLS_SYNC_URL
        self.token = token if token is not None else config.POOLS_SYNC_TOKEN
        self.interval = interval or config.POOLS_SYNC_INTERVAL
        self._etag: Optional[str] = None
        self._fetched_etag: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def setup(self) -> None:
        """Run a first sync and start the scheduler."""
        if not self.enabled:
            logger.tree("Pool Sync Disabled", [
                ("Reason", "ROULETTE_POOLS_SYNC_URL not set"),
            ], emoji="⏸️")
            return

        try:
            await self.sync_once()
        except (aiohttp.ClientError, asyncio.TimeoutError, RouletteError) as e:
            logger.error_tree("Initial Pool Sync Failed", e, [
                ("URL", self.url),
            ])

        self._task = create_safe_task(self._scheduler(), "Pool Sync Loop")
        logger.tree("Pool Sync Initialized", [
            ("URL", self.url),
            ("Interval", f"{self.interval}s"),
            ("Auth", "Token" if self.token else "None"),
        ], emoji="✅")

    async def stop(self) -> None:
        """Stop the sync scheduler."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _scheduler(self) -> None:
        """Sync every ``interval`` seconds until cancelled."""
        while True:
            try:
                await asyncio.sleep(self.interval)
                await self.sync_once()
            except asyncio.CancelledError:
                raise  # Re-raise to allow clean shutdown
            except (aiohttp.ClientError, asyncio.TimeoutError, RouletteError) as e:
                logger.error_tree("Scheduled Pool Sync Failed", e, [
                    ("URL", self.url),
                    ("Retry In", f"{SYNC_RETRY_DELAY}s"),
                ])
                await asyncio.sleep(SYNC_RETRY_DELAY)

    # =========================================================================
    # Fetch
    # =========================================================================

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self._etag:
            headers["If-None-Match"] = self._etag
        return headers

    async def fetch_document(self) -> Optional[Any]:
        """
        Fetch the pools document.

        The response ETag is only sent back as If-None-Match once
        sync_once has applied the document cleanly.

        Returns:
            The decoded JSON, or None if the server reports it unchanged.

        Raises:
            aiohttp.ClientError: On network or HTTP errors.
            ValidationError: If the body is not JSON.
        """
        async with http_session.get(self.url, headers=self._headers(), timeout=SYNC_TIMEOUT) as response:
            if response.status == 304:
                return None
            response.raise_for_status()
            try:
                data = await response.json(content_type=None)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Pools document is not valid JSON: {e}") from e
            self._fetched_etag = response.headers.get("ETag")
            return data

    # =========================================================================
    # Sync
    # =========================================================================

    async def sync_once(self) -> SyncReport:
        """Fetch the document and install every pool whose definition changed."""
        report = SyncReport()

        data = await self.fetch_document()
        if data is None:
            report.not_modified = True
            logger.debug("Pool Sync Not Modified", [("URL", self.url)])
            return report

        # Until this pass applies cleanly the document must not look "not modified"
        self._etag = None

        pools, errors = parse_pools_document(data)
        for pool_id, error in errors.items():
            report.rejected[pool_id] = str(error)

        for pool in pools:
            current = self.roulette.pool_store.get(pool.id)
            if current is not None and current.same_definition(pool):
                report.unchanged.append(pool.id)
                continue
            try:
                installed = await self.roulette.pool_updated_notification(pool)
            except ValidationError as e:
                report.rejected[pool.id] = str(e)
                continue
            except RouletteError as e:
                logger.error_tree("Pool Sync Aborted", e, [
                    ("Pool", pool.id),
                    ("Installed", ", ".join(report.updated) or "None"),
                ])
                raise
            report.updated.append(f"{installed.id} (v{installed.version})")

        if not report.rejected:
            self._etag = self._fetched_etag

        logger.tree("Pool Sync Complete", [
            ("Updated", ", ".join(report.updated) or "None"),
            ("Unchanged", str(len(report.unchanged))),
            ("Rejected", ", ".join(f"{k}: {v[:40]}" for k, v in report.rejected.items()) or "None"),
        ], emoji="🔄")
        return report


__all__ = ["PoolSyncService", "SyncReport"]
