"""
RouletteBot - Pool Sync
=======================

Keeps pool definitions in step with a hosted pools document.
"""

from .service import PoolSyncService, SyncReport

__all__ = ["PoolSyncService", "SyncReport"]
