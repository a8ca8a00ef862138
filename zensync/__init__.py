"""
zensync - local, incrementally synchronized replica of a ZenMoney account.

Usage:
    from zensync import SyncService, ZenMoneyClient

    service = SyncService(ZenMoneyClient.from_settings())
    snapshot = service.get_data()

Components:
    schemas: pydantic models for the diff protocol and the snapshot
    services.merge: keyed merge of diffs and deletions
    services.snapshot_store: JSON snapshot cache on disk
    services.sync_service: full/incremental sync and in-memory cache
    integrations.zenmoney_client: HTTP client for the /diff/ endpoint
"""
from zensync.integrations import DiffSource, ZenMoneyAPIError, ZenMoneyClient
from zensync.schemas import DiffResponse, EntityType, Snapshot
from zensync.services import SnapshotStore, SyncService

__version__ = "0.1.0"

__all__ = [
    "DiffResponse",
    "DiffSource",
    "EntityType",
    "Snapshot",
    "SnapshotStore",
    "SyncService",
    "ZenMoneyAPIError",
    "ZenMoneyClient",
]
