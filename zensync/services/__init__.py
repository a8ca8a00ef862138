from zensync.services.merge import apply_deletions, merge_budgets, merge_entities, merge_snapshot
from zensync.services.snapshot_store import SnapshotStore
from zensync.services.sync_service import SyncService

__all__ = [
    "SnapshotStore",
    "SyncService",
    "apply_deletions",
    "merge_budgets",
    "merge_entities",
    "merge_snapshot",
]
