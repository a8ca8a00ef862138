"""
Service for keeping the local ZenMoney snapshot in sync with the server.
"""
import logging
import threading
from typing import List, Optional

from zensync.config import Settings, get_settings
from zensync.integrations.base import DiffSource
from zensync.schemas import EntityType, Snapshot
from zensync.services.merge import merge_snapshot
from zensync.services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

FULL_SYNC_TIMESTAMP = 0


class SyncService:
    """
    Owns the in-memory snapshot for one access token.

    The first get_data() call either extends the persisted snapshot with an
    incremental diff or, when nothing usable is on disk, takes a full diff
    anchored at timestamp 0. Later calls return the in-memory copy until
    invalidate() is called. Calls are serialized so two callers never fetch
    and persist concurrently.
    """

    def __init__(
        self,
        source: DiffSource,
        store: Optional[SnapshotStore] = None,
        force_fetch: Optional[List[EntityType]] = None,
        settings: Optional[Settings] = None,
    ):
        self.source = source
        self.store = store or SnapshotStore((settings or get_settings()).cache_file)
        self.force_fetch = force_fetch
        self._cache: Optional[Snapshot] = None
        self._lock = threading.RLock()

    @property
    def is_cached(self) -> bool:
        return self._cache is not None

    def get_data(self) -> Snapshot:
        """
        Return the current snapshot, syncing with the server on a cold cache.

        Raises:
            ZenMoneyAPIError: If the diff request fails. Nothing is cached
                or persisted in that case.
        """
        with self._lock:
            if self._cache is not None:
                return self._cache

            stored = self.store.load()
            if stored is not None:
                logger.info(f"Incremental sync from serverTimestamp={stored.server_timestamp}")
                diff = self.source.fetch_diff(stored.server_timestamp, force_fetch=self.force_fetch)
                snapshot = merge_snapshot(stored, diff)
            else:
                logger.info("Full sync (no cached snapshot)")
                diff = self.source.fetch_diff(FULL_SYNC_TIMESTAMP, force_fetch=self.force_fetch)
                snapshot = Snapshot.from_diff(diff)

            self.store.save(snapshot)
            self._cache = snapshot
            logger.info(f"Snapshot at serverTimestamp={snapshot.server_timestamp}: {snapshot.counts()}")
            return snapshot

    def invalidate(self) -> None:
        """Drop the in-memory and persisted snapshot; the next get_data() does a full sync."""
        with self._lock:
            self._cache = None
            self.store.clear()
            logger.info("Snapshot cache invalidated")

    def refresh(self) -> Snapshot:
        """Discard all cached state and fetch the full account again."""
        with self._lock:
            self.invalidate()
            return self.get_data()
