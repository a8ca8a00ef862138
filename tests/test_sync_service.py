"""
Integration-style tests for SyncService against a scripted diff source.
"""
import os
import sys
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from zensync.integrations.base import DiffSource  # noqa: E402
from zensync.integrations.zenmoney_client import ZenMoneyAPIError  # noqa: E402
from zensync.schemas import DiffResponse, EntityType  # noqa: E402
from zensync.services.snapshot_store import SnapshotStore  # noqa: E402
from zensync.services.sync_service import SyncService  # noqa: E402


FULL_DIFF = {
    "serverTimestamp": 1000,
    "instrument": [{"id": 1, "shortTitle": "RUB"}],
    "account": [{"id": "a1", "title": "Cash"}],
    "transaction": [{"id": "x", "income": 10}, {"id": "y", "income": 20}],
    "budget": [{"tag": "t1", "date": "2024-01-01", "outcome": 100}],
}

INCREMENTAL_DIFF = {
    "serverTimestamp": 2000,
    "transaction": [{"id": "y", "income": 25}, {"id": "z", "income": 30}],
    "deletion": [{"object": "transaction", "id": "x", "stamp": 1500, "user": 1}],
}


class _Source(DiffSource):
    """Replays canned diffs and records the anchors it was asked for."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[int] = []
        self.force_fetch_calls: List[Optional[List[EntityType]]] = []

    def fetch_diff(self, server_timestamp, force_fetch=None):
        self.calls.append(server_timestamp)
        self.force_fetch_calls.append(force_fetch)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return DiffResponse.model_validate(response)


class _UnclearableStore(SnapshotStore):
    def clear(self) -> bool:
        return False


@contextmanager
def _temporary_cache_path():
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp) / "cache.json"


def test_cold_start_full_sync_then_cached() -> None:
    with _temporary_cache_path() as path:
        source = _Source(FULL_DIFF)
        store = SnapshotStore(path)
        service = SyncService(source, store=store)

        first = service.get_data()
        second = service.get_data()

        assert source.calls == [0]
        assert second is first
        assert service.is_cached
        assert first.server_timestamp == 1000
        assert {t.id for t in first.transaction} == {"x", "y"}
        assert first.company is None

        persisted = store.load()
        assert persisted == first
        print("✓ cold start full sync, then cache hit")


def test_incremental_sync_from_persisted_snapshot() -> None:
    with _temporary_cache_path() as path:
        store = SnapshotStore(path)
        SyncService(_Source(FULL_DIFF), store=store).get_data()

        # New process: nothing in memory, snapshot on disk
        source = _Source(INCREMENTAL_DIFF)
        snapshot = SyncService(source, store=store).get_data()

        assert source.calls == [1000]
        assert snapshot.server_timestamp == 2000
        transactions = {t.id: t for t in snapshot.transaction}
        assert set(transactions) == {"y", "z"}
        assert transactions["y"].income == 25
        assert [a.id for a in snapshot.account] == ["a1"]
        assert len(snapshot.budget) == 1

        assert store.load().server_timestamp == 2000
        print("✓ incremental sync merges into persisted snapshot")


def test_invalidate_forces_full_sync() -> None:
    with _temporary_cache_path() as path:
        store = SnapshotStore(path)
        source = _Source(FULL_DIFF, FULL_DIFF)
        service = SyncService(source, store=store)

        service.get_data()
        service.invalidate()

        assert not service.is_cached
        assert not path.exists()

        service.get_data()
        assert source.calls == [0, 0]
        print("✓ invalidate forces full sync")


def test_invalidate_drops_memory_even_if_clear_fails() -> None:
    with _temporary_cache_path() as path:
        store = _UnclearableStore(path)
        source = _Source(FULL_DIFF, INCREMENTAL_DIFF)
        service = SyncService(source, store=store)

        service.get_data()
        service.invalidate()
        snapshot = service.get_data()

        # The file survived, so the next load took the incremental path
        assert source.calls == [0, 1000]
        assert snapshot.server_timestamp == 2000
        print("✓ invalidate clears memory when removal fails")


def test_invalidate_with_unusable_cache_path() -> None:
    with _temporary_cache_path() as path:
        path.mkdir()
        source = _Source(FULL_DIFF, FULL_DIFF)
        service = SyncService(source, store=SnapshotStore(path))

        first = service.get_data()
        assert first.server_timestamp == 1000
        assert service.is_cached

        service.invalidate()
        assert not service.is_cached
        assert path.is_dir()

        service.get_data()
        assert source.calls == [0, 0]
        print("✓ invalidate over a cache path that cannot be read or removed")


def test_refresh_refetches_everything() -> None:
    with _temporary_cache_path() as path:
        updated = dict(FULL_DIFF, serverTimestamp=3000, account=[{"id": "a2", "title": "Card"}])
        source = _Source(FULL_DIFF, updated)
        service = SyncService(source, store=SnapshotStore(path))

        service.get_data()
        snapshot = service.refresh()

        assert source.calls == [0, 0]
        assert [a.id for a in snapshot.account] == ["a2"]
        print("✓ refresh")


def test_fetch_failure_propagates_and_keeps_cache_file() -> None:
    with _temporary_cache_path() as path:
        store = SnapshotStore(path)
        SyncService(_Source(FULL_DIFF), store=store).get_data()
        before = path.read_text(encoding="utf-8")

        source = _Source(ZenMoneyAPIError(401, "invalid token"), INCREMENTAL_DIFF)
        service = SyncService(source, store=store)

        try:
            service.get_data()
        except ZenMoneyAPIError as e:
            assert e.status_code == 401
            assert e.body == "invalid token"
        else:
            raise AssertionError("Expected ZenMoneyAPIError")

        assert not service.is_cached
        assert path.read_text(encoding="utf-8") == before

        # No retry on its own, the next call starts over from disk
        snapshot = service.get_data()
        assert source.calls == [1000, 1000]
        assert snapshot.server_timestamp == 2000
        print("✓ fetch failure propagates without touching the cache")


def test_corrupted_cache_falls_back_to_full_sync() -> None:
    with _temporary_cache_path() as path:
        path.write_text("{not json", encoding="utf-8")
        source = _Source(FULL_DIFF)

        snapshot = SyncService(source, store=SnapshotStore(path)).get_data()

        assert source.calls == [0]
        assert snapshot.server_timestamp == 1000
        print("✓ corrupted cache triggers full sync")


def test_force_fetch_is_forwarded() -> None:
    with _temporary_cache_path() as path:
        source = _Source(FULL_DIFF)
        service = SyncService(source, store=SnapshotStore(path), force_fetch=[EntityType.INSTRUMENT])

        service.get_data()

        assert source.force_fetch_calls == [[EntityType.INSTRUMENT]]
        print("✓ force_fetch forwarded")


def test_concurrent_callers_share_one_fetch() -> None:
    with _temporary_cache_path() as path:
        release = threading.Event()

        class _SlowSource(_Source):
            def fetch_diff(self, server_timestamp, force_fetch=None):
                release.wait(timeout=5)
                return super().fetch_diff(server_timestamp, force_fetch)

        source = _SlowSource(FULL_DIFF)
        service = SyncService(source, store=SnapshotStore(path))
        results = []

        threads = [threading.Thread(target=lambda: results.append(service.get_data())) for _ in range(4)]
        for thread in threads:
            thread.start()
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert source.calls == [0]
        assert len(results) == 4
        assert all(result is results[0] for result in results)
        print("✓ concurrent get_data serialized")


if __name__ == "__main__":
    test_cold_start_full_sync_then_cached()
    test_incremental_sync_from_persisted_snapshot()
    test_invalidate_forces_full_sync()
    test_invalidate_drops_memory_even_if_clear_fails()
    test_invalidate_with_unusable_cache_path()
    test_refresh_refetches_everything()
    test_fetch_failure_propagates_and_keeps_cache_file()
    test_corrupted_cache_falls_back_to_full_sync()
    test_force_fetch_is_forwarded()
    test_concurrent_callers_share_one_fetch()
    print("All sync service tests passed.")
