"""
Command line entry point for syncing the local ZenMoney snapshot.

Usage:
    zensync sync          # incremental sync (full on first run)
    zensync refresh       # drop the cache and fetch everything again
    zensync clear-cache   # drop the cache only
"""
import argparse
import logging
import sys
from typing import Optional

from zensync.config import get_settings
from zensync.integrations.zenmoney_client import ZenMoneyAPIError, ZenMoneyClient
from zensync.schemas import EntityType, Snapshot
from zensync.services.snapshot_store import SnapshotStore
from zensync.services.sync_service import SyncService


def _print_summary(snapshot: Snapshot) -> None:
    counts = snapshot.counts()
    print("=" * 40)
    print(f"serverTimestamp: {snapshot.server_timestamp}")
    print("=" * 40)
    for entity_type in EntityType:
        print(f"{entity_type.value:16} {counts.get(entity_type.value, 0):>10}")


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(prog="zensync")
    parser.add_argument("command", choices=["sync", "refresh", "clear-cache"])
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    settings = get_settings()
    store = SnapshotStore(settings.cache_file)

    if args.command == "clear-cache":
        if not store.clear():
            print(f"Could not remove {store.path}", file=sys.stderr)
            return 1
        print(f"Removed {store.path}")
        return 0

    if not settings.zenmoney_token:
        print("ZENMONEY_TOKEN environment variable is required", file=sys.stderr)
        return 2

    with ZenMoneyClient.from_settings(settings) as client:
        service = SyncService(client, store=store)
        try:
            snapshot = service.refresh() if args.command == "refresh" else service.get_data()
        except ZenMoneyAPIError as e:
            print(str(e), file=sys.stderr)
            return 1

    _print_summary(snapshot)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
