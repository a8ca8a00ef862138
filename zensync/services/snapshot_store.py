"""
File-backed persistence for the merged snapshot.

The store is a cache: nothing here raises. A missing, unreadable or corrupted
file loads as None, which sends the caller down the full-sync path, and write
failures only cost a full sync on the next run.
"""
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from zensync.schemas import Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Reads and writes one snapshot JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Snapshot]:
        """
        Load the persisted snapshot.

        Returns:
            The snapshot, or None when there is no usable cache file
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read snapshot cache {self.path}: {e}")
            return None

        try:
            return Snapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring corrupted snapshot cache {self.path}: {e.error_count()} error(s)")
            return None

    def save(self, snapshot: Snapshot) -> bool:
        """Write the snapshot, replacing any previous file. Returns success."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(snapshot.to_json(), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write snapshot cache {self.path}: {e}")
            return False
        return True

    def clear(self) -> bool:
        """Remove the cache file if present. Returns success."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove snapshot cache {self.path}: {e}")
            return False
        return True
