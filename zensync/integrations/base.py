"""
Base interface for sources of ZenMoney diffs.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from zensync.schemas import DiffResponse, EntityType


class DiffSource(ABC):
    """Already-authorized capability to fetch a diff from the server."""

    @abstractmethod
    def fetch_diff(
        self,
        server_timestamp: int,
        force_fetch: Optional[List[EntityType]] = None,
    ) -> DiffResponse:
        """
        Fetch every change since a watermark.

        Args:
            server_timestamp: Anchor watermark, 0 for a full fetch
            force_fetch: Entity types the server should resend in full

        Returns:
            The server's diff; its serverTimestamp is the new watermark
        """
        pass
