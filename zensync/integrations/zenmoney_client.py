"""
ZenMoney API client.
Fetches account diffs from the /diff/ endpoint of the ZenMoney v8 API.

Documentation: https://github.com/zenmoney/ZenPlugins/wiki/ZenMoney-API

The diff endpoint is the only read path the API offers: the client sends the
last serverTimestamp it has seen and the server answers with every entity
changed or deleted since then. A serverTimestamp of 0 returns the full state.
"""
import time
from typing import Callable, List, Optional

import httpx
import logging
from pydantic import ValidationError

from zensync.config import DEFAULT_API_BASE, Settings, get_settings
from zensync.integrations.base import DiffSource
from zensync.schemas import DiffRequest, DiffResponse, EntityType

logger = logging.getLogger(__name__)


class ZenMoneyAPIError(Exception):
    """Non-success answer (or no answer) from the ZenMoney API."""

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        if status_code is None:
            super().__init__(f"ZenMoney API request failed: {body}")
        else:
            super().__init__(f"ZenMoney API error {status_code}: {body}")


class ZenMoneyClient(DiffSource):
    """Diff source backed by the ZenMoney HTTP API."""

    DIFF_PATH = "/diff/"

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_BASE,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize ZenMoney client.

        Args:
            token: OAuth access token
            base_url: API root
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
            clock: Wall clock returning epoch seconds
        """
        if not token:
            raise ValueError("ZenMoney token is required")

        self.token = token
        self.clock = clock
        self.client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "User-Agent": "zensync/0.1",
            },
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ZenMoneyClient":
        settings = settings or get_settings()
        return cls(
            token=settings.zenmoney_token,
            base_url=settings.zenmoney_api_base,
            timeout=settings.zenmoney_http_timeout,
        )

    def fetch_diff(
        self,
        server_timestamp: int,
        force_fetch: Optional[List[EntityType]] = None,
    ) -> DiffResponse:
        request = DiffRequest(
            current_client_timestamp=int(self.clock()),
            server_timestamp=server_timestamp,
            force_fetch=force_fetch,
        )

        try:
            response = self.client.post(self.DIFF_PATH, json=request.to_payload())
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling ZenMoney API: {e}")
            raise ZenMoneyAPIError(None, str(e)) from e

        if not response.is_success:
            logger.error(f"ZenMoney API returned {response.status_code} for serverTimestamp={server_timestamp}")
            raise ZenMoneyAPIError(response.status_code, response.text)

        try:
            diff = DiffResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.error(f"Malformed diff from ZenMoney API: {e}")
            raise ZenMoneyAPIError(response.status_code, response.text) from e

        logger.debug(f"Fetched diff at serverTimestamp={diff.server_timestamp}: {diff.counts()}")
        return diff

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ZenMoneyClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
