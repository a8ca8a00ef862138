from zensync.integrations.base import DiffSource
from zensync.integrations.zenmoney_client import ZenMoneyAPIError, ZenMoneyClient

__all__ = ["DiffSource", "ZenMoneyAPIError", "ZenMoneyClient"]
