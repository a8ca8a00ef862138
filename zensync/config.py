"""
Runtime settings for the ZenMoney sync engine.
Values come from the environment or a local .env file.
"""
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()

DEFAULT_API_BASE = "https://api.zenmoney.ru/v8"
DEFAULT_CACHE_DIR = Path.home() / ".zenmoney-mcp"
CACHE_FILE_NAME = "cache.json"


class Settings(BaseSettings):
    """
    ZenMoney connection and cache settings.

    Environment variables:
        ZENMONEY_TOKEN: OAuth bearer token for the diff endpoint
        ZENMONEY_API_BASE: API root, defaults to the public v8 endpoint
        ZENMONEY_CACHE_DIR: Directory holding the persisted snapshot
        ZENMONEY_HTTP_TIMEOUT: Request timeout in seconds
    """
    zenmoney_token: str = ""
    zenmoney_api_base: str = DEFAULT_API_BASE
    zenmoney_cache_dir: Path = DEFAULT_CACHE_DIR
    zenmoney_http_timeout: float = 30.0

    class Config:
        env_file = ".env"
        extra = "ignore"  # Allow extra fields in .env file

    @property
    def cache_file(self) -> Path:
        return Path(self.zenmoney_cache_dir).expanduser() / CACHE_FILE_NAME


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def reset_settings_cache() -> None:
    get_settings.cache_clear()
