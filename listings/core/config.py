"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    api_key: str
    port: int = 3000
    app_env: str = "development"
    scrape_timeout: float = 15.0
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100
    default_limit: int = 10


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    api_key = os.getenv("API_KEY", "")
    port = int(os.getenv("PORT", "3000"))
    app_env = os.getenv("APP_ENV", "development")
    scrape_timeout = float(os.getenv("SCRAPE_TIMEOUT_SECONDS", "15"))
    rate_limit_window_seconds = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
    rate_limit_max_requests = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
    default_limit = int(os.getenv("DEFAULT_LIMIT", "10"))

    if not api_key:
        logger.warning("API_KEY is not configured; every /scrape request will be rejected.")
    if rate_limit_max_requests <= 0:
        logger.warning("RATE_LIMIT_MAX_REQUESTS=%s disables rate limiting.", rate_limit_max_requests)

    return Settings(
        api_key=api_key,
        port=port,
        app_env=app_env,
        scrape_timeout=scrape_timeout,
        rate_limit_window_seconds=rate_limit_window_seconds,
        rate_limit_max_requests=rate_limit_max_requests,
        default_limit=default_limit,
    )
