"""Configuration Module

Collects the environment-sourced settings shared by the bulk importer and
the webhook receiver into a single frozen ``Settings`` object.

Environment variables:
  WEBFLOW_API_TOKEN: Webflow API token (required)
  COLLECTION_ID: Collection whose items are indexed (required)
  CATEGORIES_COLLECTION_ID: Collection holding the category items (required)
  ALGOLIA_APP_ID / ALGOLIA_API_KEY: Algolia credentials (required)
  ALGOLIA_INDEX_NAME: Target index (default: posts)
  WEBFLOW_BASE_URL: Webflow API base URL (default: https://api.webflow.com)
  CATEGORY_CACHE_TTL: Seconds a cached category map stays valid (default: 600)
  WEBFLOW_PAGE_SIZE: Items requested per page (default: 100)
  BULK_MIN_INTERVAL_MS: Min ms between Webflow calls in bulk runs (default: 400)
  WEBHOOK_MIN_INTERVAL_MS: Min ms between Webflow calls from webhooks (default: 1000)
  FETCH_MAX_ATTEMPTS: Attempts per page, 0 retries forever (default: 5)
  LOG_LEVEL: Console log level (default: INFO)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError

DEFAULT_BASE_URL = "https://api.webflow.com"
DEFAULT_INDEX_NAME = "posts"

# Webflow caps collection item pages at 100
DEFAULT_PAGE_SIZE = 100
DEFAULT_CACHE_TTL = 600

# 300 RPM plan limit; 400ms keeps bulk runs at 150 RPM, 1000ms is 60 RPM
BULK_MIN_INTERVAL_MS = 400
WEBHOOK_MIN_INTERVAL_MS = 1000

DEFAULT_MAX_ATTEMPTS = 5

REQUIRED_VARS = (
    "WEBFLOW_API_TOKEN",
    "COLLECTION_ID",
    "CATEGORIES_COLLECTION_ID",
    "ALGOLIA_APP_ID",
    "ALGOLIA_API_KEY",
)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for both entry points."""

    webflow_token: str
    collection_id: str
    categories_collection_id: str
    algolia_app_id: str
    algolia_api_key: str
    index_name: str = DEFAULT_INDEX_NAME
    webflow_base_url: str = DEFAULT_BASE_URL
    cache_ttl: float = DEFAULT_CACHE_TTL
    page_size: int = DEFAULT_PAGE_SIZE
    bulk_min_interval_ms: int = BULK_MIN_INTERVAL_MS
    webhook_min_interval_ms: int = WEBHOOK_MIN_INTERVAL_MS
    max_attempts: Optional[int] = DEFAULT_MAX_ATTEMPTS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Populated Settings

        Raises:
            ConfigError: If a required variable is missing or a numeric
                variable cannot be parsed or is below its minimum
        """
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_VARS if not env.get(name)]
        if missing:
            raise ConfigError(
                "Missing required environment variables: " + ", ".join(missing)
            )

        max_attempts = _int_var(env, "FETCH_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)

        return cls(
            webflow_token=env["WEBFLOW_API_TOKEN"],
            collection_id=env["COLLECTION_ID"],
            categories_collection_id=env["CATEGORIES_COLLECTION_ID"],
            algolia_app_id=env["ALGOLIA_APP_ID"],
            algolia_api_key=env["ALGOLIA_API_KEY"],
            index_name=env.get("ALGOLIA_INDEX_NAME") or DEFAULT_INDEX_NAME,
            webflow_base_url=env.get("WEBFLOW_BASE_URL") or DEFAULT_BASE_URL,
            cache_ttl=_int_var(
                env, "CATEGORY_CACHE_TTL", DEFAULT_CACHE_TTL, minimum=1
            ),
            page_size=_int_var(
                env, "WEBFLOW_PAGE_SIZE", DEFAULT_PAGE_SIZE, minimum=1
            ),
            bulk_min_interval_ms=_int_var(
                env, "BULK_MIN_INTERVAL_MS", BULK_MIN_INTERVAL_MS
            ),
            webhook_min_interval_ms=_int_var(
                env, "WEBHOOK_MIN_INTERVAL_MS", WEBHOOK_MIN_INTERVAL_MS
            ),
            # 0 means "retry forever"
            max_attempts=max_attempts or None,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )


def check_minimum(name: str, value: int, minimum: int) -> int:
    """Raise ConfigError unless ``value`` is at least ``minimum``."""
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _int_var(
    env: Mapping[str, str], name: str, default: int, minimum: int = 0
) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    return check_minimum(name, value, minimum)
