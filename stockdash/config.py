"""Dashboard configuration dataclasses."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

# Number of recent price rows shown in the company price history.
DEFAULT_PRICE_HISTORY_LIMIT: int = 7

# Matches the refresh window of the upstream price sheet.
DEFAULT_PRICE_CACHE_TTL_SECONDS: float = 60.0

PRICE_FEED_URL_ENV = "PRICE_FEED_URL"


def _feed_url_from_env() -> str | None:
    return os.environ.get(PRICE_FEED_URL_ENV) or None


@dataclass
class DashboardConfig:
    """Main dashboard configuration.

    Raises:
        ValueError: If a limit or timeout is out of range.
    """

    # Database
    db_path: Path = Path("data/stockdash.db")

    # Company detail
    price_history_limit: int = DEFAULT_PRICE_HISTORY_LIMIT

    # Price feed
    price_feed_url: str | None = field(default_factory=_feed_url_from_env)
    price_cache_ttl_seconds: float = DEFAULT_PRICE_CACHE_TTL_SECONDS
    feed_timeout_seconds: float = 30
    feed_max_retries: int = 3
    feed_backoff_factor: float = 1.0

    def __post_init__(self) -> None:
        if self.price_history_limit <= 0:
            raise ValueError(
                f"price_history_limit must be positive, got {self.price_history_limit}"
            )
        if self.price_cache_ttl_seconds < 0:
            raise ValueError(
                f"price_cache_ttl_seconds must be >= 0, got {self.price_cache_ttl_seconds}"
            )
        if self.feed_timeout_seconds <= 0:
            raise ValueError(
                f"feed_timeout_seconds must be positive, got {self.feed_timeout_seconds}"
            )
        if self.feed_max_retries < 1:
            raise ValueError(
                f"feed_max_retries must be >= 1, got {self.feed_max_retries}"
            )
