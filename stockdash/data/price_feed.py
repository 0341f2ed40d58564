"""Share prices from the external price feed.

Provides a PriceFeed protocol with two implementations:
- HttpPriceFeed: POSTs to the configured feed endpoint.
- CachedPriceFeed: wraps another feed with a TTLCache.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Protocol

import requests

from stockdash.config import DashboardConfig
from stockdash.data.cache import TTLCache

logger = logging.getLogger(__name__)

_RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class PriceFeedError(Exception):
    """The price feed could not be reached after all retries."""


class PriceFeed(Protocol):
    """Interface for fetching share prices by ticker."""

    def get_prices(
        self, tickers: list[str], date: str | None = None
    ) -> dict[str, float]:
        """Fetch prices for the given tickers.

        Args:
            tickers: Ticker symbols.
            date: ISO date for a historical close. None for the latest.

        Returns:
            ticker -> price. Tickers with no price omitted.
        """
        ...


def _parse_quotes(data: Any) -> dict[str, float]:
    """Turn the feed's [{"ticker", "price"}] payload into a price map."""
    result: dict[str, float] = {}
    if not isinstance(data, list):
        logger.warning("Price feed returned %s, expected a list", type(data).__name__)
        return result

    for item in data:
        if not isinstance(item, dict):
            continue
        ticker = item.get("ticker")
        price = item.get("price")
        try:
            value = float(price)
        except (TypeError, ValueError):
            continue
        if ticker and math.isfinite(value) and value > 0:
            result[str(ticker)] = value
    return result


class HttpPriceFeed:
    """Fetch prices from the feed endpoint with retry and backoff.

    Retries with exponential backoff on 429/5xx status codes and on
    connection errors. Returns an empty map once retries are exhausted.

    Args:
        url: Feed endpoint.
        timeout: Per-request timeout in seconds.
        max_retries: Attempts before giving up.
        backoff_factor: Base delay; attempt n sleeps backoff_factor * 2**n.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30,
        max_retries: int = 3,
        backoff_factor: float = 1.0,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_factor = backoff_factor

    def fetch_all(
        self, date: str | None = None, raise_on_failure: bool = False
    ) -> dict[str, float]:
        """Fetch every quote the feed publishes.

        Args:
            date: ISO date for a historical close. None for the latest.
            raise_on_failure: Raise instead of returning {} once retries
                are exhausted.

        Returns:
            ticker -> price for every valid quote.

        Raises:
            PriceFeedError: If raise_on_failure is set and every attempt
                failed.
        """
        form = {"date": date} if date else {}

        for attempt in range(self._max_retries):
            sleep_time = self._backoff_factor * (2**attempt)
            try:
                response = requests.post(self._url, data=form, timeout=self._timeout)

                if response.status_code in _RETRY_STATUS_CODES:
                    logger.warning(
                        "Price feed returned %d, retrying in %.1fs (attempt %d/%d)",
                        response.status_code,
                        sleep_time,
                        attempt + 1,
                        self._max_retries,
                    )
                    time.sleep(sleep_time)
                    continue

                response.raise_for_status()
                quotes = _parse_quotes(response.json())
                logger.info("Price feed: %d quotes (date=%s)", len(quotes), date)
                return quotes

            except (requests.RequestException, ValueError) as e:
                if attempt < self._max_retries - 1:
                    logger.warning(
                        "Price feed request failed: %s. Retrying in %.1fs "
                        "(attempt %d/%d)",
                        e,
                        sleep_time,
                        attempt + 1,
                        self._max_retries,
                    )
                    time.sleep(sleep_time)

        logger.error("Price feed failed after %d attempts", self._max_retries)
        if raise_on_failure:
            raise PriceFeedError(
                f"price feed failed after {self._max_retries} attempts"
            )
        return {}

    def get_prices(
        self, tickers: list[str], date: str | None = None
    ) -> dict[str, float]:
        if not tickers:
            return {}
        quotes = self.fetch_all(date)
        return {t: quotes[t] for t in tickers if t in quotes}


class CachedPriceFeed:
    """Serve prices from a TTLCache, refreshing from the wrapped feed.

    The feed's full quote set is cached per date, so requests for
    different ticker subsets share one upstream call. A failed refresh
    returns {} and is not cached; the next call tries the feed again.

    Args:
        feed: Feed with a ``fetch_all(date, raise_on_failure)`` method.
        cache: Cache holding quote maps keyed by date.
    """

    def __init__(self, feed: HttpPriceFeed, cache: TTLCache[dict[str, float]]) -> None:
        self._feed = feed
        self._cache = cache

    def get_prices(
        self, tickers: list[str], date: str | None = None
    ) -> dict[str, float]:
        if not tickers:
            return {}
        try:
            quotes = self._cache.get_or_refresh(
                date, lambda: self._feed.fetch_all(date, raise_on_failure=True)
            )
        except PriceFeedError as e:
            logger.warning("No prices for date=%s: %s", date, e)
            return {}
        return {t: quotes[t] for t in tickers if t in quotes}


def feed_from_config(config: DashboardConfig) -> PriceFeed | None:
    """Build the cached HTTP feed described by config.

    Returns:
        A PriceFeed, or None if no feed URL is configured.
    """
    if not config.price_feed_url:
        logger.warning("No price feed URL configured")
        return None
    http_feed = HttpPriceFeed(
        config.price_feed_url,
        timeout=config.feed_timeout_seconds,
        max_retries=config.feed_max_retries,
        backoff_factor=config.feed_backoff_factor,
    )
    cache: TTLCache[dict[str, float]] = TTLCache(config.price_cache_ttl_seconds)
    return CachedPriceFeed(http_feed, cache)
