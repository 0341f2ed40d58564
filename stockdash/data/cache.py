"""Time-to-live cache for upstream fetches."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Get-or-refresh cache whose entries expire after a fixed age.

    Entries live on the instance; share one instance to share entries.
    Not thread-safe.

    Args:
        ttl_seconds: Maximum entry age. 0 disables caching.
        clock: Returns the current time in seconds. Injected for tests.

    Raises:
        ValueError: If ttl_seconds is negative.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, V]] = {}

    def get_or_refresh(self, key: Hashable, refresh: Callable[[], V]) -> V:
        """Return the cached value for key, refreshing it if stale.

        If refresh raises, the exception propagates and any previous
        entry is kept.

        Args:
            key: Cache key.
            refresh: Produces a fresh value.

        Returns:
            Cached or freshly produced value.
        """
        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None and now - entry[0] < self._ttl:
            logger.debug("Cache hit for %r", key)
            return entry[1]

        value = refresh()
        self._entries[key] = (now, value)
        logger.debug("Cache refreshed for %r", key)
        return value

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop one entry, or every entry when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
