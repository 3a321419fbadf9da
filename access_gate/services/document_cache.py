"""
Document Cache

Time-boxed cache for documents fetched from the remote repository, stored in
the same key-value store as the rate limiter under cache:<name>.

Design Decisions:
- Logical TTL is checked against the entry's own timestamp (milliseconds),
  so staleness never depends on the backend's expiry precision
- The physical store TTL is ttl + 60s: logical staleness is always reached
  first, and an entry never vanishes while a fetch is racing to refresh it
- Fail open: a TransportFailure or an unreadable entry reads as a miss,
  and write failures are only logged (the next get misses and re-fetches)
"""

import logging
import time
from typing import Any, Callable, Optional

from access_gate.core.exceptions import TransportFailure
from access_gate.db.interface import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "cache:"
EXPIRATION_BUFFER_SECONDS = 60


class DocumentCache:
    """Store-backed cache with a single process-wide TTL."""

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int = 300,
        clock: Callable[[], float] = time.time
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @staticmethod
    def key_for(name: str) -> str:
        return f"{CACHE_KEY_PREFIX}{name}"

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    async def get(self, name: str) -> Optional[Any]:
        """
        Return the cached payload for name.

        Returns:
            The payload, or None when missing, stale or unreadable
        """
        try:
            cached = await self.store.get(self.key_for(name), as_json=True)
            if not cached or not cached.get("timestamp"):
                return None

            age_ms = self._now_ms() - cached["timestamp"]
            if age_ms >= self.ttl_seconds * 1000:
                return None

            logger.debug(f"Cache hit for key: {name}")
            return cached.get("data")
        except TransportFailure as e:
            logger.error(f"Cache read error for {name}: {str(e)}")
            return None
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Unreadable cache entry for {name}: {str(e)}")
            return None

    async def put(self, name: str, payload: Any) -> None:
        """Store payload under name, stamping it with the current time."""
        try:
            await self.store.put(
                self.key_for(name),
                {"data": payload, "timestamp": self._now_ms()},
                expiration_seconds=self.ttl_seconds + EXPIRATION_BUFFER_SECONDS
            )
            logger.debug(f"Cached data for key: {name}")
        except TransportFailure as e:
            logger.error(f"Cache write error for {name}: {str(e)}")
