"""
In-Memory Key-Value Store

Process-local backend with the same expiry semantics as the SQL and Redis
backends. Not shared between workers, so it is meant for tests and single
process development (KV_BACKEND=memory).
"""

import time
from typing import Callable, Dict, Optional, Tuple

from access_gate.db.interface import KeyValueStore

DEFAULT_PURGE_INTERVAL_SECONDS = 300


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with an injectable clock."""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        purge_interval_seconds: int = DEFAULT_PURGE_INTERVAL_SECONDS
    ):
        self.clock = clock
        self.purge_interval_seconds = purge_interval_seconds
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._last_purge = clock()

    async def get_raw(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and expires_at <= self.clock():
            del self._data[key]
            return None
        return value

    async def put_raw(
        self,
        key: str,
        value: str,
        expiration_seconds: Optional[int]
    ) -> None:
        now = self.clock()
        expires_at = None
        if expiration_seconds is not None:
            expires_at = now + expiration_seconds
        self._data[key] = (value, expires_at)

        if now - self._last_purge >= self.purge_interval_seconds:
            self._last_purge = now
            self.purge_expired()

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self.clock()
        expired = [
            key for key, (_, expires_at) in self._data.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            del self._data[key]
        return len(expired)

    def entry_count(self) -> int:
        """Stored entries, expired or not."""
        return len(self._data)

    def keys(self) -> list[str]:
        """Live (unexpired) keys, mostly useful for assertions."""
        now = self.clock()
        return [
            key for key, (_, expires_at) in self._data.items()
            if expires_at is None or expires_at > now
        ]
