"""
Key-Value Store Abstraction Interface

This module defines the storage abstraction shared by the rate limiter and
the document cache. Both subsystems only need two operations, so every
backend (SQL, Redis, in-memory) implements the same small contract and can be
swapped without touching the rest of the codebase.

Keys are partitioned by prefix (`rate_limit:*` and `cache:*`) so the two
subsystems never collide. Backends only guarantee per-key atomicity of single
reads and writes; there is no compare-and-swap.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

from access_gate.core.exceptions import TransportFailure


class KeyValueStore(ABC):
    """
    Abstract base class for key-value store backends.

    Backend errors surface from get/put as TransportFailure; a stored value
    that is not valid JSON raises ValueError from get(as_json=True). Callers
    decide how to degrade (fail open, cache miss, ...).

    To add a new backend:
    1. Create a new class inheriting from KeyValueStore
    2. Implement get_raw, put_raw and close
    3. Register it in create_kv_store()
    """

    async def get(self, key: str, as_json: bool = False) -> Any:
        """
        Read a value.

        Args:
            key: Store key
            as_json: Decode the stored text as JSON

        Returns:
            The stored text (or decoded JSON), None when missing or expired
        """
        try:
            raw = await self.get_raw(key)
        except Exception as e:
            raise TransportFailure(f"key-value store ({key})", e) from e
        if raw is None:
            return None
        if as_json:
            return json.loads(raw)
        return raw

    async def put(
        self,
        key: str,
        value: Any,
        expiration_seconds: Optional[int] = None
    ) -> None:
        """
        Write a value, JSON-encoding anything that is not already a string.

        Args:
            key: Store key
            value: Text or JSON-serializable value
            expiration_seconds: Physical time-to-live of the entry
        """
        if not isinstance(value, str):
            value = json.dumps(value)
        try:
            await self.put_raw(key, value, expiration_seconds)
        except Exception as e:
            raise TransportFailure(f"key-value store ({key})", e) from e

    @abstractmethod
    async def get_raw(self, key: str) -> Optional[str]:
        """Return stored text for key, or None when missing or expired."""
        pass

    @abstractmethod
    async def put_raw(
        self,
        key: str,
        value: str,
        expiration_seconds: Optional[int]
    ) -> None:
        """Store text under key with an optional time-to-live."""
        pass

    async def close(self) -> None:
        """Release connections held by the backend."""
        return None
