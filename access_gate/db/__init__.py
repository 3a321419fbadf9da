"""
Key-value storage module with abstraction layer.

This module provides:
- KeyValueStore interface: Abstract base class for store backends
- SQLKeyValueStore: SQL implementation (default, SQLite via aiosqlite)
- RedisKeyValueStore: Redis implementation for multi-instance deployments
- MemoryKeyValueStore: Process-local implementation for tests
- create_kv_store(): Builds the backend selected by KV_BACKEND

To add a new backend:
1. Create a new class inheriting from KeyValueStore
2. Implement get_raw/put_raw
3. Add it to create_kv_store()
4. No other code changes needed!
"""

from access_gate.core.setting import KVBackend, Settings
from access_gate.db.interface import KeyValueStore
from access_gate.db.memory_store import MemoryKeyValueStore
from access_gate.db.sql_store import SQLKeyValueStore

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLKeyValueStore",
    "create_kv_store",
]


async def create_kv_store(settings: Settings) -> KeyValueStore:
    """
    Factory function for the configured key-value store.

    The SQL backend creates its table on first use so a fresh SQLite file
    works without running migrations.
    """
    backend = KVBackend(settings.KV_BACKEND)

    if backend is KVBackend.redis:
        from access_gate.db.redis_store import RedisKeyValueStore
        return RedisKeyValueStore(redis_url=settings.REDIS_URL)

    if backend is KVBackend.memory:
        return MemoryKeyValueStore(purge_interval_seconds=settings.KV_PURGE_INTERVAL)

    store = SQLKeyValueStore(
        database_url=settings.DATABASE_URL,
        purge_interval_seconds=settings.KV_PURGE_INTERVAL,
    )
    await store.create_tables()
    return store
