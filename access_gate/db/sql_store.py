"""
SQL Key-Value Store

This module implements the KeyValueStore interface on top of a relational
database through SQLAlchemy's async engine. SQLite (aiosqlite) is the default
and is perfect for:
- Local development
- Testing
- Single-instance deployments

Expiry emulates a store-level time-to-live:
- Rows whose expires_at has passed read as absent
- Writes sweep expired rows at most once per purge interval, so keys that
  are never written again (clients that went away) are still reclaimed
- purge_expired() can also be called directly, e.g. from a maintenance job
"""

import logging
import time
from typing import Callable, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

from access_gate.db.interface import KeyValueStore
from access_gate.db.models import KVEntry
from access_gate.db.session import create_engine, create_session_maker

logger = logging.getLogger(__name__)

DEFAULT_PURGE_INTERVAL_SECONDS = 300


class SQLKeyValueStore(KeyValueStore):
    """
    Key-value store backed by the kv_entries table.

    Each get/put runs in its own short transaction, giving per-key atomicity
    of individual reads and writes and nothing more.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        engine: Optional[AsyncEngine] = None,
        clock: Callable[[], float] = time.time,
        purge_interval_seconds: Optional[int] = DEFAULT_PURGE_INTERVAL_SECONDS
    ):
        """
        Args:
            database_url: Connection string, used when no engine is given
            engine: Pre-built async engine
            clock: Returns current epoch seconds
            purge_interval_seconds: Minimum gap between expiry sweeps run by
                put(); None disables the sweep
        """
        if engine is None:
            if database_url is None:
                raise ValueError("database_url or engine is required")
            engine = create_engine(database_url)
        self.engine = engine
        self.session_maker = create_session_maker(engine)
        self.clock = clock
        self.purge_interval_seconds = purge_interval_seconds
        self._last_purge = clock()

    async def create_tables(self) -> None:
        """Create kv_entries if it does not exist yet."""
        async with self.engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def get_raw(self, key: str) -> Optional[str]:
        async with self.session_maker() as session:
            entry = await session.get(KVEntry, key)
            if entry is None:
                return None
            if entry.expires_at is not None and entry.expires_at <= self.clock():
                return None
            return entry.value

    async def put_raw(
        self,
        key: str,
        value: str,
        expiration_seconds: Optional[int]
    ) -> None:
        expires_at = None
        if expiration_seconds is not None:
            expires_at = self.clock() + expiration_seconds

        async with self.session_maker() as session:
            try:
                await session.merge(KVEntry(key=key, value=value, expires_at=expires_at))
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        await self._purge_if_due()

    async def _purge_if_due(self) -> None:
        if self.purge_interval_seconds is None:
            return
        now = self.clock()
        if now - self._last_purge < self.purge_interval_seconds:
            return
        self._last_purge = now

        # The write itself succeeded; a failed sweep is retried next interval
        try:
            removed = await self.purge_expired()
        except Exception as e:
            logger.warning(f"Expired entry sweep failed: {str(e)}")
            return
        if removed:
            logger.info(f"Purged {removed} expired key-value entries")

    async def purge_expired(self) -> int:
        """
        Delete rows whose time-to-live has passed.

        Returns:
            Number of rows removed
        """
        statement = delete(KVEntry).where(
            KVEntry.expires_at.is_not(None),
            KVEntry.expires_at <= self.clock()
        )
        async with self.session_maker() as session:
            result = await session.execute(statement)
            await session.commit()
            return result.rowcount or 0

    async def close(self) -> None:
        await self.engine.dispose()
