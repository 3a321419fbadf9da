"""
Database Engine and Session Management

This module builds the async SQLAlchemy engine used by the SQL key-value
backend. All dialect-specific configuration lives here so the store itself
stays dialect-agnostic.

SQLite specifics:
- NullPool for file databases (single writer, no benefit from pooling)
- StaticPool for in-memory databases, so every session sees the same data
- check_same_thread=False: Required for async SQLite operations
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession


def is_sqlite_url(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def is_memory_sqlite_url(database_url: str) -> bool:
    return is_sqlite_url(database_url) and (
        database_url.rstrip("/").endswith(":memory:")
        or database_url.rstrip("/") in ("sqlite+aiosqlite:", "sqlite:")
    )


def get_engine_kwargs(database_url: str) -> dict[str, Any]:
    """
    Engine options for the given connection string.

    Returns:
        Keyword arguments for create_async_engine
    """
    if not is_sqlite_url(database_url):
        return {"echo": False, "pool_pre_ping": True}

    return {
        "echo": False,  # Set to True only for SQL debugging in development
        "poolclass": StaticPool if is_memory_sqlite_url(database_url) else NullPool,
        "connect_args": {"check_same_thread": False},
    }


def create_engine(database_url: str, **kwargs) -> AsyncEngine:
    """
    Create an async engine with dialect-appropriate defaults.

    Args:
        database_url: Connection string (sqlite+aiosqlite://..., postgresql+asyncpg://...)
        **kwargs: Additional engine options (override the defaults)
    """
    engine_kwargs = get_engine_kwargs(database_url)
    engine_kwargs.update(kwargs)
    return create_async_engine(database_url, **engine_kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory bound to engine."""
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
        autoflush=False,
    )
