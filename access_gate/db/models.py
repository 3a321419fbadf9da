"""
Database Models for the SQL key-value backend

Design Decisions:
- One generic table rather than one per subsystem; the rate limiter and the
  document cache partition the key space by prefix
- expires_at is stored as epoch seconds so expiry is a plain comparison
- Index on expires_at so expired rows can be purged in one statement
"""

from typing import Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import String, Text, Float


class KVEntry(SQLModel, table=True):
    """
    A single key-value pair.

    Fields:
    - key: Namespaced key (e.g. 'rate_limit:203.0.113.7', 'cache:blacklist')
    - value: JSON text
    - expires_at: Epoch seconds after which the row reads as absent
      (None = never expires)
    """
    __tablename__ = "kv_entries"

    key: str = Field(
        sa_column=Column(String(255), primary_key=True),
        max_length=255
    )
    value: str = Field(sa_column=Column(Text, nullable=False))
    expires_at: Optional[float] = Field(
        default=None,
        sa_column=Column(Float, nullable=True, index=True)
    )
