"""Database integration utilities for the key-value blob store."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
)
from sqlalchemy.engine import Connection, Engine


metadata = MetaData()

LOGGER = logging.getLogger(__name__)

kv_blobs = Table(
    "kv_blobs",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


def create_db_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine."""

    LOGGER.debug("Creating database engine")
    return create_engine(database_url, future=True, pool_pre_ping=True)


@contextmanager
def session(engine: Engine) -> Iterator[Connection]:
    """Provide a transactional scope around a series of operations."""

    with engine.begin() as conn:
        yield conn


def ensure_schema(engine: Engine) -> None:
    """Create tables if they do not exist."""

    LOGGER.debug("Ensuring database schema is present")
    metadata.create_all(engine)


def read_blob(engine: Engine, key: str) -> Optional[str]:
    """Return the stored value for ``key`` or ``None`` when absent."""

    with engine.connect() as conn:
        return conn.execute(select(kv_blobs.c.value).where(kv_blobs.c.key == key)).scalar_one_or_none()


def write_blob(engine: Engine, key: str, value: str) -> None:
    """Overwrite the value stored under ``key``."""

    with session(engine) as conn:
        conn.execute(delete(kv_blobs).where(kv_blobs.c.key == key))
        conn.execute(
            insert(kv_blobs).values(key=key, value=value, updated_at=datetime.now(timezone.utc))
        )
    LOGGER.debug("Wrote %d bytes to blob %s", len(value), key)


class BlobStore:
    """Key-value blob store backed by a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        ensure_schema(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "BlobStore":
        return cls(create_db_engine(database_url))

    def get(self, key: str) -> Optional[str]:
        return read_blob(self.engine, key)

    def put(self, key: str, value: str) -> None:
        write_blob(self.engine, key, value)


__all__ = [
    "create_db_engine",
    "ensure_schema",
    "read_blob",
    "write_blob",
    "BlobStore",
    "metadata",
    "kv_blobs",
]
