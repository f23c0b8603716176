"""Dialect-aware INSERT constructs for single-statement upserts."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def upsert_insert(session: AsyncSession, entity: Any):
    """Return an INSERT supporting ON CONFLICT for the session's backend."""
    dialect_name = session.bind.dialect.name if session.bind else None
    if dialect_name == "postgresql":
        return pg_insert(entity)
    if dialect_name == "sqlite":
        return sqlite_insert(entity)
    raise RuntimeError(f"Conditional inserts are not supported on dialect {dialect_name!r}")
