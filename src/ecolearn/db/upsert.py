"""Dialect-aware INSERT .. ON CONFLICT statements."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def upsert_insert(db: AsyncSession, model: Any) -> Any:  # noqa: ANN401
    """Return an insert() supporting on_conflict_* for the session's backend.

    PostgreSQL in production, SQLite for local runs and tests.
    """
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)
