"""Async SQLAlchemy engine and session management."""

import time
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ecolearn.db import models  # noqa: F401 - register tables
from ecolearn.db.base import Base

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options(url: str, pool_size: int, max_overflow: int) -> dict[str, Any]:
    """Pool and driver options for the configured backend."""
    if url.startswith("sqlite"):
        # aiosqlite takes no pool sizing or asyncpg connect args
        return {"echo": False}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "echo": False,
        # PgBouncer in transaction mode cannot share prepared statements
        "connect_args": {"statement_cache_size": 0},
    }


async def init_db(url: str, pool_size: int = 20, max_overflow: int = 10) -> None:
    """Create the engine and session factory; replaces any previous engine."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_async_engine(url, **_engine_options(url, pool_size, max_overflow))
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def close_db() -> None:
    """Dispose of the database engine."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def get_engine() -> AsyncEngine:
    if _engine is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _session_factory


async def create_tables() -> None:
    """Create any missing tables from the ORM metadata (local SQLite runs, tests)."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping(db: AsyncSession) -> float:
    """Round-trip a trivial query; returns the latency in milliseconds."""
    start = time.perf_counter()
    await db.execute(text("SELECT 1"))
    return round((time.perf_counter() - start) * 1000, 2)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency)."""
    async with get_session_factory()() as session:
        yield session
