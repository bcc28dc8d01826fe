"""Shared test fixtures."""

from __future__ import annotations

import itertools
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.config import get_settings
from ecolearn.database import close_db, create_tables, get_session, init_db
from ecolearn.db.models import School, User, UserScore
from ecolearn.gamification.catalog import catalog_seed
from ecolearn.main import create_app

BASE_TIME = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)

_emails = itertools.count(1)


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point every test at its own SQLite file and a fresh catalog memo."""
    monkeypatch.setenv("ECOLEARN_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'ecolearn.db'}")
    monkeypatch.setenv("ECOLEARN_LOG_FORMAT", "console")
    get_settings.cache_clear()
    catalog_seed.reset()
    yield
    catalog_seed.reset()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Initialize the engine and create all tables from the model metadata."""
    settings = get_settings()
    await init_db(settings.database_url)
    await create_tables()
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for setup and assertions."""
    sessions = get_session()
    session = await anext(sessions)
    yield session
    await sessions.aclose()


@pytest_asyncio.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app; Redis is left uninitialized."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_school(db_session: AsyncSession) -> Callable[..., Awaitable[School]]:
    async def _make(name: str, code: str | None = None) -> School:
        school = School(name=name, code=code or name[:3].upper() + str(next(_emails)))
        db_session.add(school)
        await db_session.commit()
        return school

    return _make


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Create a user and, when ``points`` is given, its score record.

    ``updated_minutes`` offsets last_updated_at from a fixed base time so
    tie-breaks are deterministic.
    """

    async def _make(
        name: str,
        points: int | None = None,
        grade: str | None = None,
        school: School | None = None,
        updated_minutes: int = 0,
        avatar: str | None = None,
    ) -> User:
        user = User(
            name=name,
            email=f"{name.lower().replace(' ', '.')}.{next(_emails)}@example.com",
            avatar_url=avatar,
            grade=grade,
            school_id=school.id if school else None,
        )
        db_session.add(user)
        await db_session.flush()
        if points is not None:
            db_session.add(UserScore(
                user_id=user.id,
                school_id=user.school_id,
                grade=grade,
                total_points=points,
                last_updated_at=BASE_TIME + timedelta(minutes=updated_minutes),
                created_at=BASE_TIME,
            ))
        await db_session.commit()
        return user

    return _make
