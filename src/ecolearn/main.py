"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from ecolearn.config import get_settings
from ecolearn.database import close_db, create_tables, init_db
from ecolearn.gamification.catalog import ensure_catalog_seeded
from ecolearn.health.router import router as health_router
from ecolearn.leaderboard.router import router as leaderboard_router
from ecolearn.middleware import setup_middleware
from ecolearn.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


async def _seed_catalog() -> None:
    """Seed preset badges at boot; requests re-seed on demand if this fails."""
    try:
        await ensure_catalog_seeded()
    except SQLAlchemyError:
        logger.warning("Badge seeding at startup failed, deferring to first request", exc_info=True)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.create_tables_on_startup:
        await create_tables()
    if settings.rate_limit_enabled:
        await init_redis(
            settings.redis_url,
            max_connections=settings.redis_max_connections,
            socket_timeout=settings.redis_socket_timeout_seconds,
        )
    if settings.seed_badges_on_startup:
        await _seed_catalog()

    logger.info("EcoLearn leaderboard started (%s)", settings.environment)
    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="EcoLearn Leaderboard API",
        description="Leaderboard and badge progression for the EcoLearn education platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(leaderboard_router)

    return app


app = create_app()
