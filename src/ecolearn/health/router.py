"""Health, readiness, and version endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.config import get_settings
from ecolearn.database import get_session, ping
from ecolearn.db.models import BadgeDefinition
from ecolearn.redis_client import ping_redis

router = APIRouter()

_STARTED_AT = datetime.now(timezone.utc)


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe — returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe.

    The database is required; Redis only backs rate limiting, so without
    it the service still answers but reports itself degraded. The active
    badge count is informational, the catalog re-seeds itself on first use.
    """
    components: dict[str, dict[str, object]] = {}
    badge_count: int | None = None

    try:
        latency = await ping(db)
    except SQLAlchemyError as exc:
        components["database"] = {"status": f"error:{type(exc).__name__}"}
    else:
        components["database"] = {"status": "ok", "latency_ms": latency}
        count = await db.execute(
            select(func.count()).select_from(BadgeDefinition).where(BadgeDefinition.is_active.is_(True))
        )
        badge_count = count.scalar_one()

    try:
        latency = await ping_redis()
    except RuntimeError:
        components["redis"] = {"status": "disabled"}
    except (RedisError, OSError) as exc:
        components["redis"] = {"status": f"error:{type(exc).__name__}"}
    else:
        components["redis"] = {"status": "ok", "latency_ms": latency}

    if components["database"]["status"] != "ok":
        status = "unavailable"
    elif components["redis"]["status"] != "ok":
        status = "degraded"
    else:
        status = "ready"

    return {
        "status": status,
        "uptime_seconds": round((datetime.now(timezone.utc) - _STARTED_AT).total_seconds(), 2),
        "components": components,
        "badge_definitions": badge_count,
    }


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
