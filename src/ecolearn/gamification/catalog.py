"""Badge catalog: self-healing seed and threshold-ordered snapshot."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.database import get_session_factory
from ecolearn.db.models import BadgeDefinition
from ecolearn.gamification.seed import seed_badges
from ecolearn.gamification.single_flight import SingleFlight

logger = logging.getLogger(__name__)

catalog_seed: SingleFlight[int] = SingleFlight()


async def _seed_in_own_session() -> int:
    async with get_session_factory()() as session:
        return await seed_badges(session)


async def ensure_catalog_seeded() -> None:
    """Seed the preset badges once per process.

    The seed runs in its own session so a cancelled caller cannot close it
    underneath the shared task. Concurrent callers wait on the same seed; if
    it fails the next call retries.
    """
    if catalog_seed.done:
        return
    await catalog_seed.run(_seed_in_own_session)


def badge_to_dict(badge: BadgeDefinition, order: int) -> dict:
    return {
        "id": badge.id,
        "code": badge.code,
        "name": badge.name,
        "description": badge.description or "",
        "threshold": badge.threshold,
        "icon": badge.icon or "",
        "theme": badge.theme or "emerald",
        "order": order,
    }


async def list_active_definitions(db: AsyncSession) -> list[dict]:
    """Active badge definitions sorted by threshold, with 1-based order."""
    await ensure_catalog_seeded()
    result = await db.execute(
        select(BadgeDefinition)
        .where(BadgeDefinition.is_active.is_(True))
        .order_by(BadgeDefinition.threshold, BadgeDefinition.id)
    )
    return [badge_to_dict(badge, idx + 1) for idx, badge in enumerate(result.scalars())]


def second_highest_threshold(definitions: list[dict]) -> int:
    """Threshold of the second-highest badge (the highest if only one exists)."""
    if not definitions:
        return 0
    return definitions[max(0, len(definitions) - 2)]["threshold"]
