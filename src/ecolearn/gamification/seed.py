"""Badge seed data for the eco progression ladder, ordered by threshold."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.db.models import BadgeDefinition
from ecolearn.db.upsert import upsert_insert

logger = logging.getLogger(__name__)

BADGE_PRESETS: list[dict] = [
    {
        "code": "SEEDLING_SCOUT",
        "name": "Seedling Scout",
        "description": "Start your eco journey and earn your first points.",
        "threshold": 0,
        "icon": "\U0001f331",
        "theme": "emerald",
    },
    {
        "code": "SPROUT_BRONZE",
        "name": "Bronze Sprout",
        "description": "Reach 100 points and show steady growth.",
        "threshold": 100,
        "icon": "\U0001f949",
        "theme": "amber",
    },
    {
        "code": "CANOPY_SILVER",
        "name": "Silver Canopy",
        "description": "Earn 300 points to build a thriving canopy.",
        "threshold": 300,
        "icon": "\U0001f948",
        "theme": "slate",
    },
    {
        "code": "ECO_GOLD",
        "name": "Gold Guardian",
        "description": "Collect 600 points and guard the planet.",
        "threshold": 600,
        "icon": "\U0001f947",
        "theme": "yellow",
    },
    {
        "code": "PLANET_PLATINUM",
        "name": "Platinum Planet Protector",
        "description": "Score 1000 points to lead planetary change.",
        "threshold": 1000,
        "icon": "\U0001f30d",
        "theme": "sky",
    },
    {
        "code": "COSMIC_CHAMPION",
        "name": "Cosmic Champion",
        "description": "Achieve 1500 points to join the cosmic league.",
        "threshold": 1500,
        "icon": "\U0001f30c",
        "theme": "violet",
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Insert any missing preset badges. Returns number of presets upserted.

    Existing rows keep their name, threshold and styling; they are only
    re-activated. Concurrent seeders converge on the same rows.
    """
    seeded = 0
    for preset in BADGE_PRESETS:
        stmt = upsert_insert(db, BadgeDefinition).values(is_active=True, **preset)
        stmt = stmt.on_conflict_do_update(
            index_elements=["code"],
            set_={"is_active": True},
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", seeded)
    return seeded
