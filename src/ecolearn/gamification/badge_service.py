"""Badge award service with duplicate prevention."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.db.models import BadgeAward, BadgeDefinition
from ecolearn.db.upsert import upsert_insert
from ecolearn.gamification.catalog import ensure_catalog_seeded
from ecolearn.leaderboard.filters import parse_id

logger = logging.getLogger(__name__)


async def award_eligible_badges(
    db: AsyncSession,
    user_id: object,
    total_points: int,
) -> list[int]:
    """Award every active badge whose threshold the user has reached.

    Returns the ids of badges inserted by this call. Badges already held,
    or inserted concurrently by another caller, are not returned. Awards are
    permanent: a lower total later on does not remove them.
    """
    uid = parse_id(user_id)
    if uid is None:
        return []

    await ensure_catalog_seeded()

    eligible_result = await db.execute(
        select(BadgeDefinition.id)
        .where(
            BadgeDefinition.is_active.is_(True),
            BadgeDefinition.threshold <= total_points,
        )
        .order_by(BadgeDefinition.threshold)
    )
    eligible = list(eligible_result.scalars())
    if not eligible:
        return []

    existing_result = await db.execute(
        select(BadgeAward.badge_id).where(
            BadgeAward.user_id == uid,
            BadgeAward.badge_id.in_(eligible),
        )
    )
    already_awarded = set(existing_result.scalars())

    now = datetime.now(timezone.utc)
    rows = [
        {
            "user_id": uid,
            "badge_id": badge_id,
            "points_at_award": total_points,
            "awarded_at": now,
        }
        for badge_id in eligible
        if badge_id not in already_awarded
    ]
    if not rows:
        return []

    try:
        awarded = await _insert_awards(db, rows)
    except IntegrityError:
        logger.warning("Batch badge award failed for user %s, retrying per badge", uid, exc_info=True)
        awarded = []
        for row in rows:
            try:
                awarded.extend(await _insert_awards(db, [row]))
            except IntegrityError:
                logger.warning("Skipping badge %s for user %s", row["badge_id"], uid)

    await db.commit()
    if awarded:
        logger.info("Awarded %d badge(s) to user %s at %d points", len(awarded), uid, total_points)
    return awarded


async def _insert_awards(db: AsyncSession, rows: list[dict]) -> list[int]:
    """Insert award rows inside a savepoint, skipping (user, badge) conflicts."""
    stmt = (
        upsert_insert(db, BadgeAward)
        .values(rows)
        .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
        .returning(BadgeAward.badge_id)
    )
    async with db.begin_nested():
        result = await db.execute(stmt)
        return list(result.scalars())
