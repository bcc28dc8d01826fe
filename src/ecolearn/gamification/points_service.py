"""Point ledger: records transactions and keeps the per-user total in sync."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import case, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.db.models import PointTransaction, User, UserScore
from ecolearn.db.upsert import upsert_insert
from ecolearn.gamification.badge_service import award_eligible_badges
from ecolearn.gamification.catalog import ensure_catalog_seeded
from ecolearn.leaderboard.filters import parse_id

logger = logging.getLogger(__name__)

POINT_REASONS = frozenset({"TASK_ACCEPTED", "ADJUSTMENT", "REVOKE"})


@dataclass
class PointResult:
    total_points: int
    awarded_badge_ids: list[int] = field(default_factory=list)


async def record_points(
    db: AsyncSession,
    user_id: object,
    amount: int,
    reason: str,
    source_id: str | None = None,
    idempotency_key: str | None = None,
) -> PointResult | None:
    """Apply a signed point delta to a user. Returns None if nothing was applied.

    1. Insert into point_transactions (idempotent via idempotency_key)
    2. Upsert user_scores: add the delta (never below zero), refresh the
       school/grade snapshot and last_updated_at
    3. Award any badges the new total unlocks
    """
    if reason not in POINT_REASONS:
        raise ValueError(f"Unknown point reason: {reason}")

    uid = parse_id(user_id)
    if uid is None or amount == 0:
        return None

    # The seed commits on its own connection; run it before this session writes
    await ensure_catalog_seeded()

    if idempotency_key:
        existing = await db.execute(
            select(PointTransaction.id).where(PointTransaction.idempotency_key == idempotency_key)
        )
        if existing.scalar_one_or_none() is not None:
            return None

    user = await db.get(User, uid)
    if user is None:
        logger.warning("Cannot record points for unknown user %s", uid)
        return None

    now = datetime.now(timezone.utc)
    db.add(PointTransaction(
        user_id=uid,
        school_id=user.school_id,
        amount=amount,
        reason=reason,
        source_id=source_id,
        idempotency_key=idempotency_key,
        created_at=now,
    ))
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        return None  # Race condition: same idempotency key recorded concurrently

    grade = (user.grade or "").strip() or None
    snapshot = {"school_id": user.school_id, "last_updated_at": now}
    if grade:
        snapshot["grade"] = grade

    new_total = UserScore.total_points + amount
    stmt = upsert_insert(db, UserScore).values(
        user_id=uid,
        total_points=max(amount, 0),
        created_at=now,
        **snapshot,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={"total_points": case((new_total < 0, 0), else_=new_total), **snapshot},
    ).returning(UserScore.total_points)
    total_points = (await db.execute(stmt)).scalar_one()

    awarded = await award_eligible_badges(db, uid, total_points)
    await db.commit()
    logger.info("Recorded %+d points for user %s (%s), total %d", amount, uid, reason, total_points)
    return PointResult(total_points=total_points, awarded_badge_ids=awarded)
