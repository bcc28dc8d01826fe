"""Point ledger tests — totals, idempotency and badge unlocks."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.db.models import BadgeAward, PointTransaction, UserScore
from ecolearn.gamification.points_service import record_points

pytestmark = pytest.mark.asyncio


async def _score(db: AsyncSession, user_id: int) -> UserScore | None:
    result = await db.execute(
        select(UserScore)
        .where(UserScore.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _held_badge_ids(db: AsyncSession, user_id: int) -> set[int]:
    result = await db.execute(select(BadgeAward.badge_id).where(BadgeAward.user_id == user_id))
    return set(result.scalars())


class TestRecordPoints:
    async def test_creates_score_and_awards(self, db_session: AsyncSession, make_user, make_school):
        school = await make_school("Green Hill")
        user = await make_user("Ada", grade="6", school=school)
        school_id = school.id

        result = await record_points(db_session, user.id, 120, "TASK_ACCEPTED", source_id="task-1")
        assert result is not None
        assert result.total_points == 120
        assert len(result.awarded_badge_ids) == 2

        score = await _score(db_session, user.id)
        assert score.total_points == 120
        assert score.grade == "6"
        assert score.school_id == school_id
        assert score.last_updated_at is not None

    async def test_accumulates(self, db_session: AsyncSession, make_user):
        user = await make_user("Ben", points=250)
        result = await record_points(db_session, user.id, 75, "TASK_ACCEPTED")
        assert result.total_points == 325
        assert (await _score(db_session, user.id)).total_points == 325

    async def test_floors_at_zero(self, db_session: AsyncSession, make_user):
        user = await make_user("Cleo", points=40)
        result = await record_points(db_session, user.id, -100, "REVOKE")
        assert result.total_points == 0

    async def test_negative_delta_keeps_badges(self, db_session: AsyncSession, make_user):
        user = await make_user("Dev")
        await record_points(db_session, user.id, 320, "TASK_ACCEPTED")
        before = await _held_badge_ids(db_session, user.id)

        result = await record_points(db_session, user.id, -300, "ADJUSTMENT")
        assert result.total_points == 20
        assert result.awarded_badge_ids == []
        assert await _held_badge_ids(db_session, user.id) == before

    async def test_idempotency_key(self, db_session: AsyncSession, make_user):
        user = await make_user("Eve")
        first = await record_points(db_session, user.id, 50, "TASK_ACCEPTED", idempotency_key="task-9:eve")
        second = await record_points(db_session, user.id, 50, "TASK_ACCEPTED", idempotency_key="task-9:eve")
        assert first is not None
        assert second is None
        assert (await _score(db_session, user.id)).total_points == 50

        count = await db_session.execute(select(func.count()).select_from(PointTransaction))
        assert count.scalar_one() == 1

    async def test_zero_amount_is_noop(self, db_session: AsyncSession, make_user):
        user = await make_user("Fay")
        assert await record_points(db_session, user.id, 0, "ADJUSTMENT") is None
        assert await _score(db_session, user.id) is None

    @pytest.mark.parametrize("user_id", [None, "x", -1, "0"])
    async def test_malformed_user(self, db_session: AsyncSession, user_id):
        assert await record_points(db_session, user_id, 10, "TASK_ACCEPTED") is None

    async def test_unknown_user(self, db_session: AsyncSession):
        assert await record_points(db_session, 987654, 10, "TASK_ACCEPTED") is None

    async def test_unknown_reason(self, db_session: AsyncSession, make_user):
        user = await make_user("Gus")
        with pytest.raises(ValueError, match="Unknown point reason"):
            await record_points(db_session, user.id, 10, "BRIBE")
