"""Score store: per-user point totals filtered by school and grade."""

from __future__ import annotations

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.db.models import UserScore
from ecolearn.leaderboard.filters import LeaderboardFilter, is_valid_grade


def _apply_filter(stmt: Select, flt: LeaderboardFilter) -> Select:
    if flt.school_id is not None:
        stmt = stmt.where(UserScore.school_id == flt.school_id)
    if flt.grade is not None:
        stmt = stmt.where(UserScore.grade == flt.grade)
    return stmt


async def query_top_scores(
    db: AsyncSession, flt: LeaderboardFilter, limit: int,
) -> list[UserScore]:
    """Highest totals first; earlier updates win ties for a place on the page."""
    stmt = _apply_filter(select(UserScore), flt).order_by(
        UserScore.total_points.desc(),
        UserScore.last_updated_at.asc().nulls_first(),
        UserScore.created_at.asc(),
        UserScore.user_id.asc(),
    ).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars())


async def find_score(
    db: AsyncSession, user_id: int, flt: LeaderboardFilter,
) -> UserScore | None:
    """A single user's score record, if it matches the filter."""
    stmt = _apply_filter(select(UserScore), flt).where(UserScore.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def count_above(db: AsyncSession, points: int, flt: LeaderboardFilter) -> int:
    """Number of records with strictly more points under the filter."""
    stmt = _apply_filter(
        select(func.count()).select_from(UserScore), flt,
    ).where(UserScore.total_points > points)
    result = await db.execute(stmt)
    return result.scalar_one()


async def count_participants(db: AsyncSession, flt: LeaderboardFilter) -> int:
    stmt = _apply_filter(select(func.count()).select_from(UserScore), flt)
    result = await db.execute(stmt)
    return result.scalar_one()


async def distinct_grades(db: AsyncSession, school_id: int | None = None) -> list[str]:
    """Valid grade tokens present in score records, sorted numerically."""
    stmt = select(UserScore.grade).distinct().where(UserScore.grade.is_not(None))
    if school_id is not None:
        stmt = stmt.where(UserScore.school_id == school_id)
    result = await db.execute(stmt)

    grades = {grade.strip() for grade in result.scalars() if is_valid_grade(grade)}
    return sorted(grades, key=int)
