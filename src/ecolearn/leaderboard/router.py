"""Leaderboard API endpoints: ranked board and badge catalog."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.database import get_session
from ecolearn.gamification.catalog import list_active_definitions
from ecolearn.gamification.schemas import AllBadgesResponse, BadgeDefinitionResponse
from ecolearn.leaderboard.schemas import LeaderboardResponse
from ecolearn.leaderboard.service import get_leaderboard

router = APIRouter(prefix="/api/v1/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def read_leaderboard(
    grade: str | None = Query(None, description="Grade 1-12, or 'all'"),
    school: str | None = Query(None, description="School id"),
    user_id: str | None = Query(None, alias="userId", description="Requesting user, always included"),
    limit: str | None = Query(None, description="Page size, clamped to 5-100"),
    db: AsyncSession = Depends(get_session),
):
    """Ranked leaderboard with podium, badge progress and the caller's own rank.

    Query values are normalized, never rejected.
    """
    data = await get_leaderboard(db, grade=grade, school=school, user_id=user_id, limit=limit)
    return LeaderboardResponse.model_validate(data)


@router.get("/badges", response_model=AllBadgesResponse)
async def list_badges(db: AsyncSession = Depends(get_session)):
    """Badge ladder sorted by threshold."""
    badges = await list_active_definitions(db)
    return AllBadgesResponse(badges=[BadgeDefinitionResponse(**b) for b in badges])
