"""Pydantic response models for leaderboard endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ecolearn.gamification.schemas import BadgeDefinitionResponse


class AwardedBadgeResponse(BadgeDefinitionResponse):
    awarded_at: datetime | None = None
    points_at_award: int = 0


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: int
    name: str
    avatar: str = ""
    role: str = "student"
    grade: str | None = None
    school_id: int | None = None
    school_name: str | None = None
    points: int
    last_updated_at: datetime | None = None
    badges: list[AwardedBadgeResponse] = []
    current_badge: AwardedBadgeResponse | None = None
    next_badge: BadgeDefinitionResponse | None = None
    points_to_next_badge: int = 0
    highlight: bool = False
    highlight_reasons: list[str] = []
    is_self: bool = False


class SelfRankResponse(BaseModel):
    rank: int
    points: int
    grade: str | None = None


class LeaderboardMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    grade: str | None = None
    school_id: int | None = None
    available_grades: list[str] = []
    limit: int
    include_self: bool = False
    total_entries: int = 0
    total_participants: int = 0
    self_rank: SelfRankResponse | None = Field(default=None, alias="self")


class LeaderboardResponse(BaseModel):
    meta: LeaderboardMeta
    badges: list[BadgeDefinitionResponse]
    leaderboard: list[LeaderboardEntryResponse]
    podium: list[LeaderboardEntryResponse]
