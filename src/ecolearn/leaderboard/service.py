"""Leaderboard assembly — top scores joined with profiles and badge progress.

The score page, the requesting user's own record, user profiles and badge
awards are read separately and merged here. Entries whose profile cannot be
resolved are left out rather than failing the whole response.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.db.models import BadgeAward, School, User, UserScore
from ecolearn.gamification.catalog import list_active_definitions, second_highest_threshold
from ecolearn.leaderboard.filters import (
    LeaderboardFilter,
    parse_grade,
    parse_id,
    parse_limit,
)
from ecolearn.leaderboard.ranking import (
    assign_competition_ranks,
    badge_progress,
    build_podium,
    compute_highlight_reasons,
    sort_entries,
)
from ecolearn.leaderboard.score_store import (
    count_above,
    count_participants,
    distinct_grades,
    find_score,
    query_top_scores,
)

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Eco Learner"
DEFAULT_ROLE = "student"


async def get_user_profiles_batch(
    db: AsyncSession, user_ids: list[int],
) -> dict[int, dict]:
    """Batch-load display profiles, with school names, for the given users."""
    if not user_ids:
        return {}

    result = await db.execute(
        select(User, School.name)
        .outerjoin(School, User.school_id == School.id)
        .where(User.id.in_(user_ids))
    )

    profiles = {}
    for user, school_name in result.all():
        profiles[user.id] = {
            "name": user.name or DEFAULT_NAME,
            "avatar": user.avatar_url or "",
            "role": user.role or DEFAULT_ROLE,
            "grade": (user.grade or "").strip() or None,
            "school_id": user.school_id,
            "school_name": school_name,
        }
    return profiles


async def get_awards_by_user(
    db: AsyncSession, user_ids: list[int], badge_by_id: dict[int, dict],
) -> dict[int, list[dict]]:
    """Awarded badges per user, sorted by threshold ascending.

    Awards for badges missing from the active catalog are skipped.
    """
    if not user_ids:
        return {}

    result = await db.execute(
        select(
            BadgeAward.user_id,
            BadgeAward.badge_id,
            BadgeAward.awarded_at,
            BadgeAward.points_at_award,
        ).where(BadgeAward.user_id.in_(user_ids))
    )

    awards: dict[int, list[dict]] = {}
    for row in result:
        badge = badge_by_id.get(row.badge_id)
        if badge is None:
            continue
        awards.setdefault(row.user_id, []).append({
            **badge,
            "awarded_at": row.awarded_at,
            "points_at_award": row.points_at_award or 0,
        })

    for badges in awards.values():
        badges.sort(key=lambda b: b["threshold"])
    return awards


def _build_entry(
    score: UserScore,
    profile: dict,
    awarded: list[dict],
    definitions: list[dict],
    self_id: int | None,
) -> dict:
    points = score.total_points or 0
    current, next_badge, points_to_next = badge_progress(points, awarded, definitions)
    last_updated: datetime | None = score.last_updated_at or score.created_at

    return {
        "rank": 0,
        "user_id": score.user_id,
        "name": profile["name"],
        "avatar": profile["avatar"],
        "role": profile["role"],
        "grade": (score.grade or "").strip() or profile["grade"],
        "school_id": profile["school_id"],
        "school_name": profile["school_name"],
        "points": points,
        "last_updated_at": last_updated,
        "badges": awarded,
        "current_badge": current,
        "next_badge": next_badge,
        "points_to_next_badge": points_to_next,
        "highlight": False,
        "highlight_reasons": [],
        "is_self": self_id is not None and score.user_id == self_id,
    }


async def get_leaderboard(
    db: AsyncSession,
    grade: object = None,
    school: object = None,
    user_id: object = None,
    limit: object = None,
) -> dict:
    """Build the ranked leaderboard for an optional school/grade slice.

    Every argument is normalized rather than validated: an unknown grade
    means "all grades", a malformed id is ignored, and the limit is clamped.
    """
    grade_filter = parse_grade(grade)
    page_size = parse_limit(limit)
    school_id = parse_id(school)
    self_id = parse_id(user_id)
    flt = LeaderboardFilter(school_id=school_id, grade=grade_filter)

    definitions = await list_active_definitions(db)
    scores = await query_top_scores(db, flt, page_size)

    include_self = False
    self_score: UserScore | None = None
    if self_id is not None:
        self_score = next((s for s in scores if s.user_id == self_id), None)
        if self_score is None:
            self_score = await find_score(db, self_id, flt)
            if self_score is not None:
                scores.append(self_score)
                include_self = True

    available_grades = await distinct_grades(db, school_id)
    meta = {
        "grade": grade_filter,
        "school_id": school_id,
        "available_grades": available_grades,
        "limit": page_size,
        "include_self": include_self,
        "total_entries": 0,
        "total_participants": 0,
        "self": None,
    }

    if not scores:
        return {"meta": meta, "badges": definitions, "leaderboard": [], "podium": []}

    user_ids = list(dict.fromkeys(s.user_id for s in scores))
    badge_by_id = {badge["id"]: badge for badge in definitions}
    profiles = await get_user_profiles_batch(db, user_ids)
    awards = await get_awards_by_user(db, user_ids, badge_by_id)
    total_participants = await count_participants(db, flt)

    entries = []
    for score in scores:
        profile = profiles.get(score.user_id)
        if profile is None:
            logger.debug("Skipping score for user %s: profile not found", score.user_id)
            continue
        entries.append(
            _build_entry(score, profile, awards.get(score.user_id, []), definitions, self_id)
        )

    entries = assign_competition_ranks(sort_entries(entries))

    self_entry = next((e for e in entries if e["is_self"]), None)
    self_rank: int | None = self_entry["rank"] if self_entry else None
    if self_score is not None and (include_self or self_entry is None):
        # Position in a truncated page is not the global rank
        self_rank = await count_above(db, self_score.total_points or 0, flt) + 1
        if self_entry is not None:
            self_entry["rank"] = self_rank

    top_threshold = second_highest_threshold(definitions)
    for entry in entries:
        entry["highlight_reasons"] = compute_highlight_reasons(entry, top_threshold)
        entry["highlight"] = bool(entry["highlight_reasons"])

    if self_rank is not None:
        meta["self"] = {
            "rank": self_rank,
            "points": self_entry["points"] if self_entry else (self_score.total_points or 0),
            "grade": self_entry["grade"] if self_entry else self_score.grade,
        }

    meta["include_self"] = include_self
    meta["total_entries"] = len(entries)
    meta["total_participants"] = total_participants

    return {
        "meta": meta,
        "badges": definitions,
        "leaderboard": entries,
        "podium": build_podium(entries),
    }
