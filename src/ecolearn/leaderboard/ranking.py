"""Deterministic leaderboard ranking with competition ("1224") ranks.

Entries are ordered by points DESC, then by last update ASC (earlier
achievement wins), then by display name. Equal point totals share a rank
and the next distinct total skips ahead by the size of the tie group.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

PODIUM_SIZE = 3

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_utc(value: datetime | None) -> datetime:
    """Normalize for comparison; a missing timestamp sorts as earliest."""
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def sort_key(entry: dict[str, Any]) -> tuple[int, datetime, str, str]:
    name = entry.get("name") or ""
    return (
        -entry.get("points", 0),
        _as_utc(entry.get("last_updated_at")),
        name.casefold(),
        name,
    )


def sort_entries(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(entries, key=sort_key)


def assign_competition_ranks(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Set ``rank`` on already-sorted entries.

    An entry tied on points with its predecessor takes the predecessor's
    rank; otherwise its rank is its 1-based position.
    """
    rank = 0
    previous_points: int | None = None
    for idx, entry in enumerate(entries):
        if previous_points is None or entry["points"] != previous_points:
            rank = idx + 1
            previous_points = entry["points"]
        entry["rank"] = rank
    return entries


def badge_progress(
    points: int,
    awarded: list[dict[str, Any]],
    definitions: list[dict[str, Any]],
) -> tuple[dict[str, Any] | None, dict[str, Any] | None, int]:
    """Current badge, next badge and points still needed for it.

    ``awarded`` and ``definitions`` are sorted by threshold ascending. The
    current badge is the highest awarded one the points still cover.
    """
    current = None
    for badge in awarded:
        if badge["threshold"] <= points:
            current = badge

    next_badge = next((b for b in definitions if b["threshold"] > points), None)
    points_to_next = max(0, next_badge["threshold"] - points) if next_badge else 0
    return current, next_badge, points_to_next


def compute_highlight_reasons(entry: dict[str, Any], top_threshold: int) -> list[str]:
    reasons = []
    if entry["rank"] <= PODIUM_SIZE:
        reasons.append("podium")
    current = entry.get("current_badge")
    if current and current["threshold"] >= top_threshold:
        reasons.append("badge")
    if entry.get("is_self"):
        reasons.append("self")
    return reasons


def build_podium(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Entries ranked in the top three, capped at three even with ties."""
    return [entry for entry in entries if entry["rank"] <= PODIUM_SIZE][:PODIUM_SIZE]
