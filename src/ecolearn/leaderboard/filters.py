"""Query normalization for leaderboard filters.

Filters are advisory: anything malformed falls back to a safe default
instead of being rejected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

GRADE_PATTERN = re.compile(r"^(?:[1-9]|1[0-2])$")

DEFAULT_LIMIT = 20
MIN_LIMIT = 5
MAX_LIMIT = 100

# Keys are BIGINT columns
MAX_ID = 2**63 - 1


@dataclass(frozen=True)
class LeaderboardFilter:
    """School/grade restriction shared by every score query of one request."""

    school_id: int | None = None
    grade: str | None = None


def parse_grade(value: object) -> str | None:
    """Return a grade token "1".."12", or None for "all"/invalid/missing."""
    if value is None:
        return None
    raw = str(value).strip()
    if not raw or raw.lower() == "all":
        return None
    return raw if GRADE_PATTERN.match(raw) else None


def parse_limit(value: object) -> int:
    """Parse a page size, defaulting to 20 and clamping to [5, 100]."""
    try:
        numeric = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    if numeric <= 0:
        return DEFAULT_LIMIT
    return min(max(numeric, MIN_LIMIT), MAX_LIMIT)


def parse_id(value: object) -> int | None:
    """Return a positive integer key, or None if the value is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 < value <= MAX_ID else None
    raw = str(value).strip()
    if not (raw.isascii() and raw.isdigit()):
        return None
    numeric = int(raw)
    return numeric if 0 < numeric <= MAX_ID else None


def is_valid_grade(value: object) -> bool:
    return isinstance(value, str) and bool(GRADE_PATTERN.match(value.strip()))
