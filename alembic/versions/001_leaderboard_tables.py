"""Leaderboard and badge tables.

Creates schools, users, user_scores, point_transactions,
badge_definitions and badge_awards.

Revision ID: 001_leaderboard_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_leaderboard_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Platform tables (owned by the wider platform, created if missing) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS schools (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            code VARCHAR(16) UNIQUE NOT NULL,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            avatar_url TEXT,
            role VARCHAR(16) NOT NULL DEFAULT 'student',
            grade VARCHAR(8),
            school_id BIGINT REFERENCES schools(id) ON DELETE SET NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # --- User Scores ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_scores (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            school_id BIGINT REFERENCES schools(id) ON DELETE SET NULL,
            grade VARCHAR(8),
            total_points INTEGER NOT NULL DEFAULT 0,
            last_updated_at TIMESTAMPTZ DEFAULT NOW(),
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_scores_school_points
        ON user_scores(school_id, total_points DESC)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_scores_grade_points
        ON user_scores(grade, total_points DESC)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_scores_points
        ON user_scores(total_points DESC, last_updated_at ASC)
    """)

    # --- Point Ledger ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS point_transactions (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            school_id BIGINT REFERENCES schools(id) ON DELETE SET NULL,
            amount INTEGER NOT NULL,
            reason VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            idempotency_key VARCHAR(256) UNIQUE,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_point_transactions_user
        ON point_transactions(user_id, created_at DESC)
    """)

    # --- Badge Definitions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badge_definitions (
            id SERIAL PRIMARY KEY,
            code VARCHAR(64) UNIQUE NOT NULL,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            threshold INTEGER NOT NULL,
            icon VARCHAR(32) NOT NULL DEFAULT '',
            theme VARCHAR(32) NOT NULL DEFAULT 'emerald',
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # --- Badge Awards ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badge_awards (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id INTEGER NOT NULL REFERENCES badge_definitions(id),
            points_at_award INTEGER NOT NULL DEFAULT 0,
            awarded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT badge_awards_user_id_badge_id_key UNIQUE (user_id, badge_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_badge_awards_user
        ON badge_awards(user_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS badge_awards CASCADE")
    op.execute("DROP TABLE IF EXISTS badge_definitions CASCADE")
    op.execute("DROP TABLE IF EXISTS point_transactions CASCADE")
    op.execute("DROP TABLE IF EXISTS user_scores CASCADE")
