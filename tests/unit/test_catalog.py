"""Badge catalog tests: seeding, self-healing and ordering."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ecolearn.database import get_session
from ecolearn.db.models import BadgeDefinition
from ecolearn.gamification.catalog import (
    catalog_seed,
    ensure_catalog_seeded,
    list_active_definitions,
)
from ecolearn.gamification.seed import BADGE_PRESETS, seed_badges

pytestmark = pytest.mark.asyncio


async def _badge_count(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(BadgeDefinition))
    return result.scalar_one()


class TestSeedBadges:
    async def test_seeds_all_presets(self, db_session: AsyncSession):
        assert await seed_badges(db_session) == len(BADGE_PRESETS)
        assert await _badge_count(db_session) == len(BADGE_PRESETS)

    async def test_idempotent(self, db_session: AsyncSession):
        await seed_badges(db_session)
        await seed_badges(db_session)
        assert await _badge_count(db_session) == len(BADGE_PRESETS)

    async def test_existing_row_keeps_fields_and_is_reactivated(self, db_session: AsyncSession):
        await seed_badges(db_session)
        await db_session.execute(
            update(BadgeDefinition)
            .where(BadgeDefinition.code == "ECO_GOLD")
            .values(name="Golden Leaf", threshold=650, is_active=False)
        )
        await db_session.commit()

        await seed_badges(db_session)
        db_session.expire_all()
        badge = (
            await db_session.execute(select(BadgeDefinition).where(BadgeDefinition.code == "ECO_GOLD"))
        ).scalar_one()
        assert badge.is_active is True
        assert badge.name == "Golden Leaf"
        assert badge.threshold == 650


class TestEnsureCatalogSeeded:
    async def test_seeds_empty_catalog(self, db_session: AsyncSession):
        await ensure_catalog_seeded()
        assert catalog_seed.done
        assert await _badge_count(db_session) == len(BADGE_PRESETS)

    async def test_concurrent_first_calls_share_one_seed(self, database, monkeypatch):
        calls = 0
        original = seed_badges

        async def counting_seed(db):
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return await original(db)

        monkeypatch.setattr("ecolearn.gamification.catalog.seed_badges", counting_seed)

        await asyncio.gather(*(ensure_catalog_seeded() for _ in range(5)))
        assert calls == 1

        sessions = get_session()
        session = await anext(sessions)
        assert await _badge_count(session) == len(BADGE_PRESETS)
        await sessions.aclose()

    async def test_seed_uses_its_own_session(self, db_session: AsyncSession, monkeypatch):
        seen: list[AsyncSession] = []
        original = seed_badges

        async def recording_seed(db):
            seen.append(db)
            return await original(db)

        monkeypatch.setattr("ecolearn.gamification.catalog.seed_badges", recording_seed)

        await list_active_definitions(db_session)
        assert len(seen) == 1
        assert seen[0] is not db_session

    async def test_cancelled_first_caller_does_not_break_seed(self, database, monkeypatch):
        gate = asyncio.Event()
        original = seed_badges

        async def gated_seed(db):
            await gate.wait()
            return await original(db)

        monkeypatch.setattr("ecolearn.gamification.catalog.seed_badges", gated_seed)

        first = asyncio.create_task(ensure_catalog_seeded())
        await asyncio.sleep(0)
        assert catalog_seed.in_flight

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first
        assert not catalog_seed.done

        gate.set()
        await ensure_catalog_seeded()
        assert catalog_seed.done

        sessions = get_session()
        session = await anext(sessions)
        assert await _badge_count(session) == len(BADGE_PRESETS)
        await sessions.aclose()

    async def test_failed_seed_is_retried(self, db_session: AsyncSession, monkeypatch):
        attempts = 0
        original = seed_badges

        async def flaky_seed(db):
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise RuntimeError("store down")
            return await original(db)

        monkeypatch.setattr("ecolearn.gamification.catalog.seed_badges", flaky_seed)

        with pytest.raises(RuntimeError):
            await ensure_catalog_seeded()
        assert not catalog_seed.done

        await ensure_catalog_seeded()
        assert catalog_seed.done
        assert attempts == 2


class TestListActiveDefinitions:
    async def test_sorted_with_order(self, db_session: AsyncSession):
        badges = await list_active_definitions(db_session)
        assert [b["code"] for b in badges] == [p["code"] for p in BADGE_PRESETS]
        assert [b["order"] for b in badges] == list(range(1, len(BADGE_PRESETS) + 1))
        thresholds = [b["threshold"] for b in badges]
        assert thresholds == sorted(thresholds) == [0, 100, 300, 600, 1000, 1500]

    async def test_inactive_badges_are_hidden(self, db_session: AsyncSession):
        await ensure_catalog_seeded()
        await db_session.execute(
            update(BadgeDefinition).where(BadgeDefinition.code == "CANOPY_SILVER").values(is_active=False)
        )
        await db_session.commit()

        badges = await list_active_definitions(db_session)
        assert "CANOPY_SILVER" not in {b["code"] for b in badges}
        assert [b["order"] for b in badges] == [1, 2, 3, 4, 5]

    async def test_custom_badge_is_ordered_by_threshold(self, db_session: AsyncSession):
        await ensure_catalog_seeded()
        db_session.add(BadgeDefinition(code="LEAF_LOVER", name="Leaf Lover", threshold=200))
        await db_session.commit()

        badges = await list_active_definitions(db_session)
        assert [b["code"] for b in badges][2] == "LEAF_LOVER"
        assert badges[2]["theme"] == "emerald"
