"""Health endpoint tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    """GET /health returns 200 with healthy status."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_readiness_without_redis(client: AsyncClient) -> None:
    """GET /ready checks the database and reports Redis as disabled when not initialized."""
    await client.get("/api/v1/leaderboard/badges")

    response = await client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["components"]["database"]["status"] == "ok"
    assert data["components"]["database"]["latency_ms"] >= 0
    assert data["components"]["redis"] == {"status": "disabled"}
    assert data["badge_definitions"] == 6
    assert data["uptime_seconds"] >= 0


@pytest.mark.asyncio
async def test_readiness_with_redis(client: AsyncClient, monkeypatch) -> None:
    """GET /ready is ready when both the database and Redis answer."""

    async def fake_ping() -> float:
        return 0.4

    monkeypatch.setattr("ecolearn.health.router.ping_redis", fake_ping)
    response = await client.get("/ready")
    data = response.json()
    assert data["status"] == "ready"
    assert data["components"]["redis"] == {"status": "ok", "latency_ms": 0.4}


@pytest.mark.asyncio
async def test_version(client: AsyncClient) -> None:
    """GET /version returns version and environment."""
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == "0.1.0"
    assert data["environment"] == "development"
