"""Redis client for the request rate limiter.

Redis is optional: when it was never initialized the rate limiter lets
requests through and the readiness probe reports it as unavailable.
"""

import time

import redis.asyncio as redis

_pool: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50, socket_timeout: float | None = None) -> None:
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Return the shared client; raises RuntimeError before init_redis()."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


async def ping_redis() -> float:
    """PING the server; returns the latency in milliseconds."""
    client = get_redis()
    start = time.perf_counter()
    await client.ping()
    return round((time.perf_counter() - start) * 1000, 2)
