"""Redis-backed fixed window rate limiting middleware."""

import time
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ecolearn.redis_client import get_redis

logger = structlog.get_logger()

_EXEMPT_PATHS = frozenset({"/health", "/ready"})


def client_address(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Limit leaderboard reads per client address.

    Counters live in Redis, one key per address and window. When Redis is
    not initialized or not reachable, requests are served unlimited.
    """

    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    def _limit_headers(self, remaining: int) -> dict[str, str]:
        return {
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Limit": str(self.requests_per_window),
        }

    async def _hit(self, key: str) -> int | None:
        """Increment the window counter; None when limiting is unavailable."""
        try:
            redis = get_redis()
        except RuntimeError:
            return None
        try:
            pipe = redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except (RedisError, OSError) as exc:
            logger.warning("rate_limit_unavailable", error=str(exc))
            return None
        return int(results[0])

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        window = int(time.time()) // self.window_seconds
        count = await self._hit(f"ecolearn:ratelimit:{client_address(request)}:{window}")
        if count is None:
            return await call_next(request)

        if count > self.requests_per_window:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": str(self.window_seconds), **self._limit_headers(0)},
            )

        response = await call_next(request)
        response.headers.update(self._limit_headers(max(0, self.requests_per_window - count)))
        return response
