"""Middleware registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ecolearn.config import Settings
from ecolearn.middleware.error_handler import setup_error_handlers
from ecolearn.middleware.logging import setup_logging
from ecolearn.middleware.rate_limit import RateLimitMiddleware
from ecolearn.middleware.request_context import RequestContextMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and the middleware stack.

    Starlette runs middleware in reverse-add order, so the stack is
    CORS -> request context -> rate limit -> routes. The rate limiter's 429
    responses therefore still carry CORS and request-id headers.
    """
    setup_logging(settings)
    setup_error_handlers(app)

    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            requests_per_window=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"],
    )
