"""Global error handlers — every failure is a JSON body with a ``detail`` key."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


def _error(status_code: int, detail: Any, headers: dict[str, str] | None = None, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, **extra}, headers=headers)


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        # Leaderboard query values are normalized, so this only guards future endpoints
        return _error(422, "Validation error", errors=exc.errors())

    @app.exception_handler(DBAPIError)
    async def store_exception_handler(_request: Request, exc: DBAPIError) -> JSONResponse:
        """The score or badge store failed; no partial leaderboard is returned."""
        logger.error(
            "data_store_error",
            error_type=type(exc.orig).__name__ if exc.orig is not None else type(exc).__name__,
            connection_invalidated=exc.connection_invalidated,
            exc_info=exc,
        )
        return _error(503, "Data store unavailable", headers={"Retry-After": "5"})

    @app.exception_handler(Exception)
    async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions — always return JSON."""
        logger.error("unhandled_exception", error=str(exc), exc_info=exc)
        return _error(500, "Internal server error")
