"""
api/main.py -- FastAPI application entry point for tenant-auth.

Thin HTTP transport over AuthService. All business rules live in auth/;
this module only wires the service into app.state, maps the auth error
taxonomy onto status codes, and logs requests.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Lifespan builds Storage + AuthService on startup via core/app.py and closes
the storage on shutdown. A StartupError propagates out of the lifespan so
the server refuses to start with a broken database.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.errors import AuthError
from core.app import build_auth_service
from core.config import get_settings
from core.log import setup_logging

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

setup_logging(get_settings().log_level)
logger = logging.getLogger("tenantauth.api")

# ---------------------------------------------------------------------------
# Error taxonomy -> HTTP status
# ---------------------------------------------------------------------------

_STATUS_BY_CODE: dict[str, int] = {
    "invalid_credentials": 401,
    "invalid_app_id": 400,
    "user_exists": 409,
    "user_not_found": 404,
    "internal_error": 500,
}


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the auth service on startup, release storage on shutdown."""
    settings = get_settings()
    logger.info("tenant-auth API starting up")
    service, storage = build_auth_service(settings)
    app.state.auth_service = service
    app.state.storage = storage
    app.state.storage_timeout = settings.storage_timeout_seconds

    yield

    app.state.storage.close()
    logger.info("tenant-auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="tenant-auth API",
    description="User registration, login and per-application access token issuance.",
    version=__version__,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render an AuthService error. Only the kind's fixed message is sent;
    the chained cause stays in the server log written by the service.
    """
    return JSONResponse(
        status_code=_STATUS_BY_CODE.get(exc.code, 500),
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or path params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str([{"loc": e.get("loc"), "msg": e.get("msg")} for e in exc.errors()]),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and whether the database answers."""
    db_ok = request.app.state.storage.ping()
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=__version__,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
