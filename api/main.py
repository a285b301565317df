"""
api/main.py -- FastAPI application entry point for Chirpy.

Run with:  uvicorn asgi:app --reload

Middleware (outermost to innermost):
  1. log_requests     -- method, path, status, latency per request
  2. count_app_hits   -- increments the /app file server hit counter

Lifespan builds the stores and the AuthService at startup and closes them on
shutdown. Settings are loaded exactly once; a bad configuration stops the
server before it accepts any request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.auth import router as auth_router
from api.routes.chirps import router as chirps_router
from api.routes.users import router as users_router
from api.routes.webhooks import router as webhooks_router
from auth.errors import InvalidCredential
from auth.service import AuthService
from auth.store import RefreshTokenStore, UserStore
from chirps.store import ChirpStore
from core.config import get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("chirpy.api")

settings = get_settings()

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Delete expired refresh tokens every 6 hours.

    purge_expired() is blocking SQL, so it runs in a worker thread.
    CancelledError from task.cancel() during shutdown unwinds the loop.
    """
    while True:
        await asyncio.sleep(6 * 60 * 60)
        removed = await asyncio.to_thread(app.state.auth.refresh_tokens.purge_expired)
        logger.info("Purged %d expired refresh tokens", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build stores and the AuthService on startup; close them on shutdown."""
    logger.info("Chirpy API starting up (platform=%s)", settings.platform)
    users = UserStore(settings.db_url)
    refresh_tokens = RefreshTokenStore(
        settings.db_url,
        lifetime=timedelta(days=settings.refresh_token_expire_days),
    )
    app.state.settings = settings
    app.state.auth = AuthService(
        users,
        refresh_tokens,
        secret=settings.jwt_secret,
        api_key=settings.polka_key,
        access_token_ttl=timedelta(seconds=settings.access_token_expire_seconds),
    )
    app.state.chirps = ChirpStore(settings.db_url)
    app.state.fileserver_hits = 0
    if not settings.polka_key:
        logger.warning("POLKA_KEY is not set -- all webhook calls will be rejected")
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    app.state.purge_task.cancel()
    app.state.chirps.close()
    app.state.auth.refresh_tokens.close()
    app.state.auth.users.close()
    logger.info("Chirpy API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Chirpy API",
    description="Short posts, accounts, and session tokens.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
#
# @app.middleware registrations wrap outward: the last one registered is the
# first to see the request, so log_requests is registered last.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def count_app_hits(request: Request, call_next):
    """Count every request to the /app file server for /admin/metrics."""
    if request.url.path.startswith("/app"):
        request.app.state.fileserver_hits += 1
    return await call_next(request)


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

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(users_router, prefix="/api", tags=["Users"])
app.include_router(chirps_router, prefix="/api", tags=["Chirps"])
app.include_router(webhooks_router, prefix="/api", tags=["Webhooks"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])

app.mount("/app", StaticFiles(directory=settings.static_dir, html=True, check_dir=False), name="app")


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error body is {"error": {"code", "message", "detail"?}}.
# ---------------------------------------------------------------------------


def _error_response(
    status_code: int,
    code: str,
    message: str,
    detail: Optional[str] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(InvalidCredential)
async def invalid_credential_handler(request: Request, exc: InvalidCredential) -> JSONResponse:
    """Every auth failure that reaches this point is a plain 401.

    The exception message is not echoed: it may say why the credential was
    rejected, and clients must not learn that.
    """
    return _error_response(401, "unauthorized", "Authentication required.", headers={"WWW-Authenticate": "Bearer"})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(422, "validation_error", "Request validation failed.", detail=str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap HTTP exceptions, including router 404s, in the error envelope.

    Routes raise with detail={"code": ..., "message": ...}; that dict becomes
    the error field as-is. Plain string details get a generic http_<status> code.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback; the client only sees a generic 500."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is reachable regardless of router
# registration state.
# ---------------------------------------------------------------------------


@app.get("/api/healthz", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
