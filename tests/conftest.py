"""
tests/conftest.py -- Shared test fixtures for Chirpy.

This module provides:
  - FakeClock: a settable clock injected into stores and AuthService
  - shared_db_url(): a unique named shared-memory SQLite URL
  - auth_service: AuthService over fresh in-memory stores, with a fake clock
  - api_client: TestClient with a patched lifespan and isolated stores

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because UserStore, RefreshTokenStore and ChirpStore each own an engine, and
TestClient runs sync route handlers in a thread pool. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory database
across every connection in the process.

DEBUG, PLATFORM and POLKA_KEY must be set before api.main is imported, because
api.main loads settings at import time.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

# CRITICAL: set before any api/core import so get_settings() can
# auto-generate JWT_SECRET in dev mode instead of raising.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("PLATFORM", "dev")
os.environ.setdefault("POLKA_KEY", "f271c81ff7084ee5b99a5091b42d486e")
os.environ.setdefault("STATIC_DIR", str(Path(__file__).resolve().parent.parent / "static"))

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import RefreshTokenStore, UserStore
from chirps.store import ChirpStore
from core.config import get_settings

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
POLKA_KEY = os.environ["POLKA_KEY"]


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def shared_db_url(prefix: str) -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stores(clock: FakeClock) -> Generator[tuple[UserStore, RefreshTokenStore], None, None]:
    db_url = shared_db_url("test_auth")
    users = UserStore(db_url, clock=clock)
    refresh_tokens = RefreshTokenStore(db_url, clock=clock)
    yield users, refresh_tokens
    refresh_tokens.close()
    users.close()


@pytest.fixture
def auth_service(stores: tuple[UserStore, RefreshTokenStore], clock: FakeClock) -> AuthService:
    users, refresh_tokens = stores
    return AuthService(users, refresh_tokens, secret=TEST_SECRET, api_key=POLKA_KEY, clock=clock)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(auth: AuthService, chirps: ChirpStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database.

    The purge_task is a long-sleeping coroutine (a real asyncio.Task is
    required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = get_settings()
        app.state.auth = auth
        app.state.chirps = chirps
        app.state.fileserver_hits = 0
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, AuthService], None, None]:
    """Yield (client, auth) for API integration tests.

    auth is the AuthService the routes use, signed with the configured
    JWT_SECRET and using the real clock. Tests reach its stores to seed or
    inspect data.
    """
    db_url = shared_db_url("test_api")
    users = UserStore(db_url)
    refresh_tokens = RefreshTokenStore(db_url)
    chirps = ChirpStore(db_url)
    settings = get_settings()
    auth = AuthService(users, refresh_tokens, secret=settings.jwt_secret, api_key=settings.polka_key)

    app.router.lifespan_context = _patch_lifespan(auth, chirps)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, auth

    chirps.close()
    refresh_tokens.close()
    users.close()


def register_and_login(client: TestClient, email: str, password: str = "04234") -> dict:
    """Create a user through the API and return the login response body."""
    resp = client.post("/api/users", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
