"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two request credentials are recognised:
  1. Authorization: Bearer <access token>  -- any endpoint acting as a user.
  2. Authorization: ApiKey <key>           -- the Polka webhook only.

Both resolve through the AuthService stored on app.state.auth, which holds the
signing secret and the API key. Failures become HTTP 401 with the same body
regardless of cause.

Layer rule: auth/dependencies.py may import from fastapi (for Request and
HTTPException) because it is part of the FastAPI dependency injection system.
It does not import from api/, core/, or chirps/.
"""

from __future__ import annotations

import uuid

from fastapi import HTTPException, Request

from auth.errors import Unauthorized
from auth.service import AuthService


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": "unauthorized", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def get_current_user_id(request: Request) -> uuid.UUID:
    """Require a valid bearer access token. Returns the caller's user id.

    Use as a FastAPI dependency:
        @router.post("/chirps")
        def route(user_id: uuid.UUID = Depends(get_current_user_id)): ...
    """
    try:
        return get_auth_service(request).authorize(request.headers)
    except Unauthorized as exc:
        raise _unauthorized("Authentication required.") from exc


def require_api_key(request: Request) -> None:
    """Require 'Authorization: ApiKey <key>' matching the configured Polka key."""
    try:
        get_auth_service(request).authorize_api_key(request.headers)
    except Unauthorized as exc:
        raise _unauthorized("Invalid API key.") from exc
