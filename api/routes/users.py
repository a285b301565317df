"""
api/routes/users.py -- Account endpoints.

Routes:
  POST /api/users  -- register {email, password}; 201
  PUT  /api/users  -- change own email and password (requires access token)

A credential change revokes every refresh token the user holds, so sessions
opened with the old password cannot keep minting access tokens.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import UserCreate, UserResponse, UserUpdate
from auth.dependencies import get_auth_service, get_current_user_id
from auth.models import User
from auth.passwords import hash_password
from auth.service import AuthService

logger = logging.getLogger("chirpy.api")

router = APIRouter()


def _email_taken() -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={"code": "conflict", "message": "A user with that email already exists."},
    )


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(body: UserCreate, auth: AuthService = Depends(get_auth_service)) -> UserResponse:
    """Register a new account."""
    try:
        user = auth.users.create_user(User(email=body.email, hashed_password=hash_password(body.password)))
    except IntegrityError as exc:
        raise _email_taken() from exc
    logger.info("user %s registered", user.id)
    return UserResponse.from_user(user)


@router.put("/users", response_model=UserResponse)
def update_user(
    request: Request,
    body: UserUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> UserResponse:
    """Replace the caller's email and password."""
    auth: AuthService = get_auth_service(request)
    try:
        user = auth.users.update_credentials(user_id, body.email, hash_password(body.password))
    except IntegrityError as exc:
        raise _email_taken() from exc
    if user is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    revoked = auth.refresh_tokens.revoke_all_for_user(user_id)
    logger.info("user %s changed credentials; %d refresh tokens revoked", user_id, revoked)
    return UserResponse.from_user(user)
