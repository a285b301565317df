"""
API request and response models for Chirpy REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
chirps/models.py, which own the internal domain representation. Route handlers
map between the two.

Password hashes never appear in any response model.
"""

import uuid
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from auth.models import User
from chirps.models import Chirp

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Request body for POST /api/users, PUT /api/users and POST /api/login."""

    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=255)]
    # Taken verbatim: leading/trailing spaces are part of the password.
    password: str = Field(max_length=1024, json_schema_extra={"format": "password"})


class LoginRequest(Credentials):
    pass


class UserCreate(Credentials):
    pass


class UserUpdate(Credentials):
    pass


class ChirpCreate(BaseModel):
    """Request body for POST /api/chirps. Length is checked by chirps.validation."""

    body: str


class WebhookData(BaseModel):
    user_id: uuid.UUID


class WebhookRequest(BaseModel):
    """Request body for POST /api/polka/webhooks."""

    event: str
    data: WebhookData


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public profile fields of a user."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    email: str
    is_chirpy_red: bool

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            created_at=user.created_at,
            updated_at=user.updated_at,
            email=user.email,
            is_chirpy_red=user.is_chirpy_red,
        )


class LoginResponse(UserResponse):
    """Profile plus a 1-hour access token and a 60-day refresh token."""

    token: str
    refresh_token: str


class RefreshResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


class ChirpResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    body: str
    user_id: uuid.UUID

    @classmethod
    def from_chirp(cls, chirp: Chirp) -> "ChirpResponse":
        return cls(
            id=chirp.id,
            created_at=chirp.created_at,
            updated_at=chirp.updated_at,
            body=chirp.body,
            user_id=chirp.user_id,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/healthz."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
