"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores build these from
rows; AuthService and the route layer consume them.

Layer rule: no imports from api/, core/, or chirps/.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A Chirpy account.

    hashed_password is the bcrypt string from auth.passwords. It is read only
    for login verification and never leaves the server.

    is_chirpy_red is the paid-tier flag, flipped by the Polka webhook.
    """

    email: str
    hashed_password: str
    id: uuid.UUID | None = None
    is_chirpy_red: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RefreshToken:
    """A persisted long-lived session credential.

    token is 64 hex chars from secrets.token_hex(32) (256 bits). It is the
    primary key and is stored as-is: its entropy is the protection, so there
    is nothing to gain from hashing it.

    revoked_at is None while the token is live. Once set it never changes.
    A token past expires_at is unusable even when revoked_at is None.
    """

    token: str
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None
