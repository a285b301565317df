"""
auth/service.py -- The user-facing auth flows: login, refresh, revoke.

AuthService composes the leaf components:

  login    -> verify_password -> make_access_token + RefreshTokenStore.issue
  refresh  -> get_bearer_token -> RefreshTokenStore.lookup -> is_usable
              -> make_access_token
  revoke   -> get_bearer_token -> RefreshTokenStore.revoke
  authorize / authorize_api_key -> header extraction + validation

Every failure a caller can observe is Unauthorized. The root cause (unknown
email, bad hash, expired token, ...) is logged here and never returned, so
responses do not reveal which part of a credential was wrong.

The signing secret and the webhook API key are constructor arguments. Tests
build an AuthService per case with whatever secrets and clock they need.

Layer rule: no imports from api/, core/, or chirps/.
"""

from __future__ import annotations

import hmac
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from auth.credentials import get_api_key, get_bearer_token
from auth.errors import (
    HeaderError,
    InvalidCredential,
    MalformedHash,
    MalformedToken,
    RefreshTokenNotFound,
    Unauthorized,
)
from auth.models import RefreshToken, User
from auth.passwords import DUMMY_HASH, verify_password
from auth.store import RefreshTokenStore, UserStore
from auth.tokens import make_access_token, validate_access_token

logger = logging.getLogger("chirpy.auth")

ACCESS_TOKEN_TTL = timedelta(hours=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_usable(record: RefreshToken, now: datetime) -> bool:
    """Return True if a refresh token may still mint access tokens.

    A token is unusable once now >= expires_at, or once revoked_at is set.
    """
    if record.revoked_at is not None:
        return False
    return now < record.expires_at


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


class AuthService:
    def __init__(
        self,
        users: UserStore,
        refresh_tokens: RefreshTokenStore,
        secret: str,
        api_key: str = "",
        access_token_ttl: timedelta = ACCESS_TOKEN_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.users = users
        self.refresh_tokens = refresh_tokens
        self._secret = secret
        self._api_key = api_key
        self.access_token_ttl = access_token_ttl
        self._clock = clock

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> LoginResult:
        """Check an email/password pair and open a new session.

        Unknown emails still pay for one bcrypt check (against DUMMY_HASH)
        so login latency does not reveal which emails are registered.
        """
        user = self.users.get_by_email(email)
        if user is None:
            verify_password(password, DUMMY_HASH)
            logger.info("login rejected: unknown email")
            raise Unauthorized("incorrect email or password")

        try:
            matched = verify_password(password, user.hashed_password)
        except MalformedHash:
            logger.warning("login rejected: stored hash for user %s is malformed", user.id)
            raise Unauthorized("incorrect email or password") from None
        if not matched:
            logger.info("login rejected: wrong password for user %s", user.id)
            raise Unauthorized("incorrect email or password")

        access_token = self.mint_access_token(user.id)
        refresh_token = self.refresh_tokens.issue(user.id)
        logger.info("login ok for user %s", user.id)
        return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)

    def refresh(self, headers: Mapping[str, str]) -> str:
        """Mint a fresh access token from a bearer refresh token.

        The refresh token is not rotated; it stays valid until it expires or
        is revoked.
        """
        token = self._bearer(headers)
        try:
            record = self.refresh_tokens.lookup(token)
        except RefreshTokenNotFound:
            logger.info("refresh rejected: unknown token")
            raise Unauthorized("invalid refresh token") from None

        if not is_usable(record, self._clock()):
            reason = "revoked" if record.revoked_at is not None else "expired"
            logger.info("refresh rejected: token %s for user %s", reason, record.user_id)
            raise Unauthorized("invalid refresh token")

        return self.mint_access_token(record.user_id)

    def revoke(self, headers: Mapping[str, str]) -> None:
        """Revoke the bearer refresh token.

        Succeeds whether or not the token exists, so the response does not
        confirm which tokens are real. Only a missing or malformed header is
        reported, as Unauthorized.
        """
        token = self._bearer(headers)
        try:
            self.refresh_tokens.revoke(token)
        except RefreshTokenNotFound:
            logger.debug("revoke of unknown refresh token ignored")

    def authorize(self, headers: Mapping[str, str]) -> uuid.UUID:
        """Return the user id behind a bearer access token."""
        token = self._bearer(headers)
        try:
            return validate_access_token(token, self._secret, now=self._clock())
        except (MalformedToken, InvalidCredential) as exc:
            logger.info("access token rejected: %s", type(exc).__name__)
            raise Unauthorized("invalid access token") from None

    def authorize_api_key(self, headers: Mapping[str, str]) -> None:
        """Check the 'Authorization: ApiKey <key>' header against the configured key."""
        try:
            presented = get_api_key(headers)
        except HeaderError as exc:
            logger.info("api key rejected: %s", type(exc).__name__)
            raise Unauthorized("invalid api key") from None
        if not self._api_key or not hmac.compare_digest(presented.encode(), self._api_key.encode()):
            logger.info("api key rejected: mismatch")
            raise Unauthorized("invalid api key")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def mint_access_token(self, user_id: uuid.UUID) -> str:
        return make_access_token(user_id, self._secret, self.access_token_ttl, now=self._clock())

    def _bearer(self, headers: Mapping[str, str]) -> str:
        try:
            return get_bearer_token(headers)
        except HeaderError as exc:
            logger.info("bearer token rejected: %s", type(exc).__name__)
            raise Unauthorized("missing or malformed authorization header") from None
