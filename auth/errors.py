"""
auth/errors.py -- Closed error taxonomy for the auth package.

Every failure an auth operation can report is one of these classes. Callers
branch on the family, not on message text:

  MalformedInput     -- bad hash string, bad header, bad token structure.
                        Client error, never retried.
  InvalidCredential  -- wrong password, bad signature, expired token,
                        expired/revoked refresh token. Always surfaced to
                        clients as a uniform 401.
  NotFound           -- unknown refresh token. Internal distinction only.
  ConfigurationError -- missing or weak signing secret. Fatal at startup.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for per-request auth failures."""


# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------


class MalformedInput(AuthError):
    pass


class MalformedHash(MalformedInput):
    """The stored password hash is not a parseable bcrypt string."""


class MalformedToken(MalformedInput):
    """The access token is not a structurally valid signed token."""


class HeaderError(MalformedInput):
    pass


class MissingHeader(HeaderError):
    """No Authorization header on the request (bearer scheme expected)."""


class MalformedHeader(HeaderError):
    """Authorization header present but not 'Bearer <token>'."""


class MissingApiKey(HeaderError):
    """No Authorization header on the request (ApiKey scheme expected)."""


class MalformedApiKey(HeaderError):
    """Authorization header present but not 'ApiKey <key>'."""


# ---------------------------------------------------------------------------
# Invalid credentials
# ---------------------------------------------------------------------------


class InvalidCredential(AuthError):
    pass


class InvalidSignature(InvalidCredential):
    pass


class ExpiredToken(InvalidCredential):
    pass


class Unauthorized(InvalidCredential):
    """The single outcome AuthService reports for any failed auth flow."""


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class NotFound(AuthError):
    pass


class RefreshTokenNotFound(NotFound):
    pass


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


class ConfigurationError(Exception):
    """Raised once at startup when settings cannot be loaded."""
