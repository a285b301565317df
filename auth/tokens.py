"""
auth/tokens.py -- Signed short-lived access tokens (JWT, HS256).

Access tokens are never persisted. The server rebuilds trust on every request
by checking the signature and the expiry embedded in the token.

Security design decisions:
  JWT: python-jose with HS256. The signing secret is passed in by the caller
       (AuthService holds it), never read from module state, so tests can
       use a different secret per case.

  Claims: iss, sub (user UUID), iat and exp as integer epoch seconds, and a
       random jti. The jti guarantees two tokens minted in the same second
       for the same user are still different strings.

  Validation order: structure -> signature -> expiry. Each stage raises its
       own error class (MalformedToken, InvalidSignature, ExpiredToken) so
       tests can pin the exact failure. The route layer collapses all of them
       into a single 401. The HMAC comparison inside python-jose uses
       hmac.compare_digest.

  Expiry: a token is expired once now >= exp. A ttl of zero or less mints a
       token that is already expired; that is not an error.

Layer rule: no imports from api/, core/, or chirps/.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jws, jwt
from jose.exceptions import JWSError

from auth.errors import ExpiredToken, InvalidSignature, MalformedToken

ALGORITHM = "HS256"
ISSUER = "chirpy"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_access_token(
    subject: uuid.UUID,
    secret: str,
    ttl: timedelta,
    now: datetime | None = None,
) -> str:
    """Encode a signed JWT for `subject` that expires `ttl` after `now`.

    Args:
        subject: User UUID stored as the sub claim.
        secret:  HMAC signing key.
        ttl:     Lifetime. Zero or negative produces an already-expired token.
        now:     Issue time. Defaults to the current UTC time.
    """
    issued_at = now or _utcnow()
    iat = math.floor(issued_at.timestamp())
    # Whole seconds on both claims. Rounding the lifetime up keeps exp > now
    # for any positive ttl, and exp <= now for ttl <= 0.
    payload = {
        "iss": ISSUER,
        "sub": str(subject),
        "iat": iat,
        "exp": iat + math.ceil(ttl.total_seconds()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def validate_access_token(token: str, secret: str, now: datetime | None = None) -> uuid.UUID:
    """Verify a JWT and return the user UUID it was issued for.

    Raises:
        MalformedToken:   empty input, wrong segment count, undecodable
                          segments, or missing/invalid sub or exp claims.
        InvalidSignature: signature does not match `secret`, or the header
                          names an algorithm other than HS256.
        ExpiredToken:     now >= exp.
    """
    if not isinstance(token, str) or token.count(".") != 2 or not all(token.split(".")):
        raise MalformedToken("token must have three non-empty segments")

    try:
        jwt.get_unverified_header(token)
        claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise MalformedToken(str(exc)) from exc

    try:
        subject = uuid.UUID(str(claims["sub"]))
    except (KeyError, ValueError) as exc:
        raise MalformedToken("sub claim is missing or not a UUID") from exc

    expires_at = claims.get("exp")
    if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        raise MalformedToken("exp claim is missing or not numeric")

    try:
        jws.verify(token, secret, algorithms=[ALGORITHM])
    except JWSError as exc:
        raise InvalidSignature(str(exc)) from exc

    current = now or _utcnow()
    if current.timestamp() >= expires_at:
        raise ExpiredToken("access token has expired")

    return subject
