"""
auth/credentials.py -- Pull credentials out of request headers.

Two schemes share the Authorization header:
  Authorization: Bearer <token>   -- access tokens and refresh tokens
  Authorization: ApiKey <key>     -- the webhook API key

The scheme keyword match is case-sensitive. The header name lookup is not:
Starlette's Headers object is already case-insensitive, and plain dicts (used
in tests and scripts) are scanned by lowercased key.

Stateless. Nothing here validates the credential itself.
"""

from __future__ import annotations

from collections.abc import Mapping

from auth.errors import MalformedApiKey, MalformedHeader, MissingApiKey, MissingHeader

BEARER_PREFIX = "Bearer "
API_KEY_PREFIX = "ApiKey "


def _authorization(headers: Mapping[str, str]) -> str | None:
    value = headers.get("Authorization")
    if value is None:
        value = next((v for k, v in headers.items() if k.lower() == "authorization"), None)
    return value


def _strip_scheme(value: str, prefix: str) -> str | None:
    if not value.startswith(prefix):
        return None
    return value[len(prefix) :].strip() or None


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """Return the token from an 'Authorization: Bearer <token>' header.

    Raises MissingHeader when there is no Authorization header, and
    MalformedHeader when the scheme is not Bearer or the token is empty.
    """
    value = _authorization(headers)
    if value is None:
        raise MissingHeader("authorization header is missing")
    token = _strip_scheme(value, BEARER_PREFIX)
    if token is None:
        raise MalformedHeader("authorization header is not a bearer token")
    return token


def get_api_key(headers: Mapping[str, str]) -> str:
    """Return the key from an 'Authorization: ApiKey <key>' header."""
    value = _authorization(headers)
    if value is None:
        raise MissingApiKey("authorization header is missing")
    key = _strip_scheme(value, API_KEY_PREFIX)
    if key is None:
        raise MalformedApiKey("authorization header is not an api key")
    return key
