"""
auth/passwords.py -- One-way password hashing with bcrypt.

Hash format: bcrypt's modular-crypt string, "$2b$<cost>$<22-char salt><31-char
digest>". The algorithm tag, cost factor and salt travel inside the hash, so
verify_password() needs nothing but the stored string.

bcrypt only looks at the first 72 bytes of its input and bcrypt 5.x rejects
longer input outright. Every password is therefore reduced to a base64 SHA-256
digest (44 bytes) before it reaches bcrypt. The reduction applies to every
input, so empty strings, long passphrases and arbitrary Unicode all take the
same path.

Layer rule: no imports from api/, core/, or chirps/.
"""

from __future__ import annotations

import base64
import hashlib
import re

import bcrypt

from auth.errors import MalformedHash

_BCRYPT_RE = re.compile(r"^\$2[abxy]\$\d{2}\$[./A-Za-z0-9]{53}$")


def _prepare(password: str | bytes) -> bytes:
    if isinstance(password, str):
        password = password.encode("utf-8")
    return base64.b64encode(hashlib.sha256(password).digest())


def hash_password(password: str | bytes) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    A fresh salt is generated on every call, so hashing the same password
    twice never yields the same string.
    """
    return bcrypt.hashpw(_prepare(password), bcrypt.gensalt()).decode("ascii")


def verify_password(password: str | bytes, hashed: str) -> bool:
    """Return True if the plaintext password matches the stored hash.

    Raises MalformedHash when `hashed` is not a bcrypt string. That is a data
    problem, not a wrong password, and callers can tell the two apart.
    """
    if not isinstance(hashed, str) or not _BCRYPT_RE.match(hashed):
        raise MalformedHash("stored password hash is not a bcrypt string")
    try:
        return bcrypt.checkpw(_prepare(password), hashed.encode("ascii"))
    except ValueError as exc:
        raise MalformedHash(str(exc)) from exc


# Timing equalization: login runs verify_password() against this hash when the
# email is unknown, so response time does not reveal which emails exist.
DUMMY_HASH: str = hash_password("chirpy_timing_dummy")
