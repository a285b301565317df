"""Unit tests for auth/tokens.py -- signed access tokens.

Covers:
- make_access_token() output shape and claims (sub, iat, exp as epoch ints)
- validate_access_token() round trip returns the subject
- Expiry: ttl <= 0 is already expired; now >= exp is expired
- Wrong secret -> InvalidSignature, even for well-formed unexpired tokens
- Structural problems -> MalformedToken
- Tokens minted back to back are never identical
"""

from __future__ import annotations

import base64
import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import ExpiredToken, InvalidCredential, InvalidSignature, MalformedToken
from auth.tokens import ALGORITHM, make_access_token, validate_access_token

SECRET = "test_secret_for_tokens_0123456789abcdef"
WRONG_SECRET = "wrong_secret_for_tokens_0123456789abcdef"
NOW = datetime(2026, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


class TestMakeAccessToken:
    def test_three_segments(self) -> None:
        token = make_access_token(uuid.uuid4(), SECRET, timedelta(hours=1))
        assert token.count(".") == 2
        assert all(token.split("."))

    def test_claims(self) -> None:
        user_id = uuid.uuid4()
        token = make_access_token(user_id, SECRET, timedelta(hours=1), now=NOW)
        claims = jwt.get_unverified_claims(token)
        assert claims["sub"] == str(user_id)
        assert claims["iss"] == "chirpy"
        assert claims["iat"] == int(NOW.timestamp())
        assert claims["exp"] - claims["iat"] == 3600
        assert jwt.get_unverified_header(token)["alg"] == ALGORITHM

    @pytest.mark.parametrize("ttl", [timedelta(0), timedelta(hours=-1)])
    def test_non_positive_ttl_is_not_an_error(self, ttl: timedelta) -> None:
        assert make_access_token(uuid.uuid4(), SECRET, ttl)

    def test_tokens_are_unique(self) -> None:
        user_id = uuid.uuid4()
        first = make_access_token(user_id, SECRET, timedelta(hours=1), now=NOW)
        second = make_access_token(user_id, SECRET, timedelta(hours=1), now=NOW)
        assert first != second

    def test_different_users_get_different_tokens(self) -> None:
        assert make_access_token(uuid.uuid4(), SECRET, timedelta(hours=1), now=NOW) != make_access_token(
            uuid.uuid4(), SECRET, timedelta(hours=1), now=NOW
        )


class TestValidateAccessToken:
    def test_round_trip(self) -> None:
        user_id = uuid.uuid4()
        token = make_access_token(user_id, SECRET, timedelta(hours=1))
        assert validate_access_token(token, SECRET) == user_id

    def test_round_trip_with_fixed_clock(self) -> None:
        user_id = uuid.uuid4()
        token = make_access_token(user_id, SECRET, timedelta(hours=1), now=NOW)
        assert validate_access_token(token, SECRET, now=NOW + timedelta(minutes=59)) == user_id

    @pytest.mark.parametrize("ttl", [timedelta(0), timedelta(seconds=-1), timedelta(hours=-1)])
    def test_non_positive_ttl_is_expired(self, ttl: timedelta) -> None:
        token = make_access_token(uuid.uuid4(), SECRET, ttl, now=NOW)
        with pytest.raises(ExpiredToken):
            validate_access_token(token, SECRET, now=NOW)

    def test_expired_exactly_at_exp(self) -> None:
        token = make_access_token(uuid.uuid4(), SECRET, timedelta(hours=1), now=NOW)
        with pytest.raises(ExpiredToken):
            validate_access_token(token, SECRET, now=NOW + timedelta(hours=1))

    def test_subsecond_ttl_is_valid_when_minted(self) -> None:
        user_id = uuid.uuid4()
        now = NOW.replace(microsecond=200_000)
        token = make_access_token(user_id, SECRET, timedelta(milliseconds=500), now=now)
        assert validate_access_token(token, SECRET, now=now) == user_id

    def test_zero_ttl_with_fractional_now_is_expired(self) -> None:
        now = NOW.replace(microsecond=900_000)
        token = make_access_token(uuid.uuid4(), SECRET, timedelta(0), now=now)
        with pytest.raises(ExpiredToken):
            validate_access_token(token, SECRET, now=now)

    def test_fractional_now_keeps_whole_hour_lifetime(self) -> None:
        token = make_access_token(uuid.uuid4(), SECRET, timedelta(hours=1), now=NOW.replace(microsecond=750_000))
        claims = jwt.get_unverified_claims(token)
        assert claims["exp"] - claims["iat"] == 3600

    def test_wrong_secret(self) -> None:
        token = make_access_token(uuid.uuid4(), SECRET, timedelta(hours=1))
        with pytest.raises(InvalidSignature):
            validate_access_token(token, WRONG_SECRET)

    def test_token_signed_with_other_secret(self) -> None:
        token = make_access_token(uuid.uuid4(), WRONG_SECRET, timedelta(hours=1))
        with pytest.raises(InvalidSignature):
            validate_access_token(token, SECRET)

    def test_tampered_payload(self) -> None:
        token = make_access_token(uuid.uuid4(), SECRET, timedelta(hours=1), now=NOW)
        header, _, signature = token.split(".")
        forged = _b64({"sub": str(uuid.uuid4()), "iat": 0, "exp": 4102444800})
        with pytest.raises(InvalidSignature):
            validate_access_token(f"{header}.{forged}.{signature}", SECRET, now=NOW)

    def test_none_algorithm_rejected(self) -> None:
        header = _b64({"alg": "none", "typ": "JWT"})
        payload = _b64({"sub": str(uuid.uuid4()), "exp": 4102444800})
        with pytest.raises(InvalidSignature):
            validate_access_token(f"{header}.{payload}.c2ln", SECRET, now=NOW)

    @pytest.mark.parametrize(
        "token",
        [
            "",
            "abc",
            "a.b",
            "a.b.c.d",
            "invalid.token.format",
            "..",
        ],
    )
    def test_malformed(self, token: str) -> None:
        with pytest.raises(MalformedToken):
            validate_access_token(token, SECRET)

    def test_missing_subject_is_malformed(self) -> None:
        token = jwt.encode({"exp": 4102444800}, SECRET, algorithm=ALGORITHM)
        with pytest.raises(MalformedToken):
            validate_access_token(token, SECRET, now=NOW)

    def test_non_uuid_subject_is_malformed(self) -> None:
        token = jwt.encode({"sub": "alice", "exp": 4102444800}, SECRET, algorithm=ALGORITHM)
        with pytest.raises(MalformedToken):
            validate_access_token(token, SECRET, now=NOW)

    def test_missing_exp_is_malformed(self) -> None:
        token = jwt.encode({"sub": str(uuid.uuid4())}, SECRET, algorithm=ALGORITHM)
        with pytest.raises(MalformedToken):
            validate_access_token(token, SECRET, now=NOW)

    def test_signature_and_expiry_failures_are_invalid_credentials(self) -> None:
        expired = make_access_token(uuid.uuid4(), SECRET, timedelta(hours=-1))
        with pytest.raises(InvalidCredential):
            validate_access_token(expired, SECRET)
        with pytest.raises(InvalidCredential):
            validate_access_token(expired, WRONG_SECRET)
