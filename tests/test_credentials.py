"""Unit tests for auth/credentials.py -- Authorization header parsing."""

from __future__ import annotations

import pytest
from starlette.datastructures import Headers

from auth.credentials import get_api_key, get_bearer_token
from auth.errors import (
    HeaderError,
    MalformedApiKey,
    MalformedHeader,
    MissingApiKey,
    MissingHeader,
)


class TestBearerToken:
    def test_extracts_token(self) -> None:
        assert get_bearer_token({"Authorization": "Bearer abc.def.ghi"}) == "abc.def.ghi"

    def test_strips_surrounding_whitespace(self) -> None:
        assert get_bearer_token({"Authorization": "Bearer   abc.def.ghi  "}) == "abc.def.ghi"

    def test_header_name_is_case_insensitive(self) -> None:
        assert get_bearer_token({"authorization": "Bearer tok"}) == "tok"

    def test_starlette_headers(self) -> None:
        headers = Headers(raw=[(b"authorization", b"Bearer tok")])
        assert get_bearer_token(headers) == "tok"

    def test_missing_header(self) -> None:
        with pytest.raises(MissingHeader):
            get_bearer_token({})

    def test_missing_header_with_other_headers(self) -> None:
        with pytest.raises(MissingHeader):
            get_bearer_token({"Content-Type": "application/json"})

    @pytest.mark.parametrize(
        "value",
        [
            "abc",
            "bearer abc",
            "BEARER abc",
            "Bearer",
            "Bearer    ",
            "",
            "Basic dXNlcjpwYXNz",
            "ApiKey abc",
            "   Bearer abc",
            "\tBearer abc",
        ],
    )
    def test_malformed_header(self, value: str) -> None:
        with pytest.raises(MalformedHeader):
            get_bearer_token({"Authorization": value})


class TestApiKey:
    def test_extracts_key(self) -> None:
        assert get_api_key({"Authorization": "ApiKey f271c81ff7084ee5b99a5091b42d486e"}) == (
            "f271c81ff7084ee5b99a5091b42d486e"
        )

    def test_missing_header(self) -> None:
        with pytest.raises(MissingApiKey):
            get_api_key({})

    @pytest.mark.parametrize("value", ["f271c81f", "Bearer abc", "apikey abc", "ApiKey ", "  ApiKey abc"])
    def test_malformed_header(self, value: str) -> None:
        with pytest.raises(MalformedApiKey):
            get_api_key({"Authorization": value})

    def test_error_kinds_are_distinct_from_bearer(self) -> None:
        assert not issubclass(MissingApiKey, MissingHeader)
        assert not issubclass(MalformedApiKey, MalformedHeader)
        assert issubclass(MissingApiKey, HeaderError)
        assert issubclass(MalformedHeader, HeaderError)
