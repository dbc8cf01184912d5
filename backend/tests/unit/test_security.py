"""
Unit tests for identity tokens and claims verification.
"""

from datetime import timedelta

import pytest
from starlette.requests import Request

from core.errors import Unauthenticated
from core.security import ACCESS_TOKEN_COOKIE, ClaimsVerifier, TokenService

SECRET = "unit-test-secret-key-that-is-long-enough"


def make_request(headers: dict | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


@pytest.fixture
def tokens():
    return TokenService(secret_key=SECRET)


class TestTokenService:
    def test_default_lifetime_is_23_hours(self, tokens):
        payload = tokens.decode_token(tokens.create_access_token("a@example.com"))

        assert payload is not None
        assert payload.exp - payload.iat == timedelta(hours=23)

    def test_round_trip_claims(self, tokens):
        payload = tokens.verify_access_token(
            tokens.create_access_token("a@example.com", name="Ada")
        )

        assert payload.sub == "a@example.com"
        assert payload.email == "a@example.com"
        assert payload.name == "Ada"
        assert payload.type == "access"

    def test_expired_token_is_rejected(self, tokens):
        token = tokens.create_access_token("a@example.com", expires_delta=timedelta(seconds=-5))
        assert tokens.verify_access_token(token) is None

    def test_wrong_secret_is_rejected(self, tokens):
        forged = TokenService(secret_key="another-secret-key-of-enough-length").create_access_token(
            "a@example.com"
        )
        assert tokens.verify_access_token(forged) is None

    def test_garbage_is_rejected(self, tokens):
        assert tokens.verify_access_token("not-a-jwt") is None


class TestClaimsVerifier:
    def test_bearer_header(self, tokens):
        verifier = ClaimsVerifier(tokens, transport="bearer")
        token = tokens.create_access_token("Reader@Example.com")

        claims = verifier.verify_request(make_request({"Authorization": f"Bearer {token}"}))

        assert claims.email == "reader@example.com"

    def test_bearer_mode_ignores_cookie(self, tokens):
        verifier = ClaimsVerifier(tokens, transport="bearer")
        token = tokens.create_access_token("reader@example.com")
        request = make_request({"Cookie": f"{ACCESS_TOKEN_COOKIE}={token}"})

        with pytest.raises(Unauthenticated, match="No token provided"):
            verifier.verify_request(request)

    def test_cookie_mode(self, tokens):
        verifier = ClaimsVerifier(tokens, transport="cookie")
        token = tokens.create_access_token("reader@example.com")
        request = make_request({"Cookie": f"{ACCESS_TOKEN_COOKIE}={token}"})

        assert verifier.verify_request(request).email == "reader@example.com"

    def test_cookie_mode_ignores_header(self, tokens):
        verifier = ClaimsVerifier(tokens, transport="cookie")
        token = tokens.create_access_token("reader@example.com")

        with pytest.raises(Unauthenticated):
            verifier.verify_request(make_request({"Authorization": f"Bearer {token}"}))

    def test_invalid_token(self, tokens):
        verifier = ClaimsVerifier(tokens)
        with pytest.raises(Unauthenticated, match="Invalid or expired"):
            verifier.verify_request(make_request({"Authorization": "Bearer nope"}))

    def test_non_bearer_scheme(self, tokens):
        verifier = ClaimsVerifier(tokens)
        with pytest.raises(Unauthenticated):
            verifier.verify_request(make_request({"Authorization": "Basic abc"}))

    def test_optional_variant_yields_none(self, tokens):
        verifier = ClaimsVerifier(tokens)

        assert verifier.verify_request_optional(make_request()) is None
        assert (
            verifier.verify_request_optional(make_request({"Authorization": "Bearer nope"}))
            is None
        )
