"""
Claims verification for inbound requests.

A deployment carries the identity token in exactly one place: the
``Authorization: Bearer`` header or the HttpOnly ``access_token`` cookie.
"""

from dataclasses import dataclass
from typing import Literal

from starlette.requests import Request

from ..errors import Unauthenticated

from .tokens import TokenService

ACCESS_TOKEN_COOKIE = "access_token"


@dataclass(frozen=True)
class Claims:
    """Identity claims taken from a verified token."""

    email: str
    name: str | None = None


class ClaimsVerifier:
    """Extracts and verifies identity tokens. Stateless."""

    def __init__(self, token_service: TokenService, transport: Literal["bearer", "cookie"] = "bearer"):
        self.token_service = token_service
        self.transport = transport

    def extract_token(self, request: Request) -> str | None:
        """Return the raw token from the configured transport, if any."""
        if self.transport == "cookie":
            return request.cookies.get(ACCESS_TOKEN_COOKIE) or None

        authorization = request.headers.get("authorization")
        if not authorization:
            return None
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()

    def verify(self, token: str | None) -> Claims:
        """Verify a raw token.

        Raises:
            Unauthenticated: token missing, malformed, expired or of the wrong type
        """
        if not token:
            raise Unauthenticated("Access denied. No token provided.")

        payload = self.token_service.verify_access_token(token)
        if payload is None:
            raise Unauthenticated("Access denied. Invalid or expired token.")

        email = (payload.email or payload.sub or "").strip().lower()
        if not email:
            raise Unauthenticated("Access denied. Token carries no identity.")
        return Claims(email=email, name=payload.name)

    def verify_request(self, request: Request) -> Claims:
        return self.verify(self.extract_token(request))

    def verify_request_optional(self, request: Request) -> Claims | None:
        """Like verify_request, but an absent or invalid token means anonymous."""
        token = self.extract_token(request)
        if not token:
            return None
        try:
            return self.verify(token)
        except Unauthenticated:
            return None
