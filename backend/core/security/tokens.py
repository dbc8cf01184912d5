"""
JWT token service for identity claims.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt


@dataclass
class TokenPayload:
    """JWT token payload structure."""

    sub: str  # Subject (user email)
    exp: datetime  # Expiration time
    iat: datetime  # Issued at
    type: str  # Token type, always "access" for identity tokens
    email: str | None = None
    name: str | None = None


class TokenService:
    """Service for creating and validating JWT tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: int = 23 * 60,
    ):
        """
        Initialize the token service.

        Args:
            secret_key: Secret key for signing tokens
            algorithm: JWT algorithm (default: HS256)
            expire_minutes: Token lifetime in minutes
        """
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    @property
    def expire_minutes(self) -> int:
        return self._expire_minutes

    def create_access_token(
        self,
        email: str,
        name: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Create a signed identity token.

        Args:
            email: Identity to encode in the token
            name: Optional display name to include
            expires_delta: Override the configured lifetime

        Returns:
            Encoded JWT access token
        """
        now = datetime.now(UTC)
        expire = now + (expires_delta if expires_delta is not None else timedelta(minutes=self._expire_minutes))

        payload = {
            "sub": email,
            "email": email,
            "exp": expire,
            "iat": now,
            "type": "access",
        }
        if name:
            payload["name"] = name

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenPayload | None:
        """
        Decode and validate a JWT token.

        Args:
            token: JWT token to decode

        Returns:
            TokenPayload if valid, None if invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )

            for field in ("sub", "exp", "type"):
                if field not in payload:
                    raise JWTError(f"Missing required field: {field}")

            return TokenPayload(
                sub=payload["sub"],
                exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
                iat=datetime.fromtimestamp(payload.get("iat", 0), tz=UTC),
                type=payload["type"],
                email=payload.get("email"),
                name=payload.get("name"),
            )
        except JWTError:
            return None

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """
        Verify an access token.

        Args:
            token: JWT token to verify

        Returns:
            TokenPayload if valid access token, None otherwise
        """
        payload = self.decode_token(token)
        if payload and payload.type == "access":
            return payload
        return None
