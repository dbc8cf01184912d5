"""
Authentication API schemas.
"""

from pydantic import BaseModel, EmailStr, Field


class TokenRequest(BaseModel):
    """Request to issue an identity token."""

    email: EmailStr
    name: str | None = Field(None, max_length=255)


class TokenResponse(BaseModel):
    """Issued token. ``token`` is omitted when it travels in a cookie."""

    token: str | None = None
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")


class LogoutResponse(BaseModel):
    success: bool = True
