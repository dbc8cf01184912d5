"""
User API schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from core.domain import RoleSnapshot


class UserRegisterRequest(BaseModel):
    """Registration. Role flags are never accepted from the client."""

    email: EmailStr
    name: str | None = Field(None, max_length=255)
    image: str | None = Field(None, max_length=1000)


class UserProfileUpdateRequest(BaseModel):
    """Display attributes only; anything else is rejected."""

    name: str | None = Field(None, max_length=255)
    image: str | None = Field(None, max_length=1000)

    model_config = ConfigDict(extra="forbid")


class UserRoleUpdateRequest(BaseModel):
    is_admin: bool | None = None
    is_premium: bool | None = None

    model_config = ConfigDict(extra="forbid")


class UserResponse(BaseModel):
    """User record as exposed to callers; build it with ``from_user``."""

    id: str
    email: str
    name: str | None = None
    image: str | None = None
    is_admin: bool
    is_premium: bool
    premium_expires_at: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_user(cls, user, now: datetime) -> "UserResponse":
        """Stored record with ``is_premium`` evaluated at ``now``."""
        snapshot = RoleSnapshot.evaluate(
            is_admin=user.is_admin,
            stored_premium=user.is_premium,
            premium_expires_at=user.premium_expires_at,
            now=now,
        )
        return cls.model_validate(user).model_copy(
            update={"is_premium": snapshot.is_premium, "premium_expires_at": snapshot.premium_expires_at}
        )


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    skip: int
    limit: int


class UserRegisterResponse(BaseModel):
    message: str
    created: bool
    user: UserResponse


class RoleResponse(BaseModel):
    """Role flags with premium evaluated at request time."""

    email: str
    is_admin: bool
    is_premium: bool
    premium_expires_at: datetime | None = None


class UserSummaryResponse(BaseModel):
    """A user with authoring and payment totals."""

    user: UserResponse
    articles: int = Field(..., description="Articles created by this user")
    total_views: int = Field(..., description="Views across the user's articles")
    total_payment: float = Field(..., description="Sum of recorded payments")


class UserCountsResponse(BaseModel):
    premium: int
    non_premium: int
