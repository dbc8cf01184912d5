"""
Content API schemas for articles and publishers.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# Publisher Schemas
# ============================================================================


class PublisherCreateRequest(BaseModel):
    """Request to create a publisher."""

    name: str = Field(..., min_length=1, max_length=255)
    logo: str | None = Field(None, max_length=1000, description="Logo image URL")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Publisher name cannot be blank")
        return v


class PublisherResponse(BaseModel):
    """Publisher response."""

    id: str
    name: str
    logo: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublisherRef(BaseModel):
    """Publisher fields copied onto an article."""

    id: str
    name: str
    logo: str | None = None


# ============================================================================
# Article Schemas
# ============================================================================


class ArticleCreateRequest(BaseModel):
    """Request to create an article. Moderation fields are not accepted."""

    title: str = Field(..., min_length=1, max_length=500)
    publisher_id: str = Field(..., description="ID of an existing publisher")
    description: str | None = None
    body: str | None = None
    image: str | None = Field(None, max_length=1000)
    tags: list[str] = Field(default_factory=list, max_length=20)

    model_config = ConfigDict(extra="ignore")


class ArticleUpdateRequest(BaseModel):
    """Content edit. Any edit sends the article back to moderation."""

    title: str | None = Field(None, min_length=1, max_length=500)
    publisher_id: str | None = None
    description: str | None = None
    body: str | None = None
    image: str | None = Field(None, max_length=1000)
    tags: list[str] | None = Field(None, max_length=20)

    model_config = ConfigDict(extra="ignore")

    @field_validator("title")
    @classmethod
    def title_not_null(cls, v: str | None) -> str:
        # Only an omitted title is left unchanged
        if v is None:
            raise ValueError("Title cannot be null")
        return v


class ArticleModerationRequest(BaseModel):
    """Administrator moderation of status and paid flag."""

    status: Literal["pending", "approved", "rejected"] | None = None
    is_paid: bool | None = None


class CreatorInfoResponse(BaseModel):
    email: str
    name: str | None = None
    image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ArticleResponse(BaseModel):
    """Full article representation before any policy projection."""

    id: str
    title: str
    description: str | None = None
    body: str | None = None
    image: str | None = None
    tags: list[str] = Field(default_factory=list)
    creator: str
    publisher: PublisherRef
    status: str
    is_paid: bool
    view_count: int
    created_at: datetime
    updated_at: datetime
    creator_info: CreatorInfoResponse | None = None

    model_config = ConfigDict(from_attributes=True)


class ViewCountResponse(BaseModel):
    id: str
    view_count: int


class ArticleDeleteResponse(BaseModel):
    success: bool = True
    deleted_id: str
