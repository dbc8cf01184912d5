"""
Admin API schemas for platform analytics.
"""

from pydantic import BaseModel, ConfigDict, Field


class PublisherBreakdownResponse(BaseModel):
    """Articles and views for one publisher name."""

    publisher: str
    total_articles: int
    total_views: int

    model_config = ConfigDict(from_attributes=True)


class PlatformReportResponse(BaseModel):
    """Point-in-time platform figures; not a consistent snapshot."""

    articles: int = Field(..., description="Total articles, any status")
    users: int = Field(..., description="Total registered users")
    premium: int = Field(..., description="Users with unexpired premium")
    non_premium: int = Field(..., description="Users without active premium")
    premium_percentage: float = Field(..., description="Share of users with active premium")
    publishers: int = Field(..., description="Total publishers")
    subscriptions: int = Field(..., description="Ledger entries recorded")
    total_revenue: float = Field(..., description="Sum of recorded payments")
    articles_per_publisher: list[PublisherBreakdownResponse]

    model_config = ConfigDict(from_attributes=True)
