"""
Cross-collection statistics for the admin dashboard.

Each figure comes from its own query. A report is therefore a set of
point-in-time values, not a consistent snapshot: a payment committed
between two queries can show up in one count and not the other.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFound
from infrastructure.database.models import Article, Publisher, SubscriptionRecord, User
from services.role_resolver import Clock, utcnow

logger = logging.getLogger(__name__)


@dataclass
class PublisherBreakdown:
    publisher: str
    total_articles: int
    total_views: int


@dataclass
class PlatformReport:
    articles: int
    users: int
    premium: int
    non_premium: int
    publishers: int
    subscriptions: int
    total_revenue: float
    articles_per_publisher: list[PublisherBreakdown] = field(default_factory=list)


@dataclass
class UserSummary:
    user: User
    articles: int
    total_views: int
    total_payment: float


def active_premium(now: datetime):
    """SQL condition for users whose premium access has not expired."""
    return and_(User.is_premium.is_(True), User.premium_expires_at > now)


class AnalyticsAggregator:
    """Builds dashboard figures for administrators."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def _count(self, column, *where) -> int:
        query = select(func.count(column))
        if where:
            query = query.where(*where)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def premium_counts(self) -> tuple[int, int]:
        """(premium, non-premium) user counts, premium meaning unexpired."""
        total = await self._count(User.id)
        premium = await self._count(User.id, active_premium(self.clock()))
        return premium, total - premium

    async def publisher_breakdown(self) -> list[PublisherBreakdown]:
        result = await self.db.execute(
            select(
                Article.publisher_name,
                func.count(Article.id),
                func.coalesce(func.sum(Article.view_count), 0),
            )
            .group_by(Article.publisher_name)
            .order_by(Article.publisher_name)
        )
        return [
            PublisherBreakdown(publisher=name, total_articles=int(count), total_views=int(views))
            for name, count, views in result.all()
        ]

    async def platform_report(self) -> PlatformReport:
        premium, non_premium = await self.premium_counts()

        revenue_result = await self.db.execute(
            select(func.coalesce(func.sum(SubscriptionRecord.price), 0))
        )

        report = PlatformReport(
            articles=await self._count(Article.id),
            users=premium + non_premium,
            premium=premium,
            non_premium=non_premium,
            publishers=await self._count(Publisher.id),
            subscriptions=await self._count(SubscriptionRecord.id),
            total_revenue=float(revenue_result.scalar() or 0),
            articles_per_publisher=await self.publisher_breakdown(),
        )
        logger.debug("Platform report built: %s articles, %s users", report.articles, report.users)
        return report

    async def user_summary(self, email: str) -> UserSummary:
        """A user with their authoring and payment totals.

        Raises:
            NotFound: no user with this email
        """
        email = email.strip().lower()
        result = await self.db.execute(select(User).where(User.email == email))
        user: Optional[User] = result.scalar_one_or_none()
        if user is None:
            raise NotFound("User", email)

        stats = await self.db.execute(
            select(
                func.count(Article.id),
                func.coalesce(func.sum(Article.view_count), 0),
            ).where(Article.creator == email)
        )
        articles, views = stats.one()

        paid = await self.db.execute(
            select(func.coalesce(func.sum(SubscriptionRecord.price), 0)).where(
                SubscriptionRecord.email == email
            )
        )
        return UserSummary(
            user=user,
            articles=int(articles or 0),
            total_views=int(views or 0),
            total_payment=float(paid.scalar() or 0),
        )
