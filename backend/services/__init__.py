"""
Service layer for business logic.
"""

from services.analytics import AnalyticsAggregator
from services.articles import ArticleService
from services.content_query import ContentQuery
from services.role_resolver import RoleResolver
from services.subscription_ledger import SubscriptionLedger
from services.users import UserService

__all__ = [
    "AnalyticsAggregator",
    "ArticleService",
    "ContentQuery",
    "RoleResolver",
    "SubscriptionLedger",
    "UserService",
]
