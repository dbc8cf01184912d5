"""
SQLAlchemy database models.
"""

from .base import Base, TimestampMixin
from .content import Article, ArticleStatus, ArticleTag, Publisher
from .subscription import SubscriptionRecord
from .user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "Publisher",
    "Article",
    "ArticleTag",
    "ArticleStatus",
    "SubscriptionRecord",
]
