"""
Read-side queries over articles.

Listings here return ORM rows; access decisions and field projection are
applied by the caller through ``core.policy``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFound
from infrastructure.database.models import Article, ArticleStatus, ArticleTag, User

logger = logging.getLogger(__name__)

# Filter values the web client sends to mean "no filter"
ALL_TAGS = "all"
ALL_PUBLISHERS = "All Publishers"

SLIDER_SIZE = 6
MOST_POPULAR_SIZE = 5


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class CreatorInfo:
    """Public fields of an article's creator."""

    email: str
    name: Optional[str]
    image: Optional[str]


@dataclass
class ArticleWithCreator:
    article: Article
    creator_info: Optional[CreatorInfo]


class ContentQuery:
    """Filtered, paginated and ranked article views."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def approved(
        self,
        title: Optional[str] = None,
        tags: Optional[str] = None,
        publisher: Optional[str] = None,
    ) -> list[Article]:
        """Approved articles filtered by title, tag and publisher name.

        ``title`` and ``tags`` match case-insensitive substrings;
        ``publisher`` must equal the snapshot name exactly.
        """
        query = select(Article).where(Article.status == ArticleStatus.APPROVED.value)

        if title and title.strip():
            query = query.where(
                Article.title.ilike(f"%{escape_like(title.strip())}%", escape="\\")
            )

        if tags and tags.strip() and tags.strip().lower() != ALL_TAGS:
            query = query.where(
                exists().where(
                    ArticleTag.article_id == Article.id,
                    ArticleTag.tag.ilike(f"%{escape_like(tags.strip())}%", escape="\\"),
                )
            )

        if publisher and publisher.strip() and publisher != ALL_PUBLISHERS:
            query = query.where(Article.publisher_name == publisher)

        query = query.order_by(Article.created_at.desc(), Article.id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def premium(self) -> list[Article]:
        """Approved, paid articles."""
        result = await self.db.execute(
            select(Article)
            .where(
                Article.status == ArticleStatus.APPROVED.value,
                Article.is_paid.is_(True),
            )
            .order_by(Article.created_at.desc(), Article.id)
        )
        return list(result.scalars().all())

    async def top_viewed(self, limit: int = SLIDER_SIZE, skip: int = 0) -> list[Article]:
        """Approved articles ranked by view count.

        Ties are broken by creation time, then id, so the order is stable.
        """
        result = await self.db.execute(
            select(Article)
            .where(Article.status == ArticleStatus.APPROVED.value)
            .order_by(Article.view_count.desc(), Article.created_at.asc(), Article.id.asc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def most_popular(self) -> list[Article]:
        """The ranking right after the slider."""
        return await self.top_viewed(limit=MOST_POPULAR_SIZE, skip=SLIDER_SIZE)

    async def by_creator(self, email: str) -> list[Article]:
        result = await self.db.execute(
            select(Article)
            .where(Article.creator == email.strip().lower())
            .order_by(Article.created_at.desc(), Article.id)
        )
        return list(result.scalars().all())

    async def all_with_creators(self, skip: int = 0, limit: int = 10) -> list[ArticleWithCreator]:
        """Every article regardless of status, with creator info (admin view)."""
        result = await self.db.execute(
            select(Article, User.name, User.image)
            .outerjoin(User, User.email == Article.creator)
            .order_by(Article.created_at.desc(), Article.id)
            .offset(skip)
            .limit(limit)
        )
        return [
            ArticleWithCreator(
                article=article,
                creator_info=CreatorInfo(email=article.creator, name=name, image=image),
            )
            for article, name, image in result.all()
        ]

    async def get(self, article_id: str) -> Article:
        """
        Raises:
            NotFound: no article with this id
        """
        result = await self.db.execute(select(Article).where(Article.id == article_id))
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFound("Article", article_id)
        return article

    async def get_with_creator(self, article_id: str) -> ArticleWithCreator:
        """One article joined with its creator's public fields.

        Raises:
            NotFound: no article with this id
        """
        result = await self.db.execute(
            select(Article, User.name, User.image)
            .outerjoin(User, User.email == Article.creator)
            .where(Article.id == article_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFound("Article", article_id)
        article, name, image = row
        return ArticleWithCreator(
            article=article,
            creator_info=CreatorInfo(email=article.creator, name=name, image=image),
        )

    async def increment_view_count(self, article_id: str) -> int:
        """Atomically add one view. No authentication, no upper bound.

        Raises:
            NotFound: no article with this id
        """
        result = await self.db.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(view_count=Article.view_count + 1, updated_at=Article.updated_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFound("Article", article_id)
        await self.db.commit()

        count = await self.db.execute(select(Article.view_count).where(Article.id == article_id))
        return count.scalar_one()
