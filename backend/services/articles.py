"""
Article write operations.

Publisher data is copied onto the article on every write, so later edits
to a publisher never change articles that were already written. Content
edits always send the article back to moderation.
"""

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InvalidInput, InvalidReference
from infrastructure.database.models import Article, ArticleStatus, Publisher

logger = logging.getLogger(__name__)

# Fields a content edit may change; status, is_paid and view_count are excluded
CONTENT_FIELDS = ("title", "description", "body", "image")


class ArticleService:
    """Create, edit, moderate and delete articles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _resolve_publisher(self, publisher_id: str) -> Publisher:
        result = await self.db.execute(select(Publisher).where(Publisher.id == publisher_id))
        publisher = result.scalar_one_or_none()
        if publisher is None:
            raise InvalidReference("Publisher", publisher_id)
        return publisher

    async def create(
        self,
        creator: str,
        *,
        title: str,
        publisher_id: str,
        description: Optional[str] = None,
        body: Optional[str] = None,
        image: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> Article:
        """Create a pending, free article.

        Raises:
            InvalidReference: ``publisher_id`` does not name a publisher;
                nothing is written
        """
        publisher = await self._resolve_publisher(publisher_id)

        article = Article(
            title=title,
            description=description,
            body=body,
            image=image,
            creator=creator.strip().lower(),
            status=ArticleStatus.PENDING.value,
            is_paid=False,
            view_count=0,
        )
        article.snapshot_publisher(publisher)
        article.set_tags(tags or [])

        self.db.add(article)
        await self.db.commit()
        logger.info("Article %s created by %s under %s", article.id, article.creator, publisher.name)
        return article

    async def update_content(self, article: Article, changes: dict[str, Any]) -> Article:
        """Apply a content edit and reset moderation.

        ``changes`` holds only the fields the caller sent. Whatever they are,
        the article goes back to ``pending`` and loses its paid flag.

        Raises:
            InvalidReference: a new ``publisher_id`` does not name a publisher
        """
        publisher_id = changes.get("publisher_id")
        if publisher_id is not None:
            article.snapshot_publisher(await self._resolve_publisher(publisher_id))

        for field in CONTENT_FIELDS:
            if field in changes:
                setattr(article, field, changes[field])
        if changes.get("tags") is not None:
            article.set_tags(changes["tags"])

        article.status = ArticleStatus.PENDING.value
        article.is_paid = False

        await self.db.commit()
        logger.info("Article %s edited; back to pending moderation", article.id)
        return article

    async def moderate(
        self,
        article: Article,
        status: Optional[str] = None,
        is_paid: Optional[bool] = None,
    ) -> Article:
        """Set moderation status and/or the paid flag.

        Raises:
            InvalidInput: unknown status, or nothing to change
        """
        if status is None and is_paid is None:
            raise InvalidInput("Provide a status or is_paid")

        if status is not None:
            try:
                article.status = ArticleStatus(status).value
            except ValueError:
                raise InvalidInput(
                    f"Unknown status '{status}'",
                    detail={"allowed": [s.value for s in ArticleStatus]},
                ) from None
        if is_paid is not None:
            article.is_paid = is_paid

        await self.db.commit()
        logger.info(
            "Article %s moderated: status=%s is_paid=%s", article.id, article.status, article.is_paid
        )
        return article

    async def delete(self, article: Article) -> None:
        await self.db.delete(article)
        await self.db.commit()
        logger.info("Article %s deleted", article.id)
