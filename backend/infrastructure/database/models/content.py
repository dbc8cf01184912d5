"""
Content database models: Publisher, Article and its tags.
"""

from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class ArticleStatus(str, Enum):
    """Moderation status enumeration."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Publisher(Base, TimestampMixin):
    """News publisher. Copied into articles at write time."""

    __tablename__ = "publishers"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    logo: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<Publisher(id={self.id}, name={self.name})>"


class Article(Base, TimestampMixin):
    """Article content model."""

    __tablename__ = "articles"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Content
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Creator email, matched by value against users.email (no foreign key)
    creator: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Publisher snapshot taken when the article was written
    publisher_id: Mapped[str] = mapped_column(String(36), nullable=False)
    publisher_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    publisher_logo: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Moderation and gating
    status: Mapped[str] = mapped_column(
        String(20),
        default=ArticleStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Engagement
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    tag_links: Mapped[List["ArticleTag"]] = relationship(
        "ArticleTag",
        back_populates="article",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ArticleTag.position",
    )

    __table_args__ = (
        Index("ix_articles_status_views", "status", "view_count"),
        Index("ix_articles_status_paid", "status", "is_paid"),
    )

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, title={self.title[:30]}, status={self.status})>"

    @property
    def tags(self) -> list[str]:
        return [link.tag for link in self.tag_links]

    def set_tags(self, tags: list[str]) -> None:
        """Replace the tag set, dropping blanks and case-insensitive duplicates.

        Rows of tags that survive are reused so a flush never deletes and
        re-inserts the same (article_id, tag) pair.
        """
        existing = {link.tag.lower(): link for link in self.tag_links}
        seen: set[str] = set()
        links = []
        for tag in tags:
            tag = tag.strip()
            if not tag or tag.lower() in seen:
                continue
            seen.add(tag.lower())
            link = existing.get(tag.lower()) or ArticleTag()
            link.tag = tag
            link.position = len(links)
            links.append(link)
        self.tag_links = links

    @property
    def publisher(self) -> dict:
        return {
            "id": self.publisher_id,
            "name": self.publisher_name,
            "logo": self.publisher_logo,
        }

    def snapshot_publisher(self, publisher: Publisher) -> None:
        """Copy the publisher's current fields onto the article."""
        self.publisher_id = publisher.id
        self.publisher_name = publisher.name
        self.publisher_logo = publisher.logo


class ArticleTag(Base):
    """One tag of an article."""

    __tablename__ = "article_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tag: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    article: Mapped["Article"] = relationship("Article", back_populates="tag_links")

    __table_args__ = (
        UniqueConstraint("article_id", "tag", name="uq_article_tags_article_tag"),
    )
