"""
Unit tests for article queries and the view counter.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine

from core.errors import NotFound
from infrastructure.database import Database
from infrastructure.database.models import Article, ArticleStatus, Base, Publisher
from services.content_query import ContentQuery

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def second_publisher(db_session) -> Publisher:
    pub = Publisher(name="Evening Byte")
    db_session.add(pub)
    await db_session.commit()
    return pub


class TestApprovedFilters:
    @pytest.mark.asyncio
    async def test_only_approved(self, db_session, free_article, pending_article, paid_article):
        articles = await ContentQuery(db_session).approved()

        ids = {a.id for a in articles}
        assert ids == {free_article.id, paid_article.id}

    @pytest.mark.asyncio
    async def test_title_is_case_insensitive_substring(
        self, db_session, make_article, writer_user, publisher
    ):
        match = await make_article(writer_user, publisher, title="Harbour Bridge reopens")
        await make_article(writer_user, publisher, title="Weather warning")

        articles = await ContentQuery(db_session).approved(title="bridge")

        assert [a.id for a in articles] == [match.id]

    @pytest.mark.asyncio
    async def test_title_wildcards_are_literal(
        self, db_session, make_article, writer_user, publisher
    ):
        await make_article(writer_user, publisher, title="Markets up 5 percent")
        match = await make_article(writer_user, publisher, title="Markets up 5% today")

        articles = await ContentQuery(db_session).approved(title="5%")

        assert [a.id for a in articles] == [match.id]

    @pytest.mark.asyncio
    async def test_tag_substring_matches_any_tag(
        self, db_session, make_article, writer_user, publisher
    ):
        match = await make_article(writer_user, publisher, tags=["World", "Technology"])
        await make_article(writer_user, publisher, tags=["sports"])

        articles = await ContentQuery(db_session).approved(tags="TECH")

        assert [a.id for a in articles] == [match.id]

    @pytest.mark.asyncio
    async def test_publisher_is_exact(
        self, db_session, make_article, writer_user, publisher, second_publisher
    ):
        await make_article(writer_user, publisher)
        match = await make_article(writer_user, second_publisher)

        query = ContentQuery(db_session)

        assert [a.id for a in await query.approved(publisher="Evening Byte")] == [match.id]
        assert await query.approved(publisher="Evening") == []

    @pytest.mark.asyncio
    async def test_sentinels_mean_no_filter(
        self, db_session, make_article, writer_user, publisher, second_publisher
    ):
        await make_article(writer_user, publisher, tags=["a"])
        await make_article(writer_user, second_publisher, tags=["b"])

        articles = await ContentQuery(db_session).approved(
            title="", tags="all", publisher="All Publishers"
        )

        assert len(articles) == 2


class TestRankings:
    @pytest.mark.asyncio
    async def test_slider_is_top_six_by_views(
        self, db_session, make_article, writer_user, publisher
    ):
        views = [15, 3, 99, 42, 7, 0, 61, 28, 5, 80]
        for i, count in enumerate(views):
            await make_article(writer_user, publisher, title=f"Story {i}", view_count=count)

        slider = await ContentQuery(db_session).top_viewed()

        assert [a.view_count for a in slider] == sorted(views, reverse=True)[:6]

    @pytest.mark.asyncio
    async def test_most_popular_follows_the_slider(
        self, db_session, make_article, writer_user, publisher
    ):
        for i in range(12):
            await make_article(writer_user, publisher, title=f"Story {i}", view_count=100 - i)

        popular = await ContentQuery(db_session).most_popular()

        assert [a.view_count for a in popular] == [94, 93, 92, 91, 90]

    @pytest.mark.asyncio
    async def test_ties_break_by_creation_time(
        self, db_session, make_article, writer_user, publisher
    ):
        newer = await make_article(
            writer_user, publisher, view_count=10, created_at=BASE_TIME + timedelta(hours=1)
        )
        older = await make_article(writer_user, publisher, view_count=10, created_at=BASE_TIME)

        ranked = await ContentQuery(db_session).top_viewed()

        assert [a.id for a in ranked] == [older.id, newer.id]

    @pytest.mark.asyncio
    async def test_rankings_skip_unapproved(
        self, db_session, make_article, writer_user, publisher
    ):
        await make_article(
            writer_user, publisher, view_count=1000, status=ArticleStatus.REJECTED.value
        )
        shown = await make_article(writer_user, publisher, view_count=1)

        assert [a.id for a in await ContentQuery(db_session).top_viewed()] == [shown.id]


class TestOtherViews:
    @pytest.mark.asyncio
    async def test_premium_is_approved_and_paid(
        self, db_session, free_article, paid_article, make_article, writer_user, publisher
    ):
        await make_article(
            writer_user, publisher, is_paid=True, status=ArticleStatus.PENDING.value
        )

        premium = await ContentQuery(db_session).premium()

        assert [a.id for a in premium] == [paid_article.id]

    @pytest.mark.asyncio
    async def test_all_with_creators_joins_user(
        self, db_session, free_article, pending_article, writer_user
    ):
        rows = await ContentQuery(db_session).all_with_creators(skip=0, limit=10)

        assert len(rows) == 2
        assert all(r.creator_info.name == writer_user.name for r in rows)

    @pytest.mark.asyncio
    async def test_all_with_creators_paginates(
        self, db_session, make_article, writer_user, publisher
    ):
        for i in range(5):
            await make_article(writer_user, publisher, title=f"Story {i}")

        query = ContentQuery(db_session)

        assert len(await query.all_with_creators(skip=0, limit=2)) == 2
        assert len(await query.all_with_creators(skip=4, limit=2)) == 1

    @pytest.mark.asyncio
    async def test_get_unknown_article(self, db_session):
        with pytest.raises(NotFound):
            await ContentQuery(db_session).get("missing")


class TestViewCounter:
    @pytest.mark.asyncio
    async def test_increments_by_one(self, db_session, free_article):
        query = ContentQuery(db_session)

        assert await query.increment_view_count(free_article.id) == 1
        assert await query.increment_view_count(free_article.id) == 2

    @pytest.mark.asyncio
    async def test_unknown_article(self, db_session):
        with pytest.raises(NotFound):
            await ContentQuery(db_session).increment_view_count("missing")

    @pytest.mark.asyncio
    async def test_no_lost_updates_under_concurrency(self, tmp_path):
        """50 concurrent increments, each on its own session, all land."""
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'views.db'}",
            connect_args={"timeout": 30},
        )
        database = Database(engine)
        await database.create_all()

        async with database.session() as session:
            pub = Publisher(name="Concurrent Times")
            session.add(pub)
            await session.flush()
            article = Article(
                title="Breaking", creator="writer@example.com", status="approved"
            )
            article.snapshot_publisher(pub)
            session.add(article)
            await session.commit()
            article_id = article.id

        async def bump():
            async with database.session() as session:
                await ContentQuery(session).increment_view_count(article_id)

        await asyncio.gather(*(bump() for _ in range(50)))

        async with database.session() as session:
            result = await session.execute(
                select(Article.view_count).where(Article.id == article_id)
            )
            assert result.scalar_one() == 50

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await database.dispose()
