"""
Pytest configuration and shared fixtures for backend tests.
"""

import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional
from uuid import uuid4

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

# Import after path is set
from api.dependencies import get_token_service
from infrastructure.database import Database
from infrastructure.database.connection import get_db
from infrastructure.database.models import Article, ArticleStatus, Base, Publisher, User

token_service = get_token_service()


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def bearer(email: str) -> dict:
    """Authorization header carrying a token for ``email``."""
    return {"Authorization": f"Bearer {token_service.create_access_token(email)}"}


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def database(db_engine) -> Database:
    return Database(db_engine)


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with database.session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory for stored users."""

    async def _make(
        email: str,
        *,
        name: Optional[str] = None,
        is_admin: bool = False,
        premium_until: Optional[datetime] = None,
    ) -> User:
        user = User(
            id=str(uuid4()),
            email=email,
            name=name or email.split("@")[0].title(),
            image=f"https://img.example.com/{email.split('@')[0]}.png",
            is_admin=is_admin,
            is_premium=premium_until is not None,
            premium_expires_at=premium_until,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_article(db_session: AsyncSession):
    """Factory for stored articles; defaults to an approved free article."""

    async def _make(
        creator: User,
        publisher: Publisher,
        *,
        title: str = "Local elections results",
        status: str = ArticleStatus.APPROVED.value,
        is_paid: bool = False,
        view_count: int = 0,
        tags: Optional[list[str]] = None,
        created_at: Optional[datetime] = None,
    ) -> Article:
        article = Article(
            title=title,
            description=f"{title} - summary",
            body=f"{title} - full story",
            image="https://img.example.com/article.png",
            creator=creator.email,
            status=status,
            is_paid=is_paid,
            view_count=view_count,
        )
        if created_at is not None:
            article.created_at = created_at
        article.snapshot_publisher(publisher)
        article.set_tags(tags or ["politics"])
        db_session.add(article)
        await db_session.commit()
        return article

    return _make


# ============================================================================
# Users
# ============================================================================


@pytest.fixture
async def regular_user(make_user) -> User:
    return await make_user("reader@example.com", name="Regular Reader")


@pytest.fixture
async def writer_user(make_user) -> User:
    return await make_user("writer@example.com", name="Staff Writer")


@pytest.fixture
async def premium_user(make_user) -> User:
    return await make_user("premium@example.com", premium_until=utcnow() + timedelta(days=30))


@pytest.fixture
async def expired_premium_user(make_user) -> User:
    return await make_user("lapsed@example.com", premium_until=utcnow() - timedelta(days=1))


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin@example.com", name="Site Admin", is_admin=True)


@pytest.fixture
def user_headers(regular_user: User) -> dict:
    return bearer(regular_user.email)


@pytest.fixture
def writer_headers(writer_user: User) -> dict:
    return bearer(writer_user.email)


@pytest.fixture
def premium_headers(premium_user: User) -> dict:
    return bearer(premium_user.email)


@pytest.fixture
def expired_headers(expired_premium_user: User) -> dict:
    return bearer(expired_premium_user.email)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return bearer(admin_user.email)


# ============================================================================
# Content
# ============================================================================


@pytest.fixture
async def publisher(db_session: AsyncSession) -> Publisher:
    pub = Publisher(name="Daily Pixel", logo="https://img.example.com/daily-pixel.png")
    db_session.add(pub)
    await db_session.commit()
    return pub


@pytest.fixture
async def free_article(make_article, writer_user, publisher) -> Article:
    return await make_article(writer_user, publisher, title="City council approves budget")


@pytest.fixture
async def paid_article(make_article, writer_user, publisher) -> Article:
    return await make_article(
        writer_user, publisher, title="Inside the merger talks", is_paid=True, tags=["business"]
    )


@pytest.fixture
async def pending_article(make_article, writer_user, publisher) -> Article:
    return await make_article(
        writer_user, publisher, title="Draft: transit strike", status=ArticleStatus.PENDING.value
    )


# ============================================================================
# HTTP client
# ============================================================================


@pytest.fixture
async def async_client(
    db_session: AsyncSession, database: Database
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.state.database = database
    app.dependency_overrides[get_db] = override_get_db

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
