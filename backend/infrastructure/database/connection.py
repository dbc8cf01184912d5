"""Database connection and session management."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import Settings
from .models.base import Base

# Server error code for a statement cancelled by statement_timeout
QUERY_CANCELED_SQLSTATE = "57014"


def engine_options(settings: Settings) -> dict:
    """Engine keyword arguments: pool limits, statement timeouts, SSL in production."""
    kwargs: dict = {
        "echo": settings.database_echo,
        "pool_pre_ping": True,
    }
    if settings.database_url.startswith("sqlite"):
        return kwargs

    kwargs.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        # Raises sqlalchemy TimeoutError when no connection frees up in time
        pool_timeout=settings.db_pool_timeout_seconds,
        pool_recycle=3600,
    )
    timeout = settings.db_statement_timeout_seconds
    connect_args: dict = {
        # Server cancels the statement (SQLSTATE 57014); the client timeout is a backstop
        "server_settings": {"statement_timeout": str(int(timeout * 1000))},
        "command_timeout": timeout + 1,
    }
    if settings.environment == "production":
        connect_args["ssl"] = "require"
    kwargs["connect_args"] = connect_args
    return kwargs


def is_statement_timeout(exc: BaseException) -> bool:
    """True for a statement the server cancelled on timeout."""
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) == QUERY_CANCELED_SQLSTATE


class Database:
    """Process-scoped engine and session factory.

    Created once in the application lifespan and handed to request handlers
    through ``get_db``; nothing here is a module-level singleton.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(create_async_engine(settings.database_url, **engine_options(settings)))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session, rolling back if the caller raises."""
        async with self.session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create tables for all registered models."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close pooled connections."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database sessions from the app's Database."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
