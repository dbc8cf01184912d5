"""Health check endpoints."""

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.config import get_settings
from infrastructure.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


async def _database_ok(db: AsyncSession) -> bool:
    try:
        await asyncio.wait_for(
            db.execute(text("SELECT 1")),
            timeout=settings.db_statement_timeout_seconds,
        )
        return True
    except TimeoutError:
        logger.error("Health check DB timeout")
        return False
    except Exception as e:
        logger.error("Health check DB error: %s", str(e))
        return False


async def _redis_ok() -> bool | None:
    """None when Redis is not configured."""
    if not settings.redis_url:
        return None
    try:
        import redis.asyncio as aioredis

        r = aioredis.from_url(settings.redis_url)
        await asyncio.wait_for(r.ping(), timeout=2.0)
        await r.aclose()
        return True
    except Exception as e:
        logger.warning("Health check Redis error: %s", str(e))
        return False


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness probe. The database is required; Redis only degrades rate limiting."""
    db_ok = await _database_ok(db)
    redis_ok = await _redis_ok()

    return {
        "ready": db_ok,
        "database": "ok" if db_ok else "unavailable",
        "redis": "not configured" if redis_ok is None else ("ok" if redis_ok else "degraded"),
    }


@router.get("/health/live")
async def liveness_check():
    """Liveness probe."""
    return {"alive": True}
