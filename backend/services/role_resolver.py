"""
Role resolution.

Loads a user's stored role flags and evaluates premium access against the
current time. A stored ``is_premium`` flag whose expiry has passed is
reported as not premium; nothing clears the flag in the database.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain import Anonymous, Caller, RoleSnapshot, caller_for
from core.errors import NotFound
from core.security import Claims
from infrastructure.database.models import User

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoleResolver:
    """Resolves role flags for an identity."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def resolve(self, email: str) -> RoleSnapshot:
        """Return the user's role flags with premium evaluated now.

        Raises:
            NotFound: no user with this email
        """
        result = await self.db.execute(
            select(User.is_admin, User.is_premium, User.premium_expires_at).where(
                User.email == email.strip().lower()
            )
        )
        row = result.one_or_none()
        if row is None:
            raise NotFound("User", email)

        return RoleSnapshot.evaluate(
            is_admin=row.is_admin,
            stored_premium=row.is_premium,
            premium_expires_at=row.premium_expires_at,
            now=self.clock(),
        )

    async def resolve_caller(self, claims: Optional[Claims]) -> Caller:
        """Map verified claims (or none) to a caller variant.

        A valid token for an email with no user record yields an
        authenticated caller without privileges.
        """
        if claims is None:
            return Anonymous()
        try:
            snapshot = await self.resolve(claims.email)
        except NotFound:
            logger.debug("No user record for %s; treating as unprivileged", claims.email)
            snapshot = None
        return caller_for(claims.email, snapshot)
