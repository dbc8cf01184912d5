"""
User account operations: registration, profile edits and role changes.

Premium state is not granted here. ``is_premium=True`` only ever comes from
the subscription ledger; this module can clear the flag but never set it.
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import Forbidden, InvalidInput, NotFound
from infrastructure.database.models import User
from services.role_resolver import Clock, utcnow

logger = logging.getLogger(__name__)

# Display attributes a profile edit may change
PROFILE_FIELDS = ("name", "image")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def get_by_email(self, email: str) -> User:
        """
        Raises:
            NotFound: no user with this email
        """
        email = normalize_email(email)
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFound("User", email)
        return user

    async def get_by_id(self, user_id: str) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFound("User", user_id)
        return user

    async def list_users(self, skip: int = 0, limit: int = 10) -> tuple[list[User], int]:
        """A page of users, newest first, and the total count."""
        total = await self.db.execute(select(func.count(User.id)))
        result = await self.db.execute(
            select(User).order_by(User.created_at.desc(), User.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total.scalar() or 0

    async def register(
        self,
        email: str,
        name: Optional[str] = None,
        image: Optional[str] = None,
    ) -> tuple[User, bool]:
        """Create a plain user unless one exists for this email.

        Returns the stored user and whether it was created. An existing
        record is returned untouched, role flags included.
        """
        email = normalize_email(email)
        result = await self.db.execute(select(User).where(User.email == email))
        existing = result.scalar_one_or_none()
        if existing is not None:
            return existing, False

        user = User(email=email, name=name, image=image, is_admin=False, is_premium=False)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            return await self.get_by_email(email), False

        logger.info("Registered user %s", email)
        return user, True

    async def record_login(self, email: str) -> None:
        """Stamp ``last_login_at`` if the user exists."""
        email = normalize_email(email)
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            return
        user.last_login_at = self.clock()
        await self.db.commit()

    async def update_profile(self, user: User, changes: dict[str, Any]) -> User:
        """Change display attributes only.

        Raises:
            InvalidInput: nothing to change
        """
        applied = {k: v for k, v in changes.items() if k in PROFILE_FIELDS}
        if not applied:
            raise InvalidInput(
                "No updatable fields provided",
                detail={"allowed": list(PROFILE_FIELDS)},
            )
        for field, value in applied.items():
            setattr(user, field, value)
        await self.db.commit()
        logger.info("Updated profile of %s: %s", user.email, sorted(applied))
        return user

    async def update_role(
        self,
        user: User,
        *,
        is_admin: Optional[bool] = None,
        is_premium: Optional[bool] = None,
    ) -> User:
        """Change role flags.

        Admin checks happen before this call; this method only enforces
        that premium can be cleared but never granted.

        Raises:
            InvalidInput: nothing to change
            Forbidden: ``is_premium=True`` requested
        """
        if is_admin is None and is_premium is None:
            raise InvalidInput("Provide is_admin or is_premium")
        if is_premium:
            raise Forbidden("Premium is granted only by recording a payment")

        if is_admin is not None:
            user.is_admin = is_admin
        if is_premium is False:
            user.is_premium = False
            user.premium_expires_at = None

        await self.db.commit()
        logger.info(
            "Role of %s changed: is_admin=%s is_premium=%s", user.email, is_admin, is_premium
        )
        return user
