"""
Subscription ledger.

The ledger is the single writer of premium state. Recording a payment
appends an immutable ``SubscriptionRecord`` and sets the user's
``is_premium`` / ``premium_expires_at`` in the same transaction. The two
fields are a projection of the latest ledger entry, so ``rebuild`` can
recompute them at any time.

Concurrent payments for one user are not stacked: the last committed
payment decides the expiry.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain import as_utc
from core.errors import InvalidInput, NotFound, PartialFailure
from infrastructure.database.models import SubscriptionRecord, User
from services.role_resolver import Clock, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerReceipt:
    """Outcome of a recorded payment."""

    ledger_entry_id: str
    new_expiry: datetime
    entry: SubscriptionRecord


def premium_expiry(entry: SubscriptionRecord) -> datetime:
    """Expiry implied by a ledger entry."""
    return as_utc(entry.created_at) + timedelta(minutes=entry.duration_minutes)


class SubscriptionLedger:
    """Records payments and projects them onto the user's premium state."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def record_payment(
        self,
        email: str,
        price: float,
        duration_minutes: int,
    ) -> LedgerReceipt:
        """Append a ledger entry and promote the user to premium.

        Raises:
            InvalidInput: negative price, or a duration that is not positive
                or runs past the representable date range
            NotFound: no user with this email
            PartialFailure: the entry and the role update could not be
                committed together; neither was persisted
        """
        if price is None or price < 0:
            raise InvalidInput("Price must be zero or positive", detail={"price": price})
        if duration_minutes is None or duration_minutes <= 0:
            raise InvalidInput(
                "Duration must be a positive number of minutes",
                detail={"duration_minutes": duration_minutes},
            )

        email = email.strip().lower()
        exists = await self.db.execute(select(User.id).where(User.email == email))
        if exists.scalar_one_or_none() is None:
            raise NotFound("User", email)

        now = self.clock()
        entry = SubscriptionRecord(
            email=email,
            price=price,
            duration_minutes=duration_minutes,
            created_at=now,
        )
        try:
            new_expiry = premium_expiry(entry)
        except OverflowError:
            raise InvalidInput(
                "Duration is too long", detail={"duration_minutes": duration_minutes}
            ) from None

        self.db.add(entry)
        try:
            await self.db.flush()
            result = await self.db.execute(
                update(User)
                .where(User.email == email)
                .values(is_premium=True, premium_expires_at=new_expiry)
                .execution_options(synchronize_session="fetch")
            )
            if result.rowcount != 1:
                raise PartialFailure(
                    "Payment recorded but premium status could not be updated",
                    detail={"email": email},
                )
            await self.db.commit()
        except PartialFailure:
            await self.db.rollback()
            logger.error("Ledger write rolled back for %s: role update matched no user", email)
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Ledger write rolled back for %s: %s", email, exc)
            raise PartialFailure(
                "Payment could not be recorded together with the premium update",
                detail={"email": email},
            ) from exc

        logger.info(
            "Recorded payment %s for %s: price=%s duration=%d min, premium until %s",
            entry.id,
            email,
            price,
            duration_minutes,
            new_expiry.isoformat(),
        )
        return LedgerReceipt(ledger_entry_id=entry.id, new_expiry=new_expiry, entry=entry)

    async def latest_entry(self, email: str) -> Optional[SubscriptionRecord]:
        result = await self.db.execute(
            select(SubscriptionRecord)
            .where(SubscriptionRecord.email == email.strip().lower())
            .order_by(SubscriptionRecord.created_at.desc(), SubscriptionRecord.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def rebuild(self, email: str) -> Optional[datetime]:
        """Recompute the user's premium fields from the latest ledger entry.

        Idempotent. Returns the resulting expiry, or None when the user has
        no ledger entries.

        Raises:
            NotFound: no user with this email
        """
        email = email.strip().lower()
        entry = await self.latest_entry(email)
        expiry = premium_expiry(entry) if entry else None

        result = await self.db.execute(
            update(User)
            .where(User.email == email)
            .values(is_premium=entry is not None, premium_expires_at=expiry)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFound("User", email)
        await self.db.commit()
        logger.info("Rebuilt premium state for %s from ledger: expires %s", email, expiry)
        return expiry

    async def history(self, email: str) -> list[SubscriptionRecord]:
        """Ledger entries for one user, newest first."""
        result = await self.db.execute(
            select(SubscriptionRecord)
            .where(SubscriptionRecord.email == email.strip().lower())
            .order_by(SubscriptionRecord.created_at.desc(), SubscriptionRecord.id.desc())
        )
        return list(result.scalars().all())

    async def total_paid(self, email: str) -> float:
        result = await self.db.execute(
            select(func.coalesce(func.sum(SubscriptionRecord.price), 0)).where(
                SubscriptionRecord.email == email.strip().lower()
            )
        )
        return float(result.scalar() or 0)
