"""
Subscription ledger model.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class SubscriptionRecord(Base):
    """Append-only record of one payment. Rows are never updated."""

    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_subscriptions_email_created", "email", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<SubscriptionRecord(id={self.id}, email={self.email}, price={self.price})>"
