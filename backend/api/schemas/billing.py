"""
Billing API schemas for payment intents and the subscription ledger.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class PaymentIntentRequest(BaseModel):
    price: float = Field(..., gt=0, description="Price in major currency units")


class PaymentIntentResponse(BaseModel):
    client_secret: str
    amount: int = Field(..., description="Amount in minor currency units")
    currency: str


class SubscriptionRequest(BaseModel):
    """Record a completed payment.

    ``email`` defaults to the caller; only an administrator may record a
    payment for someone else.
    """

    price: float = Field(..., ge=0)
    # Ten years
    duration_minutes: int = Field(
        ..., gt=0, le=5_256_000, description="Premium period in minutes"
    )
    email: EmailStr | None = None


class SubscriptionRecordResponse(BaseModel):
    id: str
    email: str
    price: float
    duration_minutes: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionReceiptResponse(BaseModel):
    """Ledger entry id and the resulting premium expiry."""

    ledger_entry_id: str
    premium_expires_at: datetime
    entry: SubscriptionRecordResponse


class SubscriptionHistoryResponse(BaseModel):
    email: str
    items: list[SubscriptionRecordResponse]
    total_paid: float
