"""
Billing API routes: Stripe payment intents and the subscription ledger.

The client confirms the card payment with Stripe using the returned
``client_secret`` and then records it through ``/subscription-histories``,
which is the only way a user becomes premium.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from api.dependencies import AuthenticatedDep, PolicyDep, get_ledger, get_payment_service
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.billing import (
    PaymentIntentRequest,
    PaymentIntentResponse,
    SubscriptionHistoryResponse,
    SubscriptionReceiptResponse,
    SubscriptionRecordResponse,
    SubscriptionRequest,
)
from core.interfaces import PaymentService
from core.policy import Action, UserResource
from services.subscription_ledger import SubscriptionLedger

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Billing"])

LedgerDep = Annotated[SubscriptionLedger, Depends(get_ledger)]


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
@limiter.limit(get_rate_limit("payment_intent"))
async def create_payment_intent(
    request: Request,
    body: PaymentIntentRequest,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    payments: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentIntentResponse:
    """Create a card payment intent for the given price."""
    policy.enforce(caller, Action.CREATE_PAYMENT_INTENT)
    intent = await payments.create_payment_intent(body.price)
    logger.info("Payment intent %s created for %s", intent.id, caller.email)
    return PaymentIntentResponse(
        client_secret=intent.client_secret,
        amount=intent.amount,
        currency=intent.currency,
    )


@router.post(
    "/subscription-histories",
    response_model=SubscriptionReceiptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_subscription(
    body: SubscriptionRequest,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    ledger: LedgerDep,
) -> SubscriptionReceiptResponse:
    """Record a completed payment and grant premium for its duration."""
    email = (body.email or caller.email).strip().lower()
    policy.enforce(caller, Action.RECORD_PAYMENT, UserResource(email))

    receipt = await ledger.record_payment(email, body.price, body.duration_minutes)
    return SubscriptionReceiptResponse(
        ledger_entry_id=receipt.ledger_entry_id,
        premium_expires_at=receipt.new_expiry,
        entry=SubscriptionRecordResponse.model_validate(receipt.entry),
    )


@router.get("/subscription-histories/{email}", response_model=SubscriptionHistoryResponse)
async def subscription_history(
    email: str,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    ledger: LedgerDep,
) -> SubscriptionHistoryResponse:
    """A user's recorded payments, newest first."""
    policy.enforce(caller, Action.VIEW_USER, UserResource(email))
    entries = await ledger.history(email)
    return SubscriptionHistoryResponse(
        email=email.strip().lower(),
        items=[SubscriptionRecordResponse.model_validate(e) for e in entries],
        total_paid=await ledger.total_paid(email),
    )
