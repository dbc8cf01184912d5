"""
Stripe adapter for card payment intents.

The Stripe SDK is synchronous, so calls run in a worker thread and are
bounded by ``timeout`` seconds. SDK errors surface as ``UpstreamFailure``
and slow calls as ``Timeout``; neither is retried here.
"""

import asyncio
import logging
from typing import Optional

import stripe

from core.errors import Timeout, UpstreamFailure
from core.interfaces import PaymentIntent, PaymentService
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


def to_minor_units(price: float) -> int:
    """Convert a price in major units to cents."""
    return int(round(price * 100))


class StripeAdapter(PaymentService):
    """Creates Stripe PaymentIntents for one-off premium purchases."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        currency: str = "usd",
        timeout: float = 15.0,
    ):
        self.secret_key = secret_key
        self.currency = currency
        self.timeout = timeout

        if not self.secret_key:
            logger.warning("Stripe secret key not configured; payment intents will fail")

    def _create(self, amount: int) -> stripe.PaymentIntent:
        return stripe.PaymentIntent.create(
            amount=amount,
            currency=self.currency,
            payment_method_types=["card"],
            api_key=self.secret_key,
        )

    async def create_payment_intent(self, price: float) -> PaymentIntent:
        """
        Create a card PaymentIntent for ``price``.

        Raises:
            UpstreamFailure: Stripe is not configured or rejected the call
            Timeout: Stripe did not answer within ``timeout`` seconds
        """
        if not self.secret_key:
            raise UpstreamFailure("Payment provider is not configured")

        amount = to_minor_units(price)
        try:
            intent = await asyncio.wait_for(
                asyncio.to_thread(self._create, amount),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Stripe PaymentIntent creation timed out after %ss", self.timeout)
            raise Timeout(
                "Payment provider timed out",
                detail={"timeout_seconds": self.timeout},
            ) from None
        except stripe.StripeError as e:
            logger.error("Stripe error creating PaymentIntent: %s", e.user_message or e)
            raise UpstreamFailure(
                "Payment provider error",
                detail={"provider_message": e.user_message},
            ) from e

        logger.info("Created PaymentIntent %s for %d %s", intent.id, amount, self.currency)
        return PaymentIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            amount=amount,
            currency=self.currency,
        )


def create_stripe_adapter(
    secret_key: Optional[str] = None,
    currency: Optional[str] = None,
    timeout: Optional[float] = None,
) -> StripeAdapter:
    """
    Create a Stripe adapter, defaulting every argument to settings.
    """
    return StripeAdapter(
        secret_key=secret_key if secret_key is not None else settings.stripe_secret_key,
        currency=currency or settings.stripe_currency,
        timeout=timeout if timeout is not None else settings.payment_timeout_seconds,
    )
