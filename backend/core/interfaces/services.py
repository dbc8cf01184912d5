"""Service interfaces for external integrations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class PaymentIntent:
    """A payment intent created with the payment provider."""

    id: str
    client_secret: str
    amount: int  # smallest currency unit
    currency: str


class PaymentService(ABC):
    """Abstract service for payment processing."""

    @abstractmethod
    async def create_payment_intent(self, price: float) -> PaymentIntent:
        """Create a card payment intent for ``price`` in major currency units."""
        ...
