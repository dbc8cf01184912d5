"""Payment adapters for premium subscriptions."""

from .stripe_adapter import StripeAdapter, create_stripe_adapter, to_minor_units

__all__ = [
    "StripeAdapter",
    "create_stripe_adapter",
    "to_minor_units",
]
