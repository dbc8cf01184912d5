# Interfaces (Abstract Contracts)
# Adapters implement these interfaces
from .services import PaymentIntent, PaymentService

__all__ = [
    "PaymentIntent",
    "PaymentService",
]
