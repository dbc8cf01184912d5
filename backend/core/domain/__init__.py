# Domain Entities
# Pure business objects with no external dependencies
from .roles import Anonymous, Authenticated, Caller, Premium, RoleSnapshot, as_utc, caller_for

__all__ = [
    "Anonymous",
    "Authenticated",
    "Premium",
    "Caller",
    "RoleSnapshot",
    "as_utc",
    "caller_for",
]
