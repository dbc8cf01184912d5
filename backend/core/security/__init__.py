"""
Security utilities for authentication.
"""

from .claims import ACCESS_TOKEN_COOKIE, Claims, ClaimsVerifier
from .tokens import TokenPayload, TokenService

__all__ = [
    "ACCESS_TOKEN_COOKIE",
    "Claims",
    "ClaimsVerifier",
    "TokenService",
    "TokenPayload",
]
