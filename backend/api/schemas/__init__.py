"""
API request and response schemas.
"""

from .auth import TokenRequest, TokenResponse
from .content import ArticleCreateRequest, ArticleResponse, PublisherResponse
from .users import UserRegisterRequest, UserResponse

__all__ = [
    "TokenRequest",
    "TokenResponse",
    "ArticleCreateRequest",
    "ArticleResponse",
    "PublisherResponse",
    "UserRegisterRequest",
    "UserResponse",
]
