"""
API dependencies for authentication, authorization and services.

Request flow: token -> ``Claims`` -> ``RoleResolver`` -> ``Caller``. Routes
then ask the ``AccessPolicy`` whether the caller may perform an action.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.payments import create_stripe_adapter
from core.domain import Authenticated, Caller
from core.interfaces import PaymentService
from core.policy import AccessPolicy
from core.security import Claims, ClaimsVerifier, TokenService
from infrastructure.config.settings import settings
from infrastructure.database import get_db
from services.analytics import AnalyticsAggregator
from services.articles import ArticleService
from services.content_query import ContentQuery
from services.role_resolver import Clock, RoleResolver, utcnow
from services.subscription_ledger import SubscriptionLedger
from services.users import UserService


@lru_cache
def get_token_service() -> TokenService:
    return TokenService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.jwt_expire_minutes,
    )


def get_claims_verifier(
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> ClaimsVerifier:
    return ClaimsVerifier(token_service, transport=settings.auth_transport)


def get_clock() -> Clock:
    """Time source for premium evaluation; overridden in tests."""
    return utcnow


def get_policy() -> AccessPolicy:
    return AccessPolicy(
        paid_article_access=settings.paid_article_access,
        article_delete_policy=settings.article_delete_policy,
    )


@lru_cache
def get_payment_service() -> PaymentService:
    return create_stripe_adapter()


async def get_optional_claims(
    request: Request,
    verifier: Annotated[ClaimsVerifier, Depends(get_claims_verifier)],
) -> Optional[Claims]:
    return verifier.verify_request_optional(request)


async def get_claims(
    request: Request,
    verifier: Annotated[ClaimsVerifier, Depends(get_claims_verifier)],
) -> Claims:
    """
    Raises:
        Unauthenticated: no token, or the token is invalid or expired
    """
    return verifier.verify_request(request)


def get_role_resolver(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> RoleResolver:
    return RoleResolver(db, clock=clock)


async def get_caller(
    claims: Annotated[Optional[Claims], Depends(get_optional_claims)],
    resolver: Annotated[RoleResolver, Depends(get_role_resolver)],
) -> Caller:
    """Caller for public endpoints; anonymous when no valid token is sent."""
    return await resolver.resolve_caller(claims)


async def get_authenticated_caller(
    claims: Annotated[Claims, Depends(get_claims)],
    resolver: Annotated[RoleResolver, Depends(get_role_resolver)],
) -> Authenticated:
    """Caller for endpoints that require a valid token."""
    return await resolver.resolve_caller(claims)


def get_content_query(db: Annotated[AsyncSession, Depends(get_db)]) -> ContentQuery:
    return ContentQuery(db)


def get_article_service(db: Annotated[AsyncSession, Depends(get_db)]) -> ArticleService:
    return ArticleService(db)


def get_ledger(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> SubscriptionLedger:
    return SubscriptionLedger(db, clock=clock)


def get_user_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> UserService:
    return UserService(db, clock=clock)


def get_analytics(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AnalyticsAggregator:
    return AnalyticsAggregator(db, clock=clock)


# Shorthand annotations used by the route modules
CallerDep = Annotated[Caller, Depends(get_caller)]
AuthenticatedDep = Annotated[Authenticated, Depends(get_authenticated_caller)]
ClockDep = Annotated[Clock, Depends(get_clock)]
PolicyDep = Annotated[AccessPolicy, Depends(get_policy)]
