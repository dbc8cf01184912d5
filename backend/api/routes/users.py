"""
User API routes: registration, profiles, roles and summaries.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status

from api.dependencies import (
    AuthenticatedDep,
    ClockDep,
    PolicyDep,
    get_analytics,
    get_role_resolver,
    get_user_service,
)
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.users import (
    RoleResponse,
    UserCountsResponse,
    UserListResponse,
    UserProfileUpdateRequest,
    UserRegisterRequest,
    UserRegisterResponse,
    UserResponse,
    UserRoleUpdateRequest,
    UserSummaryResponse,
)
from core.policy import Action, UserResource
from services.analytics import AnalyticsAggregator
from services.role_resolver import RoleResolver
from services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

UsersDep = Annotated[UserService, Depends(get_user_service)]
AnalyticsDep = Annotated[AnalyticsAggregator, Depends(get_analytics)]


@router.get("", response_model=UserListResponse)
async def list_users(
    caller: AuthenticatedDep,
    policy: PolicyDep,
    users: UsersDep,
    clock: ClockDep,
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
) -> UserListResponse:
    """Page through all users (administrators)."""
    policy.enforce(caller, Action.LIST_USERS)
    items, total = await users.list_users(skip=skip, limit=limit)
    return UserListResponse(
        items=[UserResponse.from_user(u, clock()) for u in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/counts", response_model=UserCountsResponse)
async def user_counts(analytics: AnalyticsDep) -> UserCountsResponse:
    """Premium and non-premium user counts for the landing page."""
    premium, non_premium = await analytics.premium_counts()
    return UserCountsResponse(premium=premium, non_premium=non_premium)


@router.get("/role/{email}", response_model=RoleResponse)
async def get_role(
    email: str,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    resolver: Annotated[RoleResolver, Depends(get_role_resolver)],
) -> RoleResponse:
    """Role flags with premium evaluated now."""
    policy.enforce(caller, Action.VIEW_USER, UserResource(email))
    snapshot = await resolver.resolve(email)
    return RoleResponse(
        email=email.strip().lower(),
        is_admin=snapshot.is_admin,
        is_premium=snapshot.is_premium,
        premium_expires_at=snapshot.premium_expires_at,
    )


@router.get("/{email}", response_model=UserSummaryResponse)
async def get_user_summary(
    email: str,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    analytics: AnalyticsDep,
    clock: ClockDep,
) -> UserSummaryResponse:
    """A user with article count, total views and total paid."""
    policy.enforce(caller, Action.VIEW_USER, UserResource(email))
    summary = await analytics.user_summary(email)
    return UserSummaryResponse(
        user=UserResponse.from_user(summary.user, clock()),
        articles=summary.articles,
        total_views=summary.total_views,
        total_payment=summary.total_payment,
    )


@router.patch("/role/update/{email}", response_model=UserResponse)
async def update_role(
    email: str,
    body: UserRoleUpdateRequest,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    users: UsersDep,
    clock: ClockDep,
) -> UserResponse:
    """
    Change role flags.

    ``is_admin`` needs an administrator. A user may clear their own
    ``is_premium``; setting it to true is refused for everyone.
    """
    if body.is_admin is not None:
        policy.enforce(caller, Action.MANAGE_USER_ROLES, UserResource(email))
    if body.is_premium is not None:
        policy.enforce(caller, Action.UPDATE_OWN_ROLE, UserResource(email))

    user = await users.get_by_email(email)
    user = await users.update_role(user, is_admin=body.is_admin, is_premium=body.is_premium)
    logger.info("Role update on %s by %s", user.email, caller.email)
    return UserResponse.from_user(user, clock())


@router.patch("/update/{user_id}", response_model=UserResponse)
async def update_profile(
    user_id: str,
    body: UserProfileUpdateRequest,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    users: UsersDep,
    clock: ClockDep,
) -> UserResponse:
    """Change display name and image."""
    user = await users.get_by_id(user_id)
    policy.enforce(caller, Action.UPDATE_PROFILE, UserResource(user.email))
    user = await users.update_profile(user, body.model_dump(exclude_unset=True))
    return UserResponse.from_user(user, clock())


@router.post("", response_model=UserRegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("register"))
async def register_user(
    request: Request,
    response: Response,
    body: UserRegisterRequest,
    users: UsersDep,
    clock: ClockDep,
) -> UserRegisterResponse:
    """
    Register a user. Idempotent: an existing email is returned unchanged
    with status 200.
    """
    user, created = await users.register(body.email, name=body.name, image=body.image)
    if not created:
        response.status_code = status.HTTP_200_OK
        return UserRegisterResponse(
            message="User already exists",
            created=False,
            user=UserResponse.from_user(user, clock()),
        )
    return UserRegisterResponse(
        message="User created", created=True, user=UserResponse.from_user(user, clock())
    )
