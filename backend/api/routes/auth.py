"""
Authentication API routes.

Identity comes from the web client's own sign-in flow; this service only
signs a token for the email it is given. In cookie mode the token is set
as an HttpOnly cookie instead of being returned in the body.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from api.dependencies import get_token_service, get_user_service
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.auth import TokenRequest
from core.security import ACCESS_TOKEN_COOKIE, TokenService
from infrastructure.config.settings import settings
from services.users import UserService

logger = logging.getLogger(__name__)


def _get_cookie_kwargs(settings_obj) -> dict:
    """Return cookie kwargs based on environment.

    Uses SameSite=None; Secure=True whenever the frontend is served from a
    non-localhost domain. SameSite=Lax is kept for local development.
    """
    is_production = getattr(settings_obj, "environment", "development") == "production"
    frontend_url = getattr(settings_obj, "frontend_url", "http://localhost:5173")
    is_deployed = not any(h in frontend_url for h in ("localhost", "127.0.0.1", "0.0.0.0"))
    use_cross_site = is_production or is_deployed
    kwargs = dict(
        httponly=True,
        secure=use_cross_site,
        samesite="none" if use_cross_site else "lax",
        path="/",
    )
    cookie_domain = getattr(settings_obj, "cookie_domain", None)
    if cookie_domain:
        kwargs["domain"] = cookie_domain
    return kwargs


def _set_auth_cookie(response: JSONResponse, access_token: str, max_age: int, settings_obj) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE, access_token, max_age=max_age, **_get_cookie_kwargs(settings_obj)
    )


def _clear_auth_cookie(response: JSONResponse, settings_obj) -> None:
    response.delete_cookie(ACCESS_TOKEN_COOKIE, **_get_cookie_kwargs(settings_obj))


router = APIRouter(tags=["Authentication"])


@router.post("/jwt")
@limiter.limit(get_rate_limit("token"))
async def issue_token(
    request: Request,
    body: TokenRequest,
    token_service: Annotated[TokenService, Depends(get_token_service)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> JSONResponse:
    """
    Issue an identity token for an email.

    Records ``last_login_at`` when the user is already registered.
    """
    email = body.email.strip().lower()
    access_token = token_service.create_access_token(email, name=body.name)
    await users.record_login(email)

    expires_in = token_service.expire_minutes * 60
    if settings.auth_transport == "cookie":
        response = JSONResponse(content={"token_type": "cookie", "expires_in": expires_in})
        _set_auth_cookie(response, access_token, expires_in, settings)
    else:
        response = JSONResponse(
            content={"token": access_token, "token_type": "bearer", "expires_in": expires_in}
        )

    logger.info("Issued token for %s via %s", email, settings.auth_transport)
    return response


@router.delete("/logout", status_code=status.HTTP_200_OK)
async def logout(request: Request) -> JSONResponse:
    """
    Clear the auth cookie.

    Tokens are stateless; a bearer client must simply discard its token.
    """
    response = JSONResponse(content={"success": True})
    _clear_auth_cookie(response, settings)
    return response
