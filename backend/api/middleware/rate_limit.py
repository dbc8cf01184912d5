"""
Rate limiting using slowapi.

Requests are keyed by the real client IP. Storage is Redis when
``REDIS_URL`` is set, in-memory otherwise.

Rate Limits:
- Token issue (/jwt): 10 per minute
- Payment intent creation: 10 per minute
- Registration: 10 per minute
- Default: 100 requests per minute
"""

import ipaddress
import logging
import re

from starlette.requests import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

# Quick reject for values that cannot be an IP before parsing
_IP_LIKE = re.compile(r"^[\d.:a-fA-F]+$")


def _is_valid_ip(value: str) -> bool:
    if not _IP_LIKE.match(value):
        return False
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def _is_private_ip(value: str) -> bool:
    """Private, loopback and link-local addresses in proxy headers are spoofable."""
    try:
        addr = ipaddress.ip_address(value)
        return addr.is_private or addr.is_loopback or addr.is_link_local
    except ValueError:
        return False


def _get_real_ip(request: Request) -> str:
    """Client IP from X-Forwarded-For / X-Real-IP, else the socket address.

    Behind a reverse proxy every request would otherwise share the proxy's
    bucket. Private addresses in these headers are ignored.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        candidate = forwarded.split(",")[0].strip()
        if _is_valid_ip(candidate) and not _is_private_ip(candidate):
            return candidate
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        candidate = real_ip.strip()
        if _is_valid_ip(candidate) and not _is_private_ip(candidate):
            return candidate
    return get_remote_address(request)


RATE_LIMITS = {
    "token": "10/minute",
    "payment_intent": "10/minute",
    "register": "10/minute",
    "default": "100/minute",
}

_storage_uri = settings.redis_url if settings.redis_url else "memory://"

if not settings.redis_url and settings.is_production:
    logger.warning(
        "Rate limiter using in-memory storage; limits are per worker process. Set REDIS_URL."
    )

limiter = Limiter(
    key_func=_get_real_ip,
    storage_uri=_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """Rate limit string for an endpoint key, or the default."""
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
