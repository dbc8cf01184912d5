"""Caller role domain entities."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes from the store as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class RoleSnapshot:
    """Role flags of one user, with premium evaluated at ``evaluated_at``."""

    is_admin: bool
    is_premium: bool
    premium_expires_at: Optional[datetime]
    evaluated_at: datetime

    @classmethod
    def evaluate(
        cls,
        *,
        is_admin: bool,
        stored_premium: bool,
        premium_expires_at: Optional[datetime],
        now: datetime,
    ) -> "RoleSnapshot":
        expires_at = as_utc(premium_expires_at)
        active = bool(stored_premium and expires_at is not None and expires_at > now)
        return cls(
            is_admin=is_admin,
            is_premium=active,
            premium_expires_at=expires_at,
            evaluated_at=now,
        )


@dataclass(frozen=True)
class Anonymous:
    """Caller without a valid credential."""

    email: None = None
    is_admin: bool = False


@dataclass(frozen=True)
class Authenticated:
    """Caller with a valid credential and no active premium."""

    email: str
    is_admin: bool = False


@dataclass(frozen=True)
class Premium(Authenticated):
    """Authenticated caller whose premium access has not expired."""

    expires_at: Optional[datetime] = None


Caller = Union[Anonymous, Authenticated, Premium]


def caller_for(email: str, snapshot: Optional[RoleSnapshot]) -> Caller:
    """Build the caller variant for a verified identity.

    ``snapshot`` is None when the identity has no stored user record.
    """
    if snapshot is None:
        return Authenticated(email=email)
    if snapshot.is_premium:
        return Premium(
            email=email,
            is_admin=snapshot.is_admin,
            expires_at=snapshot.premium_expires_at,
        )
    return Authenticated(email=email, is_admin=snapshot.is_admin)
