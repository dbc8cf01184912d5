"""
Access policy for articles, users, publishers, payments and analytics.

``AccessPolicy.can_access`` is a pure function of the caller, the action
and the resource. It never touches the database: callers resolve the
role first (see ``services.role_resolver``) and pass the loaded resource.

Precedence, highest first:

1. administrator privilege
2. ownership (article creator, or the user acting on their own record)
3. premium entitlement (only relevant to paid articles)
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal, Optional, Protocol, Union

from .domain import Anonymous, Caller, Premium
from .errors import Forbidden, Unauthenticated


class Action(StrEnum):
    """Operations subject to the access policy."""

    READ_ARTICLE = "read_article"
    CREATE_ARTICLE = "create_article"
    UPDATE_ARTICLE = "update_article"
    MODERATE_ARTICLE = "moderate_article"
    DELETE_ARTICLE = "delete_article"
    LIST_CREATOR_ARTICLES = "list_creator_articles"
    LIST_ALL_ARTICLES = "list_all_articles"

    LIST_USERS = "list_users"
    VIEW_USER = "view_user"
    UPDATE_PROFILE = "update_profile"
    UPDATE_OWN_ROLE = "update_own_role"
    MANAGE_USER_ROLES = "manage_user_roles"

    READ_PUBLISHER = "read_publisher"
    CREATE_PUBLISHER = "create_publisher"

    CREATE_PAYMENT_INTENT = "create_payment_intent"
    RECORD_PAYMENT = "record_payment"

    VIEW_ANALYTICS = "view_analytics"


# Every field of the public article representation
ARTICLE_FIELDS = frozenset(
    {
        "id",
        "title",
        "description",
        "body",
        "image",
        "tags",
        "creator",
        "creator_info",
        "publisher",
        "status",
        "is_paid",
        "view_count",
        "created_at",
        "updated_at",
    }
)

# What a caller without access to a paid article still sees
TEASER_FIELDS = frozenset(
    {"id", "title", "description", "image", "tags", "publisher", "is_paid", "status", "created_at"}
)


class ArticleLike(Protocol):
    status: str
    is_paid: bool
    creator: str


@dataclass(frozen=True)
class UserResource:
    """A user record addressed by email."""

    email: str


@dataclass(frozen=True)
class Allow:
    allowed = True


@dataclass(frozen=True)
class Deny:
    reason: str
    # True when the caller could be allowed after authenticating
    needs_authentication: bool = False
    allowed = False


@dataclass(frozen=True)
class AllowRedacted:
    fields_to_strip: frozenset = field(default_factory=frozenset)
    allowed = True


Decision = Union[Allow, Deny, AllowRedacted]

ALLOW = Allow()


def _same_email(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


class AccessPolicy:
    """Decides Allow / Deny / AllowRedacted for a caller and an action."""

    def __init__(
        self,
        paid_article_access: Literal["teaser", "deny"] = "teaser",
        article_delete_policy: Literal["admin_only", "admin_or_creator"] = "admin_only",
    ):
        self.paid_article_access = paid_article_access
        self.article_delete_policy = article_delete_policy

    def can_access(self, caller: Caller, action: Action, resource: Any = None) -> Decision:
        if action == Action.READ_PUBLISHER:
            return ALLOW

        if action == Action.READ_ARTICLE:
            return self._read_article(caller, resource)

        if isinstance(caller, Anonymous):
            return Deny("Authentication required", needs_authentication=True)

        if caller.is_admin:
            return ALLOW

        if action in (Action.CREATE_ARTICLE, Action.CREATE_PAYMENT_INTENT):
            return ALLOW

        if action == Action.UPDATE_ARTICLE:
            if _same_email(caller.email, resource.creator):
                return ALLOW
            return Deny("Only the creator or an administrator may edit this article")

        if action == Action.DELETE_ARTICLE:
            if self.article_delete_policy == "admin_or_creator" and _same_email(
                caller.email, resource.creator
            ):
                return ALLOW
            return Deny("You are not allowed to delete this article")

        if action in (
            Action.VIEW_USER,
            Action.UPDATE_PROFILE,
            Action.UPDATE_OWN_ROLE,
            Action.LIST_CREATOR_ARTICLES,
            Action.RECORD_PAYMENT,
        ):
            if _same_email(caller.email, resource.email):
                return ALLOW
            return Deny("You may only act on your own account")

        # Administrator-only actions
        return Deny("Administrator access required")

    def _read_article(self, caller: Caller, article: ArticleLike) -> Decision:
        is_owner = not isinstance(caller, Anonymous) and _same_email(caller.email, article.creator)
        if caller.is_admin or is_owner:
            return ALLOW

        if article.status != "approved":
            return Deny(
                "This article is not published",
                needs_authentication=isinstance(caller, Anonymous),
            )

        if not article.is_paid or isinstance(caller, Premium):
            return ALLOW

        if self.paid_article_access == "teaser":
            return AllowRedacted(fields_to_strip=ARTICLE_FIELDS - TEASER_FIELDS)
        return Deny(
            "Premium subscription required",
            needs_authentication=isinstance(caller, Anonymous),
        )

    def enforce(self, caller: Caller, action: Action, resource: Any = None) -> Decision:
        """Like ``can_access`` but raises on ``Deny``.

        Raises:
            Unauthenticated: anonymous caller denied
            Forbidden: authenticated caller denied
        """
        decision = self.can_access(caller, action, resource)
        if isinstance(decision, Deny):
            if isinstance(caller, Anonymous) or decision.needs_authentication:
                raise Unauthenticated(decision.reason)
            raise Forbidden(decision.reason)
        return decision


def redact(data: dict, decision: Decision) -> dict:
    """Apply a decision's projection to a serialized article."""
    if isinstance(decision, AllowRedacted):
        return {k: v for k, v in data.items() if k not in decision.fields_to_strip}
    return data
