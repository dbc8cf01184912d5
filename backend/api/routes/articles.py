"""
Article API routes.

Every read goes through the access policy: denied articles are dropped
from listings (or rejected for single reads) and paid articles are
reduced to a teaser for callers without premium access.
"""

import logging
from dataclasses import asdict
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import (
    AuthenticatedDep,
    CallerDep,
    PolicyDep,
    get_article_service,
    get_content_query,
)
from api.schemas.content import (
    ArticleCreateRequest,
    ArticleDeleteResponse,
    ArticleModerationRequest,
    ArticleResponse,
    ArticleUpdateRequest,
    ViewCountResponse,
)
from core.domain import Caller
from core.policy import AccessPolicy, Action, Deny, UserResource, redact
from infrastructure.database.models import Article
from services.articles import ArticleService
from services.content_query import ContentQuery, CreatorInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["Articles"])

QueryDep = Annotated[ContentQuery, Depends(get_content_query)]
ArticlesDep = Annotated[ArticleService, Depends(get_article_service)]


def serialize_article(article: Article, creator_info: Optional[CreatorInfo] = None) -> dict:
    data = ArticleResponse.model_validate(article).model_dump(mode="json")
    if creator_info is not None:
        data["creator_info"] = asdict(creator_info)
    else:
        data.pop("creator_info", None)
    return data


def project_article(
    policy: AccessPolicy,
    caller: Caller,
    article: Article,
    creator_info: Optional[CreatorInfo] = None,
) -> Optional[dict]:
    """Serialized article as the caller may see it, or None if denied."""
    decision = policy.can_access(caller, Action.READ_ARTICLE, article)
    if isinstance(decision, Deny):
        return None
    return redact(serialize_article(article, creator_info), decision)


def project_many(policy: AccessPolicy, caller: Caller, articles: list[Article]) -> list[dict]:
    projected = (project_article(policy, caller, article) for article in articles)
    return [item for item in projected if item is not None]


@router.get("/slider")
async def slider_articles(caller: CallerDep, policy: PolicyDep, query: QueryDep) -> list[dict]:
    """The six most viewed approved articles."""
    return project_many(policy, caller, await query.top_viewed())


@router.get("/most-popular")
async def most_popular_articles(
    caller: CallerDep, policy: PolicyDep, query: QueryDep
) -> list[dict]:
    """Ranks seven to eleven by views, right after the slider."""
    return project_many(policy, caller, await query.most_popular())


@router.get("/approved")
async def approved_articles(
    caller: CallerDep,
    policy: PolicyDep,
    query: QueryDep,
    tags: Optional[str] = Query(None, max_length=100),
    publisher: Optional[str] = Query(None, max_length=255),
    title: Optional[str] = Query(None, max_length=500),
) -> list[dict]:
    """
    Approved articles filtered by title, tag and publisher.

    ``tags=all`` and ``publisher=All Publishers`` mean no filter.
    """
    articles = await query.approved(title=title, tags=tags, publisher=publisher)
    return project_many(policy, caller, articles)


@router.get("/premium")
async def premium_articles(
    caller: AuthenticatedDep, policy: PolicyDep, query: QueryDep
) -> list[dict]:
    """Approved paid articles, full for premium callers and teasers otherwise."""
    return project_many(policy, caller, await query.premium())


@router.get("")
async def list_all_articles(
    caller: AuthenticatedDep,
    policy: PolicyDep,
    query: QueryDep,
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
) -> list[dict]:
    """Every article in any status with creator info (administrators)."""
    policy.enforce(caller, Action.LIST_ALL_ARTICLES)
    rows = await query.all_with_creators(skip=skip, limit=limit)
    return [serialize_article(row.article, row.creator_info) for row in rows]


@router.get("/creator/{email}")
async def creator_articles(
    email: str, caller: AuthenticatedDep, policy: PolicyDep, query: QueryDep
) -> list[dict]:
    """All articles of one creator, any status."""
    policy.enforce(caller, Action.LIST_CREATOR_ARTICLES, UserResource(email))
    return [serialize_article(article) for article in await query.by_creator(email)]


@router.get("/{article_id}")
async def get_article(
    article_id: str, caller: AuthenticatedDep, policy: PolicyDep, query: QueryDep
) -> dict:
    """One article with its creator's public info."""
    row = await query.get_with_creator(article_id)
    decision = policy.enforce(caller, Action.READ_ARTICLE, row.article)
    return redact(serialize_article(row.article, row.creator_info), decision)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_article(
    body: ArticleCreateRequest,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    articles: ArticlesDep,
) -> dict:
    """Submit an article for moderation."""
    policy.enforce(caller, Action.CREATE_ARTICLE)
    article = await articles.create(
        caller.email,
        title=body.title,
        publisher_id=body.publisher_id,
        description=body.description,
        body=body.body,
        image=body.image,
        tags=body.tags,
    )
    return serialize_article(article)


@router.put("/{article_id}")
async def update_article(
    article_id: str,
    body: ArticleUpdateRequest,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    query: QueryDep,
    articles: ArticlesDep,
) -> dict:
    """Edit content. The article returns to pending and loses its paid flag."""
    article = await query.get(article_id)
    policy.enforce(caller, Action.UPDATE_ARTICLE, article)
    article = await articles.update_content(article, body.model_dump(exclude_unset=True))
    return serialize_article(article)


@router.patch("/status-update/{article_id}")
async def moderate_article(
    article_id: str,
    body: ArticleModerationRequest,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    query: QueryDep,
    articles: ArticlesDep,
) -> dict:
    """Approve, reject or re-queue an article and set its paid flag."""
    article = await query.get(article_id)
    policy.enforce(caller, Action.MODERATE_ARTICLE, article)
    article = await articles.moderate(article, status=body.status, is_paid=body.is_paid)
    return serialize_article(article)


@router.patch("/view-count/{article_id}", response_model=ViewCountResponse)
async def increment_view_count(article_id: str, query: QueryDep) -> ViewCountResponse:
    """Count one view. Open to anyone."""
    count = await query.increment_view_count(article_id)
    return ViewCountResponse(id=article_id, view_count=count)


@router.delete("/{article_id}", response_model=ArticleDeleteResponse)
async def delete_article(
    article_id: str,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    query: QueryDep,
    articles: ArticlesDep,
) -> ArticleDeleteResponse:
    article = await query.get(article_id)
    policy.enforce(caller, Action.DELETE_ARTICLE, article)
    await articles.delete(article)
    return ArticleDeleteResponse(deleted_id=article_id)
