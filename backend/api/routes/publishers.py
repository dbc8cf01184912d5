"""
Publisher API routes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import AuthenticatedDep, PolicyDep
from api.schemas.content import PublisherCreateRequest, PublisherResponse
from core.errors import InvalidInput
from core.policy import Action
from infrastructure.database import get_db
from infrastructure.database.models import Publisher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/publishers", tags=["Publishers"])


@router.get("", response_model=list[PublisherResponse])
async def list_publishers(db: Annotated[AsyncSession, Depends(get_db)]) -> list[Publisher]:
    """All publishers by name. Public."""
    result = await db.execute(select(Publisher).order_by(Publisher.name))
    return list(result.scalars().all())


@router.post("", response_model=PublisherResponse, status_code=status.HTTP_201_CREATED)
async def create_publisher(
    body: PublisherCreateRequest,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Publisher:
    """Create a publisher (administrators)."""
    policy.enforce(caller, Action.CREATE_PUBLISHER)

    existing = await db.execute(select(Publisher.id).where(Publisher.name == body.name))
    if existing.scalar_one_or_none() is not None:
        raise InvalidInput(f"Publisher '{body.name}' already exists")

    publisher = Publisher(name=body.name, logo=body.logo)
    db.add(publisher)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise InvalidInput(f"Publisher '{body.name}' already exists") from None

    logger.info("Publisher %s created by %s", publisher.name, caller.email)
    return publisher
