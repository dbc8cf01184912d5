"""
Admin platform analytics API routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from api.dependencies import AuthenticatedDep, PolicyDep, get_analytics
from api.middleware.rate_limit import limiter
from api.schemas.admin import PlatformReportResponse, PublisherBreakdownResponse
from core.policy import Action
from services.analytics import AnalyticsAggregator

router = APIRouter(prefix="/admin/analytics", tags=["Admin - Analytics"])


def calculate_percentage(part: int, total: int) -> float:
    """Calculate percentage with safe division."""
    if total == 0:
        return 0.0
    return round((part / total) * 100, 2)


@router.get("", response_model=PlatformReportResponse)
@limiter.limit("30/minute")
async def platform_report(
    request: Request,
    caller: AuthenticatedDep,
    policy: PolicyDep,
    analytics: Annotated[AnalyticsAggregator, Depends(get_analytics)],
) -> PlatformReportResponse:
    """
    Platform totals and per-publisher breakdown.

    Each figure is read separately, so totals may disagree slightly while
    writes are in flight.
    """
    policy.enforce(caller, Action.VIEW_ANALYTICS)
    report = await analytics.platform_report()
    return PlatformReportResponse(
        articles=report.articles,
        users=report.users,
        premium=report.premium,
        non_premium=report.non_premium,
        premium_percentage=calculate_percentage(report.premium, report.users),
        publishers=report.publishers,
        subscriptions=report.subscriptions,
        total_revenue=report.total_revenue,
        articles_per_publisher=[
            PublisherBreakdownResponse.model_validate(row) for row in report.articles_per_publisher
        ],
    )
