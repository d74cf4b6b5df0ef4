"""
Contributions API Router

Endpoints:
- GET /api/contributions/graph - Day-bucketed heatmap data
- GET /api/contributions/stats - User statistics and streak details
- POST /api/contributions/app-open - Once-per-day check-in

The graph and statistics endpoints are fail-open: if the event log
cannot be read they return zeroed data instead of an error.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from flashstudy.config import settings
from flashstudy.dependencies import (
    get_contribution_aggregator,
    get_contribution_tracker,
    require_user,
)
from flashstudy.enums import RateLimitType
from flashstudy.middleware.error_handling import handle_endpoint_errors
from flashstudy.middleware.rate_limit import limiter
from flashstudy.models.contributions import (
    AppOpenResponse,
    ContributionGraphResponse,
    ProfileStatsResponse,
)
from flashstudy.services.contributions import ContributionAggregator, ContributionTracker

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/contributions", tags=["contributions"])


@router.get("/graph", response_model=ContributionGraphResponse)
@handle_endpoint_errors("Get contribution graph")
async def get_contribution_graph(
    days: int = Query(settings.CONTRIBUTION_WINDOW_DAYS, ge=1, le=366),
    user_id: str = Depends(require_user),
    aggregator: ContributionAggregator = Depends(get_contribution_aggregator),
) -> ContributionGraphResponse:
    """
    Contribution heatmap for the trailing window.

    Every day in the window is present, with a count, the event details
    and a 0-4 activity level.
    """
    return await aggregator.contribution_graph(user_id, days=days)


@router.get("/stats", response_model=ProfileStatsResponse)
@handle_endpoint_errors("Get contribution stats")
async def get_contribution_stats(
    user_id: str = Depends(require_user),
    aggregator: ContributionAggregator = Depends(get_contribution_aggregator),
) -> ProfileStatsResponse:
    """Totals, streaks, per-type breakdown, set and card counts."""
    stats = await aggregator.compute_user_stats(user_id)
    streak = await aggregator.streak_data(user_id)
    return ProfileStatsResponse(stats=stats, streak=streak)


@router.post("/app-open", response_model=AppOpenResponse)
@limiter.limit(settings.get_rate_limit(RateLimitType.TRACKING))
@handle_endpoint_errors("Track app open")
async def track_app_open(
    request: Request,
    user_id: str = Depends(require_user),
    tracker: ContributionTracker = Depends(get_contribution_tracker),
) -> AppOpenResponse:
    """Record the daily app_opened event if not already recorded today."""
    return AppOpenResponse(new_contribution=await tracker.track_app_open(user_id))
