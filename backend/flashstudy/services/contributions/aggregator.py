"""
Contribution Aggregation Service

Turns the raw contribution event log into day buckets for the contribution
graph and into derived per-user statistics.

Responsibilities:
- Zero-filled, day-bucketed counts and details over a date window
- Heatmap data (activity levels, totals)
- User statistics: totals, streaks, per-type breakdown, sets, cards studied

Failure policy:
    All reads here feed display widgets, so they are fail-open. A failed
    event read yields an empty mapping, and each statistics sub-query that
    fails zeroes only its own field. Defaults are applied explicitly via
    Result.unwrap_or.

Usage:
    from flashstudy.services.contributions.aggregator import ContributionAggregator

    aggregator = ContributionAggregator(contribution_store, set_store)
    buckets = await aggregator.aggregate(user_id)
    stats = await aggregator.compute_user_stats(user_id)
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Protocol

from flashstudy.config import settings
from flashstudy.models.contributions import (
    ContributionDetail,
    ContributionGraphDay,
    ContributionGraphResponse,
    DayBucket,
    StreakData,
    UserStats,
)
from flashstudy.services.contributions.store import ContributionStore
from flashstudy.services.contributions.streaks import (
    activity_level,
    contribution_days,
    current_streak,
    current_streak_with_start,
    longest_streak,
    milestones_reached,
    next_milestone,
)
from flashstudy.services.contributions.timeutils import Clock, ensure_utc, utc_day, utc_now
from flashstudy.services.result import Result

logger = logging.getLogger(__name__)


class SetCounter(Protocol):
    """Anything that can count a user's flashcard sets."""

    async def count_sets(self, user_id: str) -> Result[int]: ...


class ContributionAggregator:
    """
    Read-side service over the contribution event log.

    Attributes:
        store: Contribution event store
        set_counter: Source for the flashcard set count (optional)
        clock: Callable returning the current UTC time
    """

    def __init__(
        self,
        store: ContributionStore,
        set_counter: Optional[SetCounter] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.set_counter = set_counter
        self.clock = clock or utc_now

    # =========================================================================
    # Day Buckets
    # =========================================================================

    async def aggregate(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> dict[date, DayBucket]:
        """
        Aggregate a user's events into per-day buckets.

        Every UTC calendar day from start to end (inclusive) gets a bucket,
        zero-filled when there were no events, so the window renders as a
        contiguous range. Bucket counts sum event values; details keep the
        order in which events were returned (newest first).

        Args:
            user_id: User whose events to aggregate
            start: Window start (defaults to end - CONTRIBUTION_WINDOW_DAYS)
            end: Window end (defaults to now)

        Returns:
            Ordered mapping of day -> DayBucket, or an empty mapping if the
            event log could not be read.
        """
        end = ensure_utc(end) if end else self.clock()
        start = (
            ensure_utc(start)
            if start
            else end - timedelta(days=settings.CONTRIBUTION_WINDOW_DAYS)
        )

        if start > end:
            logger.warning(f"Empty contribution window: start {start} after end {end}")
            return {}

        events = (await self.store.list_events(user_id, start, end)).unwrap_or(
            None, context=f"contribution graph of user {user_id}"
        )
        if events is None:
            return {}

        buckets: dict[date, DayBucket] = {}
        day = start.date()
        while day <= end.date():
            buckets[day] = DayBucket(date=day)
            day += timedelta(days=1)

        for event in events:
            bucket = buckets.get(utc_day(event.created_at))
            if bucket is None:
                logger.debug(f"Event {event.id} outside window, skipping")
                continue
            bucket.count += event.value
            bucket.details.append(
                ContributionDetail(
                    type=event.type,
                    value=event.value,
                    time=event.created_at,
                    metadata=event.metadata,
                )
            )

        return buckets

    async def contribution_graph(
        self, user_id: str, days: Optional[int] = None
    ) -> ContributionGraphResponse:
        """
        Heatmap data for the trailing window ending now.

        Args:
            user_id: User whose events to aggregate
            days: Window length in days (defaults to CONTRIBUTION_WINDOW_DAYS)

        Returns:
            ContributionGraphResponse with levels and totals
        """
        end = self.clock()
        start = end - timedelta(days=days or settings.CONTRIBUTION_WINDOW_DAYS)
        buckets = await self.aggregate(user_id, start, end)

        graph_days = [
            ContributionGraphDay(
                date=bucket.date,
                count=bucket.count,
                details=bucket.details,
                level=activity_level(bucket.count),
            )
            for bucket in buckets.values()
        ]

        return ContributionGraphResponse(
            start=start.date(),
            end=end.date(),
            days=graph_days,
            total_contributions=sum(d.count for d in graph_days),
            active_days=sum(1 for d in graph_days if d.count > 0),
            max_daily_count=max((d.count for d in graph_days), default=0),
        )

    # =========================================================================
    # Statistics
    # =========================================================================

    async def compute_user_stats(self, user_id: str) -> UserStats:
        """
        Compute derived statistics for a user.

        Runs independent sub-queries for the total, event days, set count,
        cards studied and per-type sums. A failing sub-query zeroes only
        its own field.

        Args:
            user_id: User to compute statistics for

        Returns:
            UserStats (never raises for collaborator failures)
        """
        total = (await self.store.total_value(user_id)).unwrap_or(
            0, context="total contributions"
        )

        timestamps = (await self.store.event_timestamps(user_id)).unwrap_or(
            [], context="contribution days"
        )
        days = contribution_days(timestamps)
        today = self.clock().date()

        sets_count = 0
        if self.set_counter is not None:
            sets_count = (await self.set_counter.count_sets(user_id)).unwrap_or(
                0, context="flashcard set count"
            )

        cards_studied = (await self.store.cards_studied(user_id)).unwrap_or(
            0, context="cards studied"
        )
        by_type = (await self.store.value_by_type(user_id)).unwrap_or(
            {}, context="contributions by type"
        )

        return UserStats(
            total_contributions=total,
            current_streak=current_streak(days, today),
            longest_streak=longest_streak(days),
            sets_count=sets_count,
            total_cards_studied=cards_studied,
            contributions_by_type=by_type,
        )

    async def streak_data(self, user_id: str) -> StreakData:
        """
        Detailed streak information (start, milestones, activity today).

        Args:
            user_id: User to compute streaks for

        Returns:
            StreakData, zeroed if the event log could not be read
        """
        timestamps = (await self.store.event_timestamps(user_id)).unwrap_or(
            [], context="streak data"
        )
        days = contribution_days(timestamps)
        if not days:
            return StreakData(next_milestone=next_milestone(0))

        today = self.clock().date()
        current, start = current_streak_with_start(days, today)
        longest = longest_streak(days)

        return StreakData(
            current_streak=current,
            longest_streak=longest,
            streak_start=start,
            last_contribution=max(days),
            is_active_today=today in days,
            milestones_reached=milestones_reached(longest),
            next_milestone=next_milestone(current),
        )
