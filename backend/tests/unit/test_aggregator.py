"""
Unit tests for ContributionAggregator.

The contribution store is mocked; each read returns a Result.

Test Organization:
    - TestAggregate: Day bucketing over a window
    - TestAggregateFailures: Fail-open behaviour on read failures
    - TestContributionGraph: Heatmap response
    - TestUserStats: Derived statistics and per-field defaults
    - TestStreakData: Streak details
"""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from flashstudy.enums import ContributionType, ErrorKind
from flashstudy.services.contributions.aggregator import ContributionAggregator
from flashstudy.services.result import Result


def _store(events=None, **reads) -> MagicMock:
    store = MagicMock()
    store.list_events = AsyncMock(return_value=Result.ok(events or []))
    store.total_value = AsyncMock(return_value=reads.get("total", Result.ok(0)))
    store.event_timestamps = AsyncMock(
        return_value=reads.get("timestamps", Result.ok([]))
    )
    store.cards_studied = AsyncMock(return_value=reads.get("cards", Result.ok(0)))
    store.value_by_type = AsyncMock(return_value=reads.get("by_type", Result.ok({})))
    return store


def _unavailable() -> Result:
    return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, "connection refused")


# ============================================================================
# Aggregate
# ============================================================================


class TestAggregate:
    @pytest.mark.asyncio
    async def test_zero_filled_contiguous_window(self, clock):
        aggregator = ContributionAggregator(_store(), clock=clock)
        start = datetime(2024, 1, 1, 15, tzinfo=timezone.utc)
        end = datetime(2024, 1, 10, 9, tzinfo=timezone.utc)

        buckets = await aggregator.aggregate("user-1", start, end)

        days = list(buckets)
        assert len(days) == 10
        assert days[0] == date(2024, 1, 1)
        assert days[-1] == date(2024, 1, 10)
        assert all(b - a == timedelta(days=1) for a, b in zip(days, days[1:]))
        assert all(bucket.count == 0 for bucket in buckets.values())

    @pytest.mark.asyncio
    async def test_counts_sum_event_values(self, clock, make_event):
        events = [
            make_event(
                datetime(2024, 1, 5, 18, tzinfo=timezone.utc),
                ContributionType.PERFECT_SCORE,
                value=2,
            ),
            make_event(
                datetime(2024, 1, 5, 9, tzinfo=timezone.utc),
                ContributionType.STUDY_COMPLETED,
                metadata={"cards_studied": 4},
            ),
            make_event(datetime(2024, 1, 3, 9, tzinfo=timezone.utc)),
        ]
        aggregator = ContributionAggregator(_store(events), clock=clock)

        buckets = await aggregator.aggregate(
            "user-1",
            datetime(2024, 1, 1, tzinfo=timezone.utc),
            datetime(2024, 1, 10, tzinfo=timezone.utc),
        )

        assert buckets[date(2024, 1, 5)].count == 3
        assert buckets[date(2024, 1, 3)].count == 1
        assert buckets[date(2024, 1, 4)].count == 0

    @pytest.mark.asyncio
    async def test_details_keep_arrival_order(self, clock, make_event):
        events = [
            make_event(
                datetime(2024, 1, 5, 18, tzinfo=timezone.utc),
                ContributionType.PERFECT_SCORE,
                value=2,
            ),
            make_event(
                datetime(2024, 1, 5, 9, tzinfo=timezone.utc),
                ContributionType.STUDY_COMPLETED,
            ),
        ]
        aggregator = ContributionAggregator(_store(events), clock=clock)

        buckets = await aggregator.aggregate(
            "user-1",
            datetime(2024, 1, 5, tzinfo=timezone.utc),
            datetime(2024, 1, 6, tzinfo=timezone.utc),
        )

        details = buckets[date(2024, 1, 5)].details
        assert [d.type for d in details] == [
            ContributionType.PERFECT_SCORE,
            ContributionType.STUDY_COMPLETED,
        ]
        assert details[0].value == 2
        assert details[0].metadata.type == "perfect_score"

    @pytest.mark.asyncio
    async def test_default_window_is_one_year_ending_now(self, clock, fixed_now):
        store = _store()
        aggregator = ContributionAggregator(store, clock=clock)

        buckets = await aggregator.aggregate("user-1")

        assert len(buckets) == 366
        assert max(buckets) == fixed_now.date()
        _, start, end = store.list_events.await_args.args
        assert end == fixed_now
        assert start == fixed_now - timedelta(days=365)

    @pytest.mark.asyncio
    async def test_single_day_window(self, clock):
        aggregator = ContributionAggregator(_store(), clock=clock)
        day = datetime(2024, 1, 5, tzinfo=timezone.utc)

        buckets = await aggregator.aggregate("user-1", day, day + timedelta(hours=3))

        assert list(buckets) == [date(2024, 1, 5)]

    @pytest.mark.asyncio
    async def test_event_outside_window_ignored(self, clock, make_event):
        events = [make_event(datetime(2023, 12, 31, 23, tzinfo=timezone.utc))]
        aggregator = ContributionAggregator(_store(events), clock=clock)

        buckets = await aggregator.aggregate(
            "user-1",
            datetime(2024, 1, 1, tzinfo=timezone.utc),
            datetime(2024, 1, 2, tzinfo=timezone.utc),
        )

        assert len(buckets) == 2
        assert sum(b.count for b in buckets.values()) == 0

    @pytest.mark.asyncio
    async def test_idempotent(self, clock, make_event):
        events = [make_event(datetime(2024, 1, 5, 9, tzinfo=timezone.utc))]
        aggregator = ContributionAggregator(_store(events), clock=clock)
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        end = datetime(2024, 1, 10, tzinfo=timezone.utc)

        first = await aggregator.aggregate("user-1", start, end)
        second = await aggregator.aggregate("user-1", start, end)

        assert first == second


# ============================================================================
# Failures
# ============================================================================


class TestAggregateFailures:
    @pytest.mark.asyncio
    async def test_read_failure_returns_empty(self, clock):
        store = _store()
        store.list_events = AsyncMock(return_value=_unavailable())
        aggregator = ContributionAggregator(store, clock=clock)

        assert await aggregator.aggregate("user-1") == {}

    @pytest.mark.asyncio
    async def test_inverted_window_returns_empty(self, clock):
        store = _store()
        aggregator = ContributionAggregator(store, clock=clock)

        buckets = await aggregator.aggregate(
            "user-1",
            datetime(2024, 1, 10, tzinfo=timezone.utc),
            datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

        assert buckets == {}
        store.list_events.assert_not_awaited()


# ============================================================================
# Graph
# ============================================================================


class TestContributionGraph:
    @pytest.mark.asyncio
    async def test_graph_totals_and_levels(self, clock, make_event):
        events = [
            make_event(datetime(2024, 1, 9, 10, tzinfo=timezone.utc), value=2)
            for _ in range(2)
        ] + [make_event(datetime(2024, 1, 8, 10, tzinfo=timezone.utc))]
        aggregator = ContributionAggregator(_store(events), clock=clock)

        graph = await aggregator.contribution_graph("user-1", days=7)

        assert graph.end == date(2024, 1, 10)
        assert graph.start == date(2024, 1, 3)
        assert len(graph.days) == 8
        assert graph.total_contributions == 5
        assert graph.active_days == 2
        assert graph.max_daily_count == 4
        levels = {d.date: d.level for d in graph.days}
        assert levels[date(2024, 1, 9)] == 2
        assert levels[date(2024, 1, 8)] == 1
        assert levels[date(2024, 1, 7)] == 0

    @pytest.mark.asyncio
    async def test_graph_empty_on_failure(self, clock):
        store = _store()
        store.list_events = AsyncMock(return_value=_unavailable())
        aggregator = ContributionAggregator(store, clock=clock)

        graph = await aggregator.contribution_graph("user-1")

        assert graph.days == []
        assert graph.total_contributions == 0


# ============================================================================
# Statistics
# ============================================================================


class TestUserStats:
    @pytest.mark.asyncio
    async def test_stats(self, clock):
        timestamps = [
            datetime(2024, 1, d, 12, tzinfo=timezone.utc) for d in (10, 3, 2, 1)
        ]
        set_counter = MagicMock()
        set_counter.count_sets = AsyncMock(return_value=Result.ok(4))
        store = _store(
            total=Result.ok(9),
            timestamps=Result.ok(timestamps),
            cards=Result.ok(25),
            by_type=Result.ok({"study_completed": 3, "perfect_score": 2}),
        )
        aggregator = ContributionAggregator(store, set_counter=set_counter, clock=clock)

        stats = await aggregator.compute_user_stats("user-1")

        assert stats.total_contributions == 9
        assert stats.current_streak == 1
        assert stats.longest_streak == 3
        assert stats.sets_count == 4
        assert stats.total_cards_studied == 25
        assert stats.contributions_by_type == {"study_completed": 3, "perfect_score": 2}

    @pytest.mark.asyncio
    async def test_failing_subquery_zeroes_only_its_field(self, clock):
        timestamps = [datetime(2024, 1, 10, 8, tzinfo=timezone.utc)]
        set_counter = MagicMock()
        set_counter.count_sets = AsyncMock(return_value=_unavailable())
        store = _store(
            total=_unavailable(),
            timestamps=Result.ok(timestamps),
            cards=Result.ok(7),
        )
        aggregator = ContributionAggregator(store, set_counter=set_counter, clock=clock)

        stats = await aggregator.compute_user_stats("user-1")

        assert stats.total_contributions == 0
        assert stats.sets_count == 0
        assert stats.current_streak == 1
        assert stats.total_cards_studied == 7

    @pytest.mark.asyncio
    async def test_everything_failing_gives_zeroed_stats(self, clock):
        store = _store(
            total=_unavailable(),
            timestamps=_unavailable(),
            cards=_unavailable(),
            by_type=_unavailable(),
        )
        aggregator = ContributionAggregator(store, clock=clock)

        stats = await aggregator.compute_user_stats("user-1")

        assert stats.total_contributions == 0
        assert stats.current_streak == 0
        assert stats.longest_streak == 0
        assert stats.contributions_by_type == {}


class TestStreakData:
    @pytest.mark.asyncio
    async def test_streak_details(self, clock):
        timestamps = [
            datetime(2024, 1, d, 12, tzinfo=timezone.utc) for d in (9, 8, 7, 6, 5, 4, 3)
        ]
        aggregator = ContributionAggregator(
            _store(timestamps=Result.ok(timestamps)), clock=clock
        )

        streak = await aggregator.streak_data("user-1")

        assert streak.current_streak == 7
        assert streak.longest_streak == 7
        assert streak.streak_start == date(2024, 1, 3)
        assert streak.last_contribution == date(2024, 1, 9)
        assert streak.is_active_today is False
        assert streak.milestones_reached == [7]
        assert streak.next_milestone == 14

    @pytest.mark.asyncio
    async def test_no_events(self, clock):
        aggregator = ContributionAggregator(_store(), clock=clock)

        streak = await aggregator.streak_data("user-1")

        assert streak.current_streak == 0
        assert streak.next_milestone == 7
