"""
Streak Calculation

Derives streaks from the set of distinct contribution days.

A contribution day is any UTC calendar day with at least one event of any
type and any value.

The current and longest streak are deliberately computed by two separate
scans:
- current_streak is anchored at "today or yesterday" (a user who has not
  acted yet today keeps an active streak until a full day passes)
- longest_streak is a pure max-consecutive-run scan with no recency anchor

Usage:
    from flashstudy.services.contributions.streaks import (
        contribution_days,
        current_streak,
        longest_streak,
    )

    days = contribution_days(timestamps)
    current = current_streak(days, today=date(2024, 1, 10))
    longest = longest_streak(days)
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from flashstudy.config import settings
from flashstudy.services.contributions.timeutils import utc_day, utc_now


def contribution_days(timestamps: Iterable[datetime]) -> set[date]:
    """Distinct UTC calendar days of the given event timestamps."""
    return {utc_day(ts) for ts in timestamps}


def current_streak(days: Iterable[date], today: Optional[date] = None) -> int:
    """
    Calculate the current consecutive-day streak.

    Returns 0 unless there is a contribution today or yesterday. Otherwise
    counts consecutive days walking backward from the most recent
    contribution day.

    Args:
        days: Contribution days (any order, duplicates allowed).
        today: Reference day (defaults to the current UTC day).

    Returns:
        Length of the current streak in days.
    """
    streak, _ = current_streak_with_start(days, today)
    return streak


def current_streak_with_start(
    days: Iterable[date], today: Optional[date] = None
) -> tuple[int, Optional[date]]:
    """
    Current streak and the day it started.

    Args:
        days: Contribution days (any order, duplicates allowed).
        today: Reference day (defaults to the current UTC day).

    Returns:
        tuple[int, Optional[date]]: streak length and start day, or (0, None).
    """
    day_set = set(days)
    if not day_set:
        return 0, None

    today = today or utc_now().date()
    yesterday = today - timedelta(days=1)

    if today not in day_set and yesterday not in day_set:
        return 0, None

    expected = max(day_set)
    streak = 0
    streak_start = None
    while expected in day_set:
        streak += 1
        streak_start = expected
        expected -= timedelta(days=1)

    return streak, streak_start


def longest_streak(days: Iterable[date]) -> int:
    """
    Calculate the longest consecutive-day run ever achieved.

    Scans the distinct days sorted most-recent-first; a run continues while
    consecutive entries differ by exactly one day. The final run is
    included.

    Args:
        days: Contribution days (any order, duplicates allowed).

    Returns:
        Length of the longest run, 0 for no days.
    """
    sorted_days = sorted(set(days), reverse=True)
    if not sorted_days:
        return 0

    longest = 0
    run = 1
    for previous, current in zip(sorted_days, sorted_days[1:]):
        if previous - current == timedelta(days=1):
            run += 1
        else:
            longest = max(longest, run)
            run = 1

    return max(longest, run)


def milestones_reached(longest: int) -> list[int]:
    """Configured streak milestones reached by the longest streak."""
    return [m for m in settings.STREAK_MILESTONES if longest >= m]


def next_milestone(current: int) -> Optional[int]:
    """Next configured milestone above the current streak, if any."""
    return next((m for m in settings.STREAK_MILESTONES if m > current), None)


def activity_level(count: int) -> int:
    """
    Heatmap intensity (0-4) for a day's contribution count.

    Uses absolute thresholds (ACTIVITY_LEVEL_THRESHOLDS, default 3/6/9):
    0 for no activity, then one level per threshold passed.
    """
    if count <= 0:
        return 0

    level = 1
    for threshold in settings.ACTIVITY_LEVEL_THRESHOLDS:
        if count >= threshold:
            level += 1
    return min(level, 4)
