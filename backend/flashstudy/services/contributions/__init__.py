"""
Contribution Services

Contribution event log access, aggregation and streak calculation.

Modules:
- store: Persistence adapter for the user_contributions table
- aggregator: Day buckets, heatmap data and user statistics
- streaks: Current/longest streak calculation
- tracker: Recording events, first-of-day bonus, daily check-in

Usage:
    from flashstudy.services.contributions import (
        ContributionAggregator,
        ContributionStore,
        ContributionTracker,
    )
"""

from flashstudy.services.contributions.aggregator import ContributionAggregator
from flashstudy.services.contributions.store import ContributionStore
from flashstudy.services.contributions.streaks import (
    contribution_days,
    current_streak,
    longest_streak,
)
from flashstudy.services.contributions.tracker import ContributionTracker

__all__ = [
    "ContributionAggregator",
    "ContributionStore",
    "ContributionTracker",
    "contribution_days",
    "current_streak",
    "longest_streak",
]
