"""
Pydantic models for contributions, study sessions and AI usage.

Usage:
    from flashstudy.models import ContributionEvent, GradingResult, UserStats
"""

from flashstudy.models.contributions import (
    ContributionDetail,
    ContributionEvent,
    ContributionGraphDay,
    ContributionGraphResponse,
    DayBucket,
    ProfileStatsResponse,
    StreakData,
    UserStats,
    build_metadata,
)
from flashstudy.models.llm_usage import LLMUsage
from flashstudy.models.study import (
    FinalizeReport,
    Flashcard,
    FlashcardDraft,
    FlashcardSetCreate,
    GradingResult,
    ScoreAccumulator,
    SessionOutcome,
    SessionSummary,
    level_for_score,
)

__all__ = [
    "ContributionDetail",
    "ContributionEvent",
    "ContributionGraphDay",
    "ContributionGraphResponse",
    "DayBucket",
    "ProfileStatsResponse",
    "StreakData",
    "UserStats",
    "build_metadata",
    "LLMUsage",
    "FinalizeReport",
    "Flashcard",
    "FlashcardDraft",
    "FlashcardSetCreate",
    "GradingResult",
    "ScoreAccumulator",
    "SessionOutcome",
    "SessionSummary",
    "level_for_score",
]
