"""
Contribution Models (Pydantic)

Event, aggregate and statistics models for contribution tracking.

Event metadata is a tagged union keyed on the contribution type: each
ContributionType has its own metadata model carrying only the fields
relevant to that event. Stored metadata is a plain JSON object; the
`type` tag is added when loading (see build_metadata) and stripped when
persisting (see ContributionMetadataBase.to_payload).

ARCHITECTURE NOTE:
    This file contains PYDANTIC models. The corresponding SQLAlchemy
    table lives in flashstudy/db/models.py (UserContribution).
"""

import logging
from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from flashstudy.enums.contributions import ContributionType
from flashstudy.models.base import StrictResponse

logger = logging.getLogger(__name__)


# ===========================================
# Event Metadata (tagged per contribution type)
# ===========================================


class ContributionMetadataBase(StrictResponse):
    """Common behaviour for all metadata variants."""

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the JSON metadata column (without the type tag)."""
        return self.model_dump(mode="json", exclude={"type"}, exclude_none=True)


class AccountCreatedMetadata(ContributionMetadataBase):
    type: Literal["account_created"] = "account_created"
    provider: Optional[str] = None


class SetCreatedMetadata(ContributionMetadataBase):
    type: Literal["set_created"] = "set_created"
    set_id: Optional[str] = None
    card_count: int = 0
    title: Optional[str] = None


class StudyCompletedMetadata(ContributionMetadataBase):
    """Outcome of one finished study session."""

    type: Literal["study_completed"] = "study_completed"
    cards_studied: int = 0
    correct_cards: int = 0
    ai_score_percentage: int = 0
    manual_score_percentage: int = 0
    final_score_percentage: int = 0
    set_id: Optional[str] = None


class PerfectScoreMetadata(ContributionMetadataBase):
    type: Literal["perfect_score"] = "perfect_score"
    set_id: Optional[str] = None


class StreakMilestoneMetadata(ContributionMetadataBase):
    type: Literal["streak_milestone"] = "streak_milestone"
    streak_days: int = 0


class FirstOfDayMetadata(ContributionMetadataBase):
    type: Literal["first_of_day"] = "first_of_day"
    date: Optional[str] = None  # ISO calendar day


class SharedSetMetadata(ContributionMetadataBase):
    type: Literal["shared_set"] = "shared_set"
    set_id: Optional[str] = None
    shared_with: Optional[str] = None


class AppOpenedMetadata(ContributionMetadataBase):
    type: Literal["app_opened"] = "app_opened"
    date: Optional[str] = None  # ISO calendar day


class FlashcardEditedMetadata(ContributionMetadataBase):
    type: Literal["flashcard_edited"] = "flashcard_edited"
    flashcard_id: Optional[str] = None
    set_id: Optional[str] = None


class ProfileUpdatedMetadata(ContributionMetadataBase):
    type: Literal["profile_updated"] = "profile_updated"
    updated_fields: list[str] = Field(default_factory=list)


class FeedbackProvidedMetadata(ContributionMetadataBase):
    type: Literal["feedback_provided"] = "feedback_provided"
    feedback_id: Optional[str] = None
    rating: Optional[int] = None


class InviteSentMetadata(ContributionMetadataBase):
    type: Literal["invite_sent"] = "invite_sent"
    invitee: Optional[str] = None


class AchievementUnlockedMetadata(ContributionMetadataBase):
    type: Literal["achievement_unlocked"] = "achievement_unlocked"
    achievement: Optional[str] = None


ContributionMetadata = Annotated[
    Union[
        AccountCreatedMetadata,
        SetCreatedMetadata,
        StudyCompletedMetadata,
        PerfectScoreMetadata,
        StreakMilestoneMetadata,
        FirstOfDayMetadata,
        SharedSetMetadata,
        AppOpenedMetadata,
        FlashcardEditedMetadata,
        ProfileUpdatedMetadata,
        FeedbackProvidedMetadata,
        InviteSentMetadata,
        AchievementUnlockedMetadata,
    ],
    Field(discriminator="type"),
]

_metadata_adapter: TypeAdapter = TypeAdapter(ContributionMetadata)


def build_metadata(
    contribution_type: Union[ContributionType, str],
    raw: Optional[dict[str, Any]] = None,
) -> ContributionMetadataBase:
    """
    Build the typed metadata variant for a contribution type.

    Stored metadata is loaded leniently: unknown keys are ignored and a
    payload that fails validation degrades to the empty variant rather
    than failing the read.

    Args:
        contribution_type: Event type (enum or its string value)
        raw: Stored JSON metadata, if any

    Returns:
        The metadata model matching the contribution type
    """
    type_value = ContributionType(contribution_type).value
    payload = dict(raw or {})
    payload["type"] = type_value

    try:
        return _metadata_adapter.validate_python(payload)
    except ValidationError as e:
        logger.warning(f"Discarding malformed {type_value} metadata: {e}")
        return _metadata_adapter.validate_python({"type": type_value})


# ===========================================
# Events
# ===========================================


class ContributionEvent(StrictResponse):
    """
    Immutable fact in the append-only contribution log.

    The metadata variant always matches the event type.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    user_id: str
    type: ContributionType
    value: int = Field(1, ge=1, description="Contribution weight (perfect score = 2)")
    created_at: datetime
    metadata: ContributionMetadata

    @model_validator(mode="before")
    @classmethod
    def _tag_metadata(cls, data: Any) -> Any:
        """Attach the event type to raw metadata dicts before validation."""
        if isinstance(data, dict) and "type" in data:
            metadata = data.get("metadata")
            if metadata is None or isinstance(metadata, dict):
                data = dict(data)
                data["metadata"] = build_metadata(data["type"], metadata)
        return data

    @model_validator(mode="after")
    def _check_metadata_matches_type(self) -> "ContributionEvent":
        if self.metadata.type != self.type.value:
            raise ValueError(
                f"metadata for {self.metadata.type} attached to {self.type.value} event"
            )
        return self


# ===========================================
# Aggregates
# ===========================================


class ContributionDetail(StrictResponse):
    """One event as listed inside a day bucket."""

    type: ContributionType
    value: int
    time: datetime
    metadata: ContributionMetadata


class DayBucket(StrictResponse):
    """All contribution events on one UTC calendar day."""

    date: date
    count: int = Field(0, ge=0, description="Sum of event values that day")
    details: list[ContributionDetail] = Field(default_factory=list)


class ContributionGraphDay(DayBucket):
    """Day bucket with a heatmap intensity level (0-4)."""

    level: int = Field(0, ge=0, le=4)


class ContributionGraphResponse(StrictResponse):
    """Contiguous window of day buckets for the contribution heatmap."""

    start: date
    end: date
    days: list[ContributionGraphDay]
    total_contributions: int = 0
    active_days: int = 0
    max_daily_count: int = 0


class UserStats(StrictResponse):
    """Derived per-user statistics, recomputed on demand."""

    total_contributions: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    sets_count: int = 0
    total_cards_studied: int = 0
    contributions_by_type: dict[str, int] = Field(default_factory=dict)


class StreakData(StrictResponse):
    """Detailed streak information for profile display."""

    current_streak: int = 0
    longest_streak: int = 0
    streak_start: Optional[date] = None
    last_contribution: Optional[date] = None
    is_active_today: bool = False
    milestones_reached: list[int] = Field(default_factory=list)
    next_milestone: Optional[int] = None


class AppOpenResponse(StrictResponse):
    """Result of a daily check-in."""

    new_contribution: bool


class ProfileStatsResponse(StrictResponse):
    """User statistics together with streak details."""

    stats: UserStats
    streak: StreakData
