"""
Study System Models (Pydantic)

Request/response schemas for flashcards, AI grading and study sessions:
- Flashcards and flashcard set creation
- Grading results and score aggregation
- Session summaries and outcomes handed to contribution tracking

ARCHITECTURE NOTE:
    The study session itself is an in-memory state machine
    (flashstudy/services/study/session.py). These models are the values it
    produces and consumes.
"""

import math
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from flashstudy.config import settings
from flashstudy.enums.study import GradingLevel
from flashstudy.models.base import StrictRequest, StrictResponse
from flashstudy.models.contributions import ContributionEvent


# ===========================================
# Flashcards
# ===========================================


class FlashcardDraft(StrictResponse):
    """A generated question/answer pair not yet persisted."""

    question: str
    answer: str


class Flashcard(StrictResponse):
    """A persisted flashcard belonging to a set."""

    id: str
    question: str
    answer: str
    set_id: str


class FlashcardSetCreate(StrictRequest):
    """
    Request to create a flashcard set from text and/or an image.

    Validation happens before any network call: a title is required,
    either content or an image must be present, and the requested card
    count must be within the configured bounds.
    """

    title: str
    description: Optional[str] = None
    content: str = ""
    image_data: Optional[str] = Field(None, description="Data URL or base64 image")
    num_flashcards: int = Field(default=settings.DEFAULT_FLASHCARDS)

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Please provide a title for your flashcard set.")
        return value

    @field_validator("num_flashcards")
    @classmethod
    def _count_in_range(cls, value: int) -> int:
        if value < settings.MIN_FLASHCARDS or value > settings.MAX_FLASHCARDS:
            raise ValueError(
                f"Please enter a number between {settings.MIN_FLASHCARDS} "
                f"and {settings.MAX_FLASHCARDS}."
            )
        return value

    @model_validator(mode="after")
    def _content_required(self) -> "FlashcardSetCreate":
        if not self.content and not self.image_data:
            raise ValueError(
                "Please provide text or upload a file to generate flashcards."
            )
        return self


class FlashcardSetResponse(StrictResponse):
    """Created flashcard set with its cards."""

    id: str
    title: str
    description: Optional[str] = None
    flashcards: list[Flashcard] = Field(default_factory=list)
    used_fallback: bool = Field(
        False, description="True when basic cards replaced AI-generated ones"
    )
    first_of_day: bool = False


class FlashcardSetSummary(StrictResponse):
    """A set as listed on the dashboard."""

    id: str
    title: str
    description: Optional[str] = None
    card_count: int = 0
    created_at: datetime


class DeleteResponse(StrictResponse):
    """
    Deletion response.

    Attributes:
        success: Whether the deletion was successful
        deleted_id: ID of the deleted resource
    """

    success: bool
    deleted_id: Optional[str] = None


# ===========================================
# Grading
# ===========================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 always rounding up (12.5 -> 13)."""
    return math.floor(value + 0.5)


def level_for_score(score: int) -> GradingLevel:
    """
    Derive a grading level from a 0-100 score.

    Thresholds: >=90 perfect, >=70 good, >=40 partial, else incorrect.
    """
    if score >= 90:
        return GradingLevel.PERFECT
    if score >= 70:
        return GradingLevel.GOOD
    if score >= 40:
        return GradingLevel.PARTIAL
    return GradingLevel.INCORRECT


class GradingResult(StrictResponse):
    """
    Structured grade for one answer.

    Accepts the camelCase keys the AI collaborator is asked to return
    (isCorrect, specificFeedback). specific_feedback entries keep their
    "+" (correct), "-" (incorrect) and ">" (tip) prefixes verbatim.
    """

    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(..., ge=0, le=100)
    is_correct: bool = Field(..., alias="isCorrect")
    level: GradingLevel
    feedback: str = ""
    specific_feedback: list[str] = Field(
        default_factory=list, alias="specificFeedback"
    )


class GradeRequest(StrictRequest):
    """Request to grade a typed answer for one card."""

    question: str
    reference_answer: str
    user_answer: str


class ScoreAccumulator(StrictResponse):
    """Running total of AI-graded scores within a session."""

    total: int = 0
    count: int = 0
    average: int = 0

    def add(self, score: int) -> "ScoreAccumulator":
        """Return a new accumulator with the score folded in."""
        total = self.total + score
        count = self.count + 1
        return ScoreAccumulator(
            total=total, count=count, average=round_half_up(total / count)
        )


# ===========================================
# Session Summary & Outcome
# ===========================================


class SessionSummary(StrictResponse):
    """Aggregate score screen shown when a session had AI-graded answers."""

    average_score: int
    cards_graded: int
    perfect_count: int = 0
    good_count: int = 0
    partial_count: int = 0
    incorrect_count: int = 0
    scores: list[int] = Field(default_factory=list)

    @classmethod
    def from_scores(cls, scores: list[int]) -> "SessionSummary":
        """Build a summary from the ordered list of session scores."""
        levels = [level_for_score(score) for score in scores]
        average = round_half_up(sum(scores) / len(scores)) if scores else 0
        return cls(
            average_score=average,
            cards_graded=len(scores),
            perfect_count=levels.count(GradingLevel.PERFECT),
            good_count=levels.count(GradingLevel.GOOD),
            partial_count=levels.count(GradingLevel.PARTIAL),
            incorrect_count=levels.count(GradingLevel.INCORRECT),
            scores=list(scores),
        )


class SessionOutcome(StrictRequest):
    """
    Final numbers of a study session, used to emit contribution events.

    final_score_percentage is the AI average when graded answers exist,
    otherwise the percentage of cards marked correct.
    """

    set_id: Optional[str] = None
    cards_studied: int = Field(..., ge=0)
    correct_cards: int = Field(..., ge=0)
    ai_score_percentage: int = Field(0, ge=0, le=100)
    manual_score_percentage: int = Field(0, ge=0, le=100)
    final_score_percentage: int = Field(0, ge=0, le=100)
    graded_answers: int = Field(0, ge=0)
    all_answers_perfect: bool = False

    @model_validator(mode="after")
    def _consistent(self) -> "SessionOutcome":
        if self.correct_cards > self.cards_studied:
            raise ValueError("correct_cards cannot exceed cards_studied")
        if self.graded_answers > 0:
            if self.final_score_percentage != self.ai_score_percentage:
                raise ValueError(
                    "final_score_percentage must equal the AI score when answers were graded"
                )
        else:
            if self.all_answers_perfect:
                raise ValueError("all_answers_perfect requires graded answers")
            if self.final_score_percentage != self.manual_score_percentage:
                raise ValueError(
                    "final_score_percentage must equal the manual score without graded answers"
                )
        return self

    @property
    def is_perfect(self) -> bool:
        """Perfect when the final score is 100 or every graded answer was perfect."""
        if self.final_score_percentage == 100:
            return True
        return self.graded_answers > 0 and self.all_answers_perfect


class FinalizeReport(StrictResponse):
    """Contribution events emitted when a session was finalized."""

    final_score_percentage: int
    events: list[ContributionEvent] = Field(default_factory=list)
    perfect_score: bool = False
    first_of_day: bool = False
