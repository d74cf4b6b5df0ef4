"""
Study Session Engine

In-memory state machine sequencing a fixed deck of flashcards until every
card has been marked correct.

States (see StudyState):
    ACTIVE ──mark_correct (last card)──▶ FINISHED ──exit (graded)──▶ SUMMARIZED
      │     ──next past the only card──▶    │                             │
      │                                     └──────────finalize───────────┴─▶ FINALIZED
      └◀──────────────────reset──────────────┘

Card ordering:
- `remaining` starts as the full deck in original order
- mark_correct removes the current card; incorrect cards recirculate
- next/previous wrap circularly; moving past the last card finishes the
  session only when exactly one card remains

AI grading uses generation tokens. begin_grading() hands out a
GradingTicket stamped with the current generation; navigation, reset
and flipping back to the question side bump the generation, so a grade
that arrives after the user moved on is discarded by apply_grading().

Usage:
    session = StudySession(flashcards)
    session.flip()
    session.mark_correct()
    ...
    summary = session.exit()       # SessionSummary or None
    outcome = session.finalize()   # SessionOutcome for contribution tracking
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from flashstudy.enums.study import GradingLevel, StudyState
from flashstudy.middleware.error_handling import SessionStateError, ValidationError
from flashstudy.models.study import (
    Flashcard,
    GradingResult,
    ScoreAccumulator,
    SessionOutcome,
    SessionSummary,
    level_for_score,
    round_half_up,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradingTicket:
    """A grading request in flight, bound to the generation it started in."""

    generation: int
    card: Flashcard
    answer: str


class StudySession:
    """
    One study visit over a deck.

    Attributes:
        deck: The original ordered deck
        remaining: Cards not yet marked correct
        current_index: Position of the current card in `remaining`
        correct_ids: Ids of cards marked correct, in marking order
        cumulative_scores: One score per applied AI grade
        score_totals: Running total/count/average of the scores
        flipped: Whether the answer side is showing
        user_answer: Typed answer for the current card
        grading_result: Last applied grade for the current card
        state: Current StudyState
        generation: Counter invalidating in-flight grades
    """

    def __init__(self, deck: Sequence[Flashcard]):
        if not deck:
            raise ValidationError("Cannot start a study session with an empty deck")

        self.deck: tuple[Flashcard, ...] = tuple(deck)
        self.cumulative_scores: list[int] = []
        self.score_totals = ScoreAccumulator()
        self.generation = 0
        self._pending: Optional[GradingTicket] = None
        self._restart()

    def _restart(self) -> None:
        self.remaining: list[Flashcard] = list(self.deck)
        self.current_index = 0
        self.correct_ids: list[str] = []
        self.flipped = False
        self.state = StudyState.ACTIVE
        self._clear_answer()

    def _clear_answer(self) -> None:
        self.user_answer = ""
        self.grading_result: Optional[GradingResult] = None

    def _invalidate(self) -> None:
        """Move to a new generation; any grade in flight becomes stale."""
        self.generation += 1
        self._pending = None

    def _require(self, *states: StudyState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(
                f"Not allowed in state {self.state.value} (expected {allowed})"
            )

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def current_card(self) -> Optional[Flashcard]:
        if self.state != StudyState.ACTIVE or not self.remaining:
            return None
        return self.remaining[self.current_index]

    @property
    def is_grading(self) -> bool:
        return self._pending is not None

    @property
    def progress(self) -> float:
        """Percentage of the deck marked correct."""
        completed = len(self.deck) - len(self.remaining)
        return completed / len(self.deck) * 100

    @property
    def set_id(self) -> Optional[str]:
        return self.deck[0].set_id

    # =========================================================================
    # Card transitions
    # =========================================================================

    def flip(self) -> bool:
        """
        Toggle between question and answer side.

        Flipping back to the question clears the typed answer and grade.
        Rejected while a grade is in flight.

        Returns:
            The new flipped state
        """
        self._require(StudyState.ACTIVE)
        if self.is_grading:
            raise SessionStateError("Cannot flip the card while grading")

        self.flipped = not self.flipped
        if not self.flipped:
            self._clear_answer()
            self._invalidate()
        return self.flipped

    def mark_correct(self) -> None:
        """Mark the current card learned and remove it from the deck."""
        self._require(StudyState.ACTIVE)
        card = self.remaining.pop(self.current_index)
        self.correct_ids.append(card.id)
        self._show_question()

        if not self.remaining:
            self.state = StudyState.FINISHED
            logger.debug(f"Study session finished: {len(self.correct_ids)} correct")
        elif self.current_index >= len(self.remaining):
            self.current_index = 0

    def mark_incorrect(self) -> None:
        """Keep the current card in the deck and move on."""
        self.next()

    def next(self) -> None:
        """
        Advance to the next card, wrapping to the first.

        Moving past the last card when it is the only one remaining
        finishes the session.
        """
        self._require(StudyState.ACTIVE)
        self._show_question()

        if self.current_index < len(self.remaining) - 1:
            self.current_index += 1
        elif len(self.remaining) == 1:
            self.state = StudyState.FINISHED
        else:
            self.current_index = 0

    def previous(self) -> None:
        """Go back one card, wrapping to the last."""
        self._require(StudyState.ACTIVE)
        self._show_question()

        if self.current_index > 0:
            self.current_index -= 1
        else:
            self.current_index = len(self.remaining) - 1

    def reset(self) -> None:
        """
        Start over with the full deck.

        AI scores recorded so far are kept; they feed the session summary.
        """
        self._require(StudyState.ACTIVE, StudyState.FINISHED, StudyState.SUMMARIZED)
        self._invalidate()
        self._restart()

    def _show_question(self) -> None:
        self.flipped = False
        self._clear_answer()
        self._invalidate()

    # =========================================================================
    # AI grading
    # =========================================================================

    def begin_grading(self, answer: str) -> GradingTicket:
        """
        Start grading a typed answer for the current card.

        Args:
            answer: The learner's answer

        Returns:
            Ticket to pass to apply_grading() or abort_grading()

        Raises:
            ValidationError: If the answer is blank
            SessionStateError: If not on the question side of an active card,
                or another grade is in flight
        """
        self._require(StudyState.ACTIVE)
        if not answer or not answer.strip():
            raise ValidationError("Please enter your answer before grading")
        if self.flipped:
            raise SessionStateError("Answers are graded from the question side")
        if self.is_grading:
            raise SessionStateError("A grade is already in progress")

        self.user_answer = answer
        self._pending = GradingTicket(
            generation=self.generation, card=self.current_card, answer=answer
        )
        return self._pending

    def apply_grading(self, ticket: GradingTicket, result: GradingResult) -> bool:
        """
        Fold a grade into the session unless it is stale.

        Args:
            ticket: Ticket from begin_grading()
            result: Parsed grading result

        Returns:
            True if applied, False if discarded as stale
        """
        if ticket.generation != self.generation or self._pending is not ticket:
            logger.info(
                f"Discarding stale grade for card {ticket.card.id} "
                f"(generation {ticket.generation}, now {self.generation})"
            )
            return False

        self._pending = None
        self.grading_result = result
        self.cumulative_scores.append(result.score)
        self.score_totals = self.score_totals.add(result.score)
        return True

    def abort_grading(self, ticket: GradingTicket) -> None:
        """Release the in-flight slot after a failed grade."""
        if self._pending is ticket:
            self._pending = None

    # =========================================================================
    # Exit and finalize
    # =========================================================================

    def summary(self) -> SessionSummary:
        return SessionSummary.from_scores(self.cumulative_scores)

    def exit(self) -> Optional[SessionSummary]:
        """
        Leave a finished session.

        Returns:
            The score summary when AI-graded answers exist (state becomes
            SUMMARIZED), otherwise None and the caller finalizes directly.
        """
        self._require(StudyState.FINISHED, StudyState.SUMMARIZED)
        if not self.cumulative_scores:
            return None
        self.state = StudyState.SUMMARIZED
        return self.summary()

    def finalize(self) -> SessionOutcome:
        """
        Produce the session outcome and close the session.

        The final score is the rounded AI average when any answers were
        graded, otherwise the percentage of cards marked correct.
        """
        self._require(StudyState.FINISHED, StudyState.SUMMARIZED)

        scores = self.cumulative_scores
        manual = round_half_up(len(self.correct_ids) / len(self.deck) * 100)
        ai = round_half_up(sum(scores) / len(scores)) if scores else 0

        outcome = SessionOutcome(
            set_id=self.set_id,
            cards_studied=len(self.deck),
            correct_cards=len(self.correct_ids),
            ai_score_percentage=ai,
            manual_score_percentage=manual,
            final_score_percentage=ai if scores else manual,
            graded_answers=len(scores),
            all_answers_perfect=bool(scores)
            and all(level_for_score(s) == GradingLevel.PERFECT for s in scores),
        )
        self.state = StudyState.FINALIZED
        return outcome
