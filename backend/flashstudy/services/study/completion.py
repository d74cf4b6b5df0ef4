"""
Study Completion Service

Records the contribution events for a finished study session:
- study_completed (always)
- perfect_score (when the outcome is perfect)
- first_of_day (when the user had no earlier event that UTC day)

The first-of-day check runs before any insert, so the session's own
study_completed event cannot hide the bonus. The inserts are independent;
a failed insert is logged and the remaining ones still run. Nothing here
raises for persistence failures.
"""

import logging

from flashstudy.config import settings
from flashstudy.enums.contributions import ContributionType
from flashstudy.models.contributions import PerfectScoreMetadata, StudyCompletedMetadata
from flashstudy.models.study import FinalizeReport, SessionOutcome
from flashstudy.services.contributions.tracker import ContributionTracker

logger = logging.getLogger(__name__)


class StudyCompletionService:
    """Turns a SessionOutcome into contribution events."""

    def __init__(self, tracker: ContributionTracker):
        self.tracker = tracker

    async def finalize(self, user_id: str, outcome: SessionOutcome) -> FinalizeReport:
        """
        Emit the contribution events for a finished session.

        Args:
            user_id: User who studied
            outcome: Final session numbers

        Returns:
            FinalizeReport listing the events that were stored
        """
        already_active = (await self.tracker.has_contributed_today(user_id)).unwrap_or(
            True, context="first-of-day check"
        )

        report = FinalizeReport(final_score_percentage=outcome.final_score_percentage)

        completed = await self.tracker.track(
            user_id,
            ContributionType.STUDY_COMPLETED,
            value=settings.STUDY_COMPLETED_VALUE,
            metadata=StudyCompletedMetadata(
                cards_studied=outcome.cards_studied,
                correct_cards=outcome.correct_cards,
                ai_score_percentage=outcome.ai_score_percentage,
                manual_score_percentage=outcome.manual_score_percentage,
                final_score_percentage=outcome.final_score_percentage,
                set_id=outcome.set_id,
            ),
        )
        if completed.is_ok:
            report.events.append(completed.value)
        else:
            logger.error(
                f"study_completed not recorded for user {user_id}: "
                f"{completed.error_message}"
            )

        if outcome.is_perfect:
            perfect = await self.tracker.track(
                user_id,
                ContributionType.PERFECT_SCORE,
                value=settings.PERFECT_SCORE_VALUE,
                metadata=PerfectScoreMetadata(set_id=outcome.set_id),
            )
            if perfect.is_ok:
                report.events.append(perfect.value)
                report.perfect_score = True
            else:
                logger.error(
                    f"perfect_score not recorded for user {user_id}: "
                    f"{perfect.error_message}"
                )

        bonus = await self.tracker.award_first_of_day(user_id, already_active)
        if bonus is not None:
            report.events.append(bonus)
            report.first_of_day = True

        logger.info(
            f"Finalized study session for user {user_id}: "
            f"score={outcome.final_score_percentage}%, events={len(report.events)}"
        )
        return report
