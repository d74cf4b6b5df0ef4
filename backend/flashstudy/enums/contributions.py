"""
Contribution Enums

Defines the closed set of contribution event types recorded in the
append-only event log.
"""

from enum import Enum


class ContributionType(str, Enum):
    """
    Types of tracked user activity.

    Each event type carries its own metadata shape (see
    flashstudy.models.contributions).
    """

    ACCOUNT_CREATED = "account_created"
    SET_CREATED = "set_created"
    STUDY_COMPLETED = "study_completed"
    PERFECT_SCORE = "perfect_score"  # Bonus, worth 2
    STREAK_MILESTONE = "streak_milestone"
    FIRST_OF_DAY = "first_of_day"  # Bonus for the first activity of a UTC day
    SHARED_SET = "shared_set"
    APP_OPENED = "app_opened"  # At most once per UTC day
    FLASHCARD_EDITED = "flashcard_edited"
    PROFILE_UPDATED = "profile_updated"
    FEEDBACK_PROVIDED = "feedback_provided"
    INVITE_SENT = "invite_sent"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
