"""
Study Session Enums

Defines the grading levels and the states of the study session
state machine.
"""

from enum import Enum


class GradingLevel(str, Enum):
    """
    Qualitative bucket derived from a 0-100 AI-assigned score.

    Thresholds used when the level has to be derived locally:
    - score >= 90: PERFECT
    - score >= 70: GOOD
    - score >= 40: PARTIAL
    - else: INCORRECT
    """

    PERFECT = "perfect"
    GOOD = "good"
    PARTIAL = "partial"
    INCORRECT = "incorrect"


class StudyState(str, Enum):
    """
    States of a study session.

    State transitions:
    - ACTIVE → FINISHED (last card marked correct, or moved past the last card)
    - FINISHED → SUMMARIZED (on exit, only when AI-graded scores exist)
    - FINISHED/SUMMARIZED → FINALIZED (outcome handed to the caller)
    - ACTIVE/FINISHED → ACTIVE (reset)
    """

    ACTIVE = "active"
    FINISHED = "finished"
    SUMMARIZED = "summarized"
    FINALIZED = "finalized"
