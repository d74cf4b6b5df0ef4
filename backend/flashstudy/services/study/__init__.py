"""
Study services: the session state machine, AI answer grading, session
completion tracking and flashcard set creation.
"""

from flashstudy.services.study.completion import StudyCompletionService
from flashstudy.services.study.generator import FlashcardGenerator
from flashstudy.services.study.grading import (
    AnswerGrader,
    grade_current_card,
    parse_grading_response,
)
from flashstudy.services.study.session import GradingTicket, StudySession
from flashstudy.services.study.sets import FlashcardSetService
from flashstudy.services.study.store import FlashcardSetStore

__all__ = [
    "AnswerGrader",
    "FlashcardGenerator",
    "FlashcardSetService",
    "FlashcardSetStore",
    "GradingTicket",
    "StudyCompletionService",
    "StudySession",
    "grade_current_card",
    "parse_grading_response",
]
