"""
Study API Router

Endpoints:
- POST /api/study/grade - AI-grade a typed answer
- POST /api/study/complete - Record the contributions of a finished session

The session state machine runs client-side; the server grades single
answers and records the final outcome.
"""

import logging

from fastapi import APIRouter, Depends, Request

from flashstudy.config import settings
from flashstudy.dependencies import (
    get_answer_grader,
    get_study_completion_service,
    require_user,
)
from flashstudy.enums import RateLimitType
from flashstudy.middleware.error_handling import handle_endpoint_errors
from flashstudy.middleware.rate_limit import limiter
from flashstudy.models.study import (
    FinalizeReport,
    GradeRequest,
    GradingResult,
    SessionOutcome,
)
from flashstudy.services.study import AnswerGrader, StudyCompletionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/study", tags=["study"])


@router.post("/grade", response_model=GradingResult)
@limiter.limit(settings.get_rate_limit(RateLimitType.LLM_HEAVY))
@handle_endpoint_errors("Grade answer")
async def grade_answer(
    request: Request,
    grade_request: GradeRequest,
    user_id: str = Depends(require_user),
    grader: AnswerGrader = Depends(get_answer_grader),
) -> GradingResult:
    """
    Grade a typed answer against the card's reference answer.

    Malformed AI output still yields a result; an unavailable AI service
    returns 502 so the client can offer a retry.
    """
    return await grader.grade(
        question=grade_request.question,
        reference_answer=grade_request.reference_answer,
        user_answer=grade_request.user_answer,
    )


@router.post("/complete", response_model=FinalizeReport)
@limiter.limit(settings.get_rate_limit(RateLimitType.TRACKING))
@handle_endpoint_errors("Complete study session")
async def complete_session(
    request: Request,
    outcome: SessionOutcome,
    user_id: str = Depends(require_user),
    service: StudyCompletionService = Depends(get_study_completion_service),
) -> FinalizeReport:
    """Emit study_completed, perfect_score and first_of_day events."""
    return await service.finalize(user_id, outcome)
