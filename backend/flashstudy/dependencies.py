"""
FastAPI Dependencies

Authentication and service construction for the routers.

Authentication is delegated to an upstream collaborator: requests carry
the authenticated user id in a header (USER_ID_HEADER, default
"X-User-Id"). When API_KEY is configured the X-API-Key header must match
it; an empty API_KEY disables the check (development mode).
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from flashstudy.config import settings
from flashstudy.db.base import get_db
from flashstudy.middleware.error_handling import AuthenticationError
from flashstudy.services.contributions import (
    ContributionAggregator,
    ContributionStore,
    ContributionTracker,
)
from flashstudy.services.llm import get_llm_client
from flashstudy.services.study import (
    AnswerGrader,
    FlashcardGenerator,
    FlashcardSetService,
    FlashcardSetStore,
    StudyCompletionService,
)

# API Key header scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(
    api_key: Optional[str] = Depends(api_key_header),
) -> str:
    """
    Verify the API key header.

    If API_KEY is not configured (empty string), authentication is
    disabled.

    Returns:
        str: The validated API key

    Raises:
        HTTPException: 401 if API key is missing or invalid
    """
    if not settings.API_KEY:
        return "dev-mode"

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


async def current_user(
    request: Request,
    _api_key: str = Depends(verify_api_key),
) -> Optional[str]:
    """The authenticated user id, or None when no user is signed in."""
    user_id = request.headers.get(settings.USER_ID_HEADER, "").strip()
    return user_id or None


async def require_user(user_id: Optional[str] = Depends(current_user)) -> str:
    """The authenticated user id; raises 401 when absent."""
    if user_id is None:
        raise AuthenticationError("Sign in required")
    return user_id


# ===========================================
# Service Construction
# ===========================================


async def get_contribution_store(db: AsyncSession = Depends(get_db)) -> ContributionStore:
    return ContributionStore(db)


async def get_flashcard_set_store(db: AsyncSession = Depends(get_db)) -> FlashcardSetStore:
    return FlashcardSetStore(db)


async def get_contribution_tracker(
    store: ContributionStore = Depends(get_contribution_store),
) -> ContributionTracker:
    return ContributionTracker(store)


async def get_contribution_aggregator(
    store: ContributionStore = Depends(get_contribution_store),
    set_store: FlashcardSetStore = Depends(get_flashcard_set_store),
) -> ContributionAggregator:
    return ContributionAggregator(store, set_counter=set_store)


async def get_answer_grader() -> AnswerGrader:
    return AnswerGrader(llm_client=get_llm_client())


async def get_study_completion_service(
    tracker: ContributionTracker = Depends(get_contribution_tracker),
) -> StudyCompletionService:
    return StudyCompletionService(tracker)


async def get_flashcard_set_service(
    set_store: FlashcardSetStore = Depends(get_flashcard_set_store),
    tracker: ContributionTracker = Depends(get_contribution_tracker),
) -> FlashcardSetService:
    return FlashcardSetService(
        store=set_store,
        generator=FlashcardGenerator(llm_client=get_llm_client()),
        tracker=tracker,
    )

