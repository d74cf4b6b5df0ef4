"""
Flashcard Sets API Router

Endpoints:
- POST /api/sets - Create a set and generate its flashcards
- GET /api/sets - List the user's sets
- GET /api/sets/{set_id} - Load a set with its deck
- DELETE /api/sets/{set_id} - Delete a set and its cards
"""

import logging

from fastapi import APIRouter, Depends, Request

from flashstudy.config import settings
from flashstudy.dependencies import get_flashcard_set_service, require_user
from flashstudy.enums import RateLimitType
from flashstudy.middleware.error_handling import handle_endpoint_errors
from flashstudy.middleware.rate_limit import limiter
from flashstudy.models.study import (
    DeleteResponse,
    FlashcardSetCreate,
    FlashcardSetResponse,
    FlashcardSetSummary,
)
from flashstudy.services.study import FlashcardSetService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sets", tags=["sets"])


@router.post("", response_model=FlashcardSetResponse, status_code=201)
@limiter.limit(settings.get_rate_limit(RateLimitType.LLM_HEAVY))
@handle_endpoint_errors("Create flashcard set")
async def create_flashcard_set(
    request: Request,
    set_request: FlashcardSetCreate,
    user_id: str = Depends(require_user),
    service: FlashcardSetService = Depends(get_flashcard_set_service),
) -> FlashcardSetResponse:
    """
    Create a flashcard set from text and/or an image.

    When the AI service is unavailable basic cards are generated from the
    text (used_fallback is true). Storage failures return 503.
    """
    return await service.create_set(user_id, set_request)


@router.get("", response_model=list[FlashcardSetSummary])
@handle_endpoint_errors("List flashcard sets")
async def list_flashcard_sets(
    user_id: str = Depends(require_user),
    service: FlashcardSetService = Depends(get_flashcard_set_service),
) -> list[FlashcardSetSummary]:
    """List the user's sets with card counts, newest first."""
    return await service.list_sets(user_id)


@router.get("/{set_id}", response_model=FlashcardSetResponse)
@handle_endpoint_errors("Get flashcard set")
async def get_flashcard_set(
    set_id: str,
    user_id: str = Depends(require_user),
    service: FlashcardSetService = Depends(get_flashcard_set_service),
) -> FlashcardSetResponse:
    """
    Load a set with its flashcards, the deck a study session starts from.

    Sets owned by another user return 404.
    """
    return await service.get_set(user_id, set_id)


@router.delete("/{set_id}", response_model=DeleteResponse)
@limiter.limit(settings.get_rate_limit(RateLimitType.DEFAULT))
@handle_endpoint_errors("Delete flashcard set")
async def delete_flashcard_set(
    request: Request,
    set_id: str,
    user_id: str = Depends(require_user),
    service: FlashcardSetService = Depends(get_flashcard_set_service),
) -> DeleteResponse:
    """
    Delete a set and its cards.

    Returns:
        DeleteResponse with success status.

    Raises:
        NotFoundError 404: If the set does not exist or belongs to another user.
        PersistenceError 503: If the delete failed.
    """
    await service.delete_set(user_id, set_id)
    return DeleteResponse(success=True, deleted_id=set_id)
