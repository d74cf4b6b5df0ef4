"""
Flashcard Set Service

Manages a user's flashcard sets. Creating a set runs end to end:
1. Check whether the user was already active today (before any insert)
2. Insert the set (failure surfaces as PersistenceError)
3. Generate cards (AI, or basic fallback cards)
4. Insert the cards (failure surfaces as PersistenceError)
5. Record set_created and, if earned, the first-of-day bonus

Listing, loading (with the deck) and deleting are limited to the owner;
a set owned by someone else is reported as not found.

Request validation (title, content or image, card count) happens in
FlashcardSetCreate, before this service runs.
"""

import logging

from flashstudy.enums.contributions import ContributionType
from flashstudy.middleware.error_handling import NotFoundError, PersistenceError
from flashstudy.models.contributions import SetCreatedMetadata
from flashstudy.models.study import (
    FlashcardSetCreate,
    FlashcardSetResponse,
    FlashcardSetSummary,
)
from flashstudy.services.contributions.tracker import ContributionTracker
from flashstudy.services.study.generator import FlashcardGenerator
from flashstudy.services.study.store import FlashcardSetStore

logger = logging.getLogger(__name__)


class FlashcardSetService:
    """Orchestrates set creation, listing, loading and deletion."""

    def __init__(
        self,
        store: FlashcardSetStore,
        generator: FlashcardGenerator,
        tracker: ContributionTracker,
    ):
        self.store = store
        self.generator = generator
        self.tracker = tracker

    async def create_set(
        self, user_id: str, request: FlashcardSetCreate
    ) -> FlashcardSetResponse:
        """
        Create a set with generated flashcards.

        Args:
            user_id: Owner of the new set
            request: Validated creation request

        Returns:
            FlashcardSetResponse with the stored cards

        Raises:
            PersistenceError: If the set or its cards could not be stored
        """
        already_active = (await self.tracker.has_contributed_today(user_id)).unwrap_or(
            True, context="first-of-day check"
        )

        created = await self.store.create_set(user_id, request.title, request.description)
        if not created.is_ok:
            raise PersistenceError(
                "Could not create flashcard set",
                details={"reason": created.error_message},
            )
        flashcard_set = created.value

        drafts, used_fallback = await self.generator.generate(
            request.content, request.num_flashcards, image_data=request.image_data
        )

        inserted = await self.store.insert_flashcards(flashcard_set.id, drafts)
        if not inserted.is_ok:
            raise PersistenceError(
                "Could not save generated flashcards",
                details={"set_id": flashcard_set.id, "reason": inserted.error_message},
            )
        flashcards = inserted.value

        await self.tracker.track(
            user_id,
            ContributionType.SET_CREATED,
            metadata=SetCreatedMetadata(
                set_id=flashcard_set.id,
                card_count=len(flashcards),
                title=request.title,
            ),
        )
        bonus = await self.tracker.award_first_of_day(user_id, already_active)

        logger.info(
            f"Created flashcard set {flashcard_set.id} with {len(flashcards)} cards "
            f"for user {user_id} (fallback={used_fallback})"
        )
        return FlashcardSetResponse(
            id=flashcard_set.id,
            title=flashcard_set.title,
            description=flashcard_set.description,
            flashcards=flashcards,
            used_fallback=used_fallback,
            first_of_day=bonus is not None,
        )

    async def list_sets(self, user_id: str) -> list[FlashcardSetSummary]:
        """
        The user's sets with card counts, newest first.

        Raises:
            PersistenceError: If the sets could not be read
        """
        listed = await self.store.list_sets(user_id)
        if not listed.is_ok:
            raise PersistenceError(
                "Could not load flashcard sets",
                details={"reason": listed.error_message},
            )
        return listed.value

    async def get_set(self, user_id: str, set_id: str) -> FlashcardSetResponse:
        """
        Load a set with its deck, ready to start a study session.

        Raises:
            NotFoundError: If the set does not exist or belongs to another user
            PersistenceError: If the set or its cards could not be read
        """
        flashcard_set = await self._owned_set(user_id, set_id)

        cards = await self.store.list_flashcards(set_id)
        if not cards.is_ok:
            raise PersistenceError(
                "Could not load flashcards",
                details={"set_id": set_id, "reason": cards.error_message},
            )
        return FlashcardSetResponse(
            id=flashcard_set.id,
            title=flashcard_set.title,
            description=flashcard_set.description,
            flashcards=cards.value,
        )

    async def delete_set(self, user_id: str, set_id: str) -> None:
        """
        Delete one of the user's sets together with its cards.

        Raises:
            NotFoundError: If the set does not exist or belongs to another user
            PersistenceError: If the delete failed
        """
        await self._owned_set(user_id, set_id)

        deleted = await self.store.delete_set(set_id)
        if not deleted.is_ok:
            raise PersistenceError(
                "Could not delete flashcard set",
                details={"set_id": set_id, "reason": deleted.error_message},
            )
        logger.info(f"Deleted flashcard set {set_id} for user {user_id}")

    async def _owned_set(self, user_id: str, set_id: str):
        found = await self.store.get_set(set_id)
        if not found.is_ok:
            raise PersistenceError(
                "Could not load flashcard set",
                details={"set_id": set_id, "reason": found.error_message},
            )
        if found.value is None or found.value.user_id != user_id:
            raise NotFoundError("Flashcard set not found", details={"set_id": set_id})
        return found.value
