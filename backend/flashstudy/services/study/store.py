"""
Flashcard Set Store

Persistence adapter for the `flashcard_sets` and `flashcards` tables
(create, read, list and delete).
Methods return Result; database failures become
ErrorKind.COLLABORATOR_UNAVAILABLE failures.
"""

import logging
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashstudy.db.models import Flashcard as FlashcardRow
from flashstudy.db.models import FlashcardSet as FlashcardSetRow
from flashstudy.enums.errors import ErrorKind
from flashstudy.models.study import Flashcard, FlashcardDraft, FlashcardSetSummary
from flashstudy.services.contributions.store import PERSISTENCE_ERRORS
from flashstudy.services.contributions.timeutils import ensure_utc
from flashstudy.services.result import Result

logger = logging.getLogger(__name__)


def _to_flashcard(row: FlashcardRow) -> Flashcard:
    return Flashcard(id=row.id, question=row.question, answer=row.answer, set_id=row.set_id)


class FlashcardSetStore:
    """Creates and reads flashcard sets and their cards."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_set(
        self, user_id: str, title: str, description: Optional[str] = None
    ) -> Result[FlashcardSetRow]:
        """Insert an empty set owned by the user."""
        row = FlashcardSetRow(user_id=user_id, title=title, description=description or None)
        try:
            self.db.add(row)
            await self.db.commit()
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to create flashcard set for user {user_id}: {e}")
            await self._safe_rollback()
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))
        return Result.ok(row)

    async def insert_flashcards(
        self, set_id: str, drafts: list[FlashcardDraft]
    ) -> Result[list[Flashcard]]:
        """Insert cards into a set, preserving draft order."""
        rows = [
            FlashcardRow(set_id=set_id, question=draft.question, answer=draft.answer)
            for draft in drafts
        ]
        try:
            self.db.add_all(rows)
            await self.db.commit()
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to insert flashcards into set {set_id}: {e}")
            await self._safe_rollback()
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))
        return Result.ok([_to_flashcard(row) for row in rows])

    async def list_flashcards(self, set_id: str) -> Result[list[Flashcard]]:
        """Cards of a set in creation order."""
        query = (
            select(FlashcardRow)
            .where(FlashcardRow.set_id == set_id)
            .order_by(FlashcardRow.created_at)
        )
        try:
            result = await self.db.execute(query)
            return Result.ok([_to_flashcard(row) for row in result.scalars().all()])
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to read flashcards of set {set_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

    async def get_set(self, set_id: str) -> Result[Optional[FlashcardSetRow]]:
        """The set with this id, or None when it does not exist."""
        query = select(FlashcardSetRow).where(FlashcardSetRow.id == set_id)
        try:
            result = await self.db.execute(query)
            return Result.ok(result.scalar_one_or_none())
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to read flashcard set {set_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

    async def list_sets(self, user_id: str) -> Result[list[FlashcardSetSummary]]:
        """Sets owned by the user with their card counts, newest first."""
        query = (
            select(FlashcardSetRow, func.count(FlashcardRow.id))
            .outerjoin(FlashcardRow, FlashcardRow.set_id == FlashcardSetRow.id)
            .where(FlashcardSetRow.user_id == user_id)
            .group_by(FlashcardSetRow.id)
            .order_by(FlashcardSetRow.created_at.desc())
        )
        try:
            result = await self.db.execute(query)
            rows = result.all()
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to list flashcard sets for user {user_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))
        return Result.ok(
            [
                FlashcardSetSummary(
                    id=row.id,
                    title=row.title,
                    description=row.description,
                    card_count=int(card_count or 0),
                    created_at=ensure_utc(row.created_at),
                )
                for row, card_count in rows
            ]
        )

    async def delete_set(self, set_id: str) -> Result[bool]:
        """
        Delete a set and its cards, cards first.

        Returns Result.ok(False) when no set with this id existed.
        """
        try:
            await self.db.execute(delete(FlashcardRow).where(FlashcardRow.set_id == set_id))
            result = await self.db.execute(
                delete(FlashcardSetRow).where(FlashcardSetRow.id == set_id)
            )
            await self.db.commit()
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to delete flashcard set {set_id}: {e}")
            await self._safe_rollback()
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))
        return Result.ok(result.rowcount > 0)

    async def count_sets(self, user_id: str) -> Result[int]:
        """Number of sets owned by the user."""
        query = select(func.count(FlashcardSetRow.id)).where(
            FlashcardSetRow.user_id == user_id
        )
        try:
            result = await self.db.execute(query)
            return Result.ok(int(result.scalar() or 0))
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to count flashcard sets for user {user_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

    async def _safe_rollback(self) -> None:
        try:
            await self.db.rollback()
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Rollback failed: {e}")
