"""
SQLAlchemy Database Models

Tables:
- user_contributions: Append-only log of contribution events
- flashcard_sets: User-owned flashcard sets
- flashcards: Question/answer cards belonging to a set

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    The corresponding Pydantic models live in flashstudy/models/.

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flashstudy.db.base import Base


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _new_uuid() -> str:
    return str(uuid.uuid4())


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class UserContribution(Base):
    """
    Append-only contribution event log.

    Rows are inserted on triggering actions and never updated or deleted.

    Attributes:
        id: Primary key, auto-incrementing integer identifier.
        user_id: Owner of the event (auth collaborator user id).
        contribution_type: ContributionType value.
        contribution_value: Integer weight of the event (>= 1).
        details: Type-specific metadata, stored in the "metadata" column.
        created_at: Event timestamp (UTC).
    """

    __tablename__ = "user_contributions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    contribution_type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )
    contribution_value: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    details: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSONType, nullable=True, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<UserContribution(id={self.id}, user={self.user_id}, "
            f"type={self.contribution_type}, value={self.contribution_value})>"
        )


class FlashcardSet(Base):
    """
    A user-owned set of flashcards.

    Attributes:
        id: UUID primary key.
        user_id: Owner of the set.
        title: Required display title.
        description: Optional description.
        created_at: Creation timestamp (UTC).
        flashcards: Cards in this set.
    """

    __tablename__ = "flashcard_sets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now
    )

    flashcards: Mapped[List["Flashcard"]] = relationship(
        back_populates="flashcard_set", cascade="all, delete-orphan"
    )


class Flashcard(Base):
    """A question/answer card in a flashcard set."""

    __tablename__ = "flashcards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    set_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("flashcard_sets.id", ondelete="CASCADE"), index=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now
    )

    flashcard_set: Mapped["FlashcardSet"] = relationship(back_populates="flashcards")
