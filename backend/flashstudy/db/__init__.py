"""
Database package: async SQLAlchemy engine, session factory and ORM models.
"""

from flashstudy.db.base import Base, async_session_maker, engine, get_db
from flashstudy.db.models import Flashcard, FlashcardSet, UserContribution

__all__ = [
    "Base",
    "async_session_maker",
    "engine",
    "get_db",
    "Flashcard",
    "FlashcardSet",
    "UserContribution",
]
