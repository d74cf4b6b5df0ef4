"""
Database Base Configuration

Async SQLAlchemy engine and session factory for the flashstudy tables
(user_contributions, flashcard_sets, flashcards). Pool sizes come from
the `database` section of config/default.yaml.

The contribution and flashcard set stores receive a session from
get_db(); tests swap in an in-memory aiosqlite session instead.

Usage:
    from flashstudy.db.base import async_session_maker, Base

    async with async_session_maker() as session:
        result = await session.execute(...)
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from flashstudy.config import settings, yaml_config


# Get pool configuration from yaml config
db_config: dict[str, Any] = yaml_config.get("database", {})
pool_size: int = db_config.get("pool_size", 5)
max_overflow: int = db_config.get("max_overflow", 10)
pool_timeout: int = db_config.get("pool_timeout", 30)

# Create async engine (no connection is opened until first use)
engine = create_async_engine(
    settings.POSTGRES_URL,
    pool_size=pool_size,
    max_overflow=max_overflow,
    pool_timeout=pool_timeout,
    echo=settings.DEBUG,
)

# Create async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for the flashstudy ORM models."""

    pass


# Registers the contribution and flashcard tables on Base.metadata.
from flashstudy.db import models  # noqa: F401, E402


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session for the store dependencies.

    Commits when the request succeeds and rolls back when it raises.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

