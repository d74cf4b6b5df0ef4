"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across the unit tests:
- Fixed clock and contribution event factories
- Flashcard deck factories
- Mocked and in-memory (aiosqlite) database sessions
- Mocked LLM client
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Predictable configuration, set before flashstudy.config is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("API_KEY", "")
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("POSTGRES_PASSWORD", "testpass")
# Use litellm's bundled model cost map instead of fetching it over the network
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from flashstudy.db.base import Base  # noqa: E402
from flashstudy.enums import ContributionType  # noqa: E402
from flashstudy.models.contributions import ContributionEvent  # noqa: E402
from flashstudy.models.study import Flashcard  # noqa: E402

# Reference "now" used across tests: 2024-01-10 12:00 UTC
FIXED_NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Time
# ============================================================================


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock callable pinned to FIXED_NOW."""
    return lambda: FIXED_NOW


# ============================================================================
# Contribution Events
# ============================================================================


@pytest.fixture
def make_event() -> Callable[..., ContributionEvent]:
    """Factory for contribution events."""
    counter = {"id": 0}

    def _make(
        created_at: datetime,
        contribution_type: ContributionType = ContributionType.APP_OPENED,
        value: int = 1,
        metadata: Optional[dict[str, Any]] = None,
        user_id: str = "user-1",
    ) -> ContributionEvent:
        counter["id"] += 1
        return ContributionEvent(
            id=counter["id"],
            user_id=user_id,
            type=contribution_type,
            value=value,
            created_at=created_at,
            metadata=metadata or {},
        )

    return _make


# ============================================================================
# Flashcards
# ============================================================================


@pytest.fixture
def make_deck() -> Callable[[int], list[Flashcard]]:
    """Factory for a deck of n flashcards with ids card-1..card-n."""

    def _make(n: int, set_id: str = "set-1") -> list[Flashcard]:
        return [
            Flashcard(
                id=f"card-{i}",
                question=f"Question {i}?",
                answer=f"Answer {i}",
                set_id=set_id,
            )
            for i in range(1, n + 1)
        ]

    return _make


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def mock_db_session() -> MagicMock:
    """
    Create a mock async database session.

    Returns a MagicMock configured to behave like an AsyncSession.
    """
    session = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """In-memory SQLite session with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


# ============================================================================
# LLM
# ============================================================================


@pytest.fixture
def mock_llm_client() -> MagicMock:
    """LLM client whose complete() returns (text, usage)."""
    client = MagicMock()
    client.complete = AsyncMock(return_value=("{}", MagicMock()))
    return client


@pytest.fixture
def sample_yaml_config() -> dict[str, Any]:
    """Sample YAML configuration for testing."""
    return {
        "app": {"name": "Flashstudy"},
        "database": {"pool_size": 2, "max_overflow": 4, "pool_timeout": 10},
        "llm": {"cache_max_entries": 8},
    }
