"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from flashstudy.config import settings

    # Access settings
    db_url = settings.POSTGRES_URL
    window = settings.CONTRIBUTION_WINDOW_DAYS
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings

from flashstudy.enums.api import RateLimitType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Flashstudy"
    DEBUG: bool = False

    # PostgreSQL (hosted database behind the persistence collaborator)
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "flashstudy"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "flashstudy"

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def POSTGRES_URL_SYNC(self) -> str:
        """Sync PostgreSQL connection URL for Alembic migrations."""
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Authentication collaborator
    # Empty API_KEY disables the key check (development mode).
    API_KEY: str = ""
    USER_ID_HEADER: str = "X-User-Id"

    # Generative AI (model-agnostic via LiteLLM, format: provider/model-name)
    GEMINI_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    TEXT_MODEL: str = "gemini/gemini-1.5-flash"
    FALLBACK_TEXT_MODEL: str = "gemini/gemini-pro"
    LLM_TEMPERATURE: float = 0.2
    LLM_MAX_TOKENS: int = 8192
    LLM_CACHE_MAX_ENTRIES: int = 256

    # Contributions
    CONTRIBUTION_WINDOW_DAYS: int = 365
    STUDY_COMPLETED_VALUE: int = 1
    PERFECT_SCORE_VALUE: int = 2
    FIRST_OF_DAY_VALUE: int = 1
    STREAK_MILESTONES: list[int] = [7, 14, 30, 60, 100, 365]

    # Heatmap buckets (absolute daily counts, GitHub-style)
    ACTIVITY_LEVEL_THRESHOLDS: list[int] = [3, 6, 9]

    # Grading
    GRADING_CORRECT_THRESHOLD: int = 70
    GRADING_FALLBACK_SCORE: int = 50

    # Flashcard set creation
    MIN_FLASHCARDS: int = 1
    MAX_FLASHCARDS: int = 50
    DEFAULT_FLASHCARDS: int = 10

    # Rate limiting (SlowAPI limit strings)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"
    RATE_LIMIT_LLM_HEAVY: str = "10/minute"
    RATE_LIMIT_TRACKING: str = "30/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def get_rate_limit(self, rate_limit_type: RateLimitType) -> str:
        """Return the SlowAPI limit string for an endpoint category."""
        limits = {
            RateLimitType.DEFAULT: self.RATE_LIMIT_DEFAULT,
            RateLimitType.LLM_HEAVY: self.RATE_LIMIT_LLM_HEAVY,
            RateLimitType.TRACKING: self.RATE_LIMIT_TRACKING,
        }
        return limits.get(rate_limit_type, self.RATE_LIMIT_DEFAULT)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
