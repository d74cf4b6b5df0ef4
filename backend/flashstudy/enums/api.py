"""
API-related enums.

Defines enums for rate limiting and other API concerns.
"""

from enum import Enum


class RateLimitType(str, Enum):
    """
    Rate limit categories for different endpoint types.

    Each category has a corresponding rate limit configured in settings.
    Usage:
        from flashstudy.enums import RateLimitType
        from flashstudy.config import settings

        limit = settings.get_rate_limit(RateLimitType.LLM_HEAVY)
    """

    # General API endpoints
    DEFAULT = "default"

    # Endpoints that call the AI collaborator (grading, set generation)
    LLM_HEAVY = "llm_heavy"

    # Contribution tracking writes (app opens, session completion)
    TRACKING = "tracking"
