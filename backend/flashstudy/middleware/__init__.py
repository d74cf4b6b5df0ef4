"""
Middleware Package

Provides FastAPI middleware for:
- Rate limiting
- Error handling

Rate limiting usage:
    from flashstudy.middleware import limiter
    from flashstudy.enums import RateLimitType
    from flashstudy.config import settings

    @limiter.limit(settings.get_rate_limit(RateLimitType.LLM_HEAVY))
    async def my_endpoint(request: Request):
        ...
"""

from flashstudy.middleware.error_handling import (
    AuthenticationError,
    NotFoundError,
    ErrorHandlingMiddleware,
    LLMError,
    PersistenceError,
    ServiceError,
    SessionStateError,
    ValidationError,
    setup_error_handling,
)
from flashstudy.middleware.rate_limit import limiter, setup_rate_limiting

__all__ = [
    "setup_rate_limiting",
    "limiter",
    "setup_error_handling",
    "ErrorHandlingMiddleware",
    "ServiceError",
    "LLMError",
    "PersistenceError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "SessionStateError",
]
