"""
Rate Limiting Middleware

Protects the AI-backed endpoints (grading, set generation) and the
tracking endpoints from abuse using SlowAPI.

Usage:
    from flashstudy.middleware.rate_limit import limiter
    from flashstudy.enums import RateLimitType
    from flashstudy.config import settings

    @router.post("/grade")
    @limiter.limit(settings.get_rate_limit(RateLimitType.LLM_HEAVY))
    async def grade_answer(request: Request, ...):
        ...

Rate limit configurations (from settings):
- DEFAULT: General API endpoints (100/minute)
- LLM_HEAVY: Endpoints that call the AI collaborator (10/minute)
- TRACKING: Contribution tracking endpoints (30/minute)
"""

import logging

from fastapi import FastAPI, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from flashstudy.config import settings
from flashstudy.enums import RateLimitType

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.

    Prefers the authenticated user id header, then X-Forwarded-For when
    behind a proxy, then the direct IP address.

    Args:
        request: FastAPI request object

    Returns:
        User id, client IP address or identifier
    """
    user_id = request.headers.get(settings.USER_ID_HEADER)
    if user_id:
        return f"user:{user_id}"

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(key_func=get_client_identifier, enabled=settings.RATE_LIMIT_ENABLED)


def setup_rate_limiting(app: FastAPI, enabled: bool = True) -> None:
    """
    Configure rate limiting on the FastAPI app.

    Args:
        app: FastAPI application instance
        enabled: Whether to enable rate limiting
    """
    app.state.limiter = limiter

    if not enabled:
        logger.info("Rate limiting disabled")
        return

    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info("Rate limiting enabled")

