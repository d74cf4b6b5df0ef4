"""
Error Handling Middleware

Provides consistent, informative error responses across the API.

Features:
- Standardized error response format
- Correlation IDs for log tracking
- Sanitized responses (hides internal details in production)
- Custom exception classes mapped to the error taxonomy:
  collaborator unavailable (LLMError, PersistenceError), validation
  failures (ValidationError) and misuse of the study engine
  (SessionStateError)

Usage:
    from flashstudy.middleware.error_handling import ErrorHandlingMiddleware, ServiceError

    # Add middleware to app
    app.add_middleware(ErrorHandlingMiddleware)

    # Raise custom exceptions
    raise PersistenceError("Could not create flashcard set")

Exception flow:
    Request → ErrorHandlingMiddleware.dispatch()
                  │
                  └─ try:
                        await call_next(request)  ← entire app runs here
                             │
                             └─ raise SomeException  ← bubbles up
                     except ServiceError:  ← structured JSON response
                     except Exception:     ← sanitized 500 response

    HTTPException is re-raised for FastAPI's built-in handler.
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for service errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise ServiceError("Database connection failed", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = None,
        error_code: str = None,
        details: dict = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class LLMError(ServiceError):
    """
    AI collaborator error.

    Raised when every model in the chain failed (rate limits, timeouts, etc.)
    """

    status_code = 502
    error_code = "llm_error"


class PersistenceError(ServiceError):
    """
    Persistence collaborator error on a load-bearing write.

    Decorative reads never raise this; they degrade to defaults.
    """

    status_code = 503
    error_code = "persistence_unavailable"


class ValidationError(ServiceError):
    """
    Input validation error.

    Raised before any network call, with no partial state change.
    """

    status_code = 422
    error_code = "validation_error"


class AuthenticationError(ServiceError):
    """Raised when no authenticated user is present."""

    status_code = 401
    error_code = "unauthenticated"


class SessionStateError(ServiceError):
    """
    Study session transition not allowed in the current state.

    Example: flipping a card while a grade is in flight, or finalizing
    an active session.
    """

    status_code = 409
    error_code = "invalid_session_state"


class NotFoundError(ServiceError):
    """
    Resource not found error.

    Also raised for flashcard sets owned by another user.
    """

    status_code = 404
    error_code = "not_found"


# =============================================================================
# Error Handling Middleware
# =============================================================================


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Turns errors escaping flashstudy routes into JSON error bodies.

    ServiceError subclasses keep their own status (LLMError 502,
    PersistenceError 503, SessionStateError 409 and so on). Anything
    else becomes a 500 "internal_server_error". Every failure is logged
    with a short error id that is also returned to the client.
    """

    def __init__(self, app, debug: bool = False):
        """
        Args:
            app: FastAPI/Starlette application
            debug: Include error details and tracebacks in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        error_id = str(uuid4())[:8]
        log_extra = {
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
        }

        try:
            return await call_next(request)
        except HTTPException:
            raise
        except ServiceError as e:
            logger.error(
                f"[{error_id}] {e.error_code}: {e.message}",
                extra={**log_extra, "error_code": e.error_code, "details": e.details},
            )
            return create_error_response(
                e.error_code,
                e.message,
                status_code=e.status_code,
                details=e.details if self.debug else None,
                error_id=error_id,
            )
        except Exception as e:
            trace = traceback.format_exc()
            logger.error(
                f"[{error_id}] Unhandled error: {type(e).__name__}: {e}",
                extra={**log_extra, "traceback": trace},
            )
            details = None
            if self.debug:
                details = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": trace,
                }
            return create_error_response(
                "internal_server_error",
                "An unexpected error occurred",
                status_code=500,
                details=details,
                error_id=error_id,
            )


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    Service errors are also registered as exception handlers so they are
    rendered the same way when raised inside dependencies.

    Args:
        app: FastAPI application instance
        debug: Whether to include details in responses
    """

    async def _service_error_handler(request: Request, exc: ServiceError):
        return create_error_response(
            exc.error_code,
            exc.message,
            status_code=exc.status_code,
            details=exc.details if debug else None,
        )

    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


# =============================================================================
# Helper Functions
# =============================================================================


def create_error_response(
    error_code: str,
    message: str,
    status_code: int = 500,
    details: dict = None,
    error_id: str = None,
) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        error_code: Error code for categorization
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional details
        error_id: Correlation id already used in the logs (generated if absent)

    Returns:
        JSONResponse with standardized error format
    """
    error_id = error_id or str(uuid4())[:8]

    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_code,
            "message": message,
            "error_id": error_id,
            "details": details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def handle_endpoint_errors(operation_name: str):
    """
    Decorator for router endpoints.

    Service errors and HTTP exceptions pass through unchanged; anything
    else is logged and turned into a 500 naming the failed operation.

    Args:
        operation_name: Human-readable operation, e.g. "Grade answer"
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (HTTPException, ServiceError):
                raise
            except Exception as e:
                logger.error(f"{operation_name} failed: {e}", exc_info=True)
                raise HTTPException(
                    status_code=500, detail=f"{operation_name} failed"
                )

        return wrapper

    return decorator
