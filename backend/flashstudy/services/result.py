"""
Explicit success/failure values for collaborator calls.

Reads that feed decorative data (contribution graph, profile stats) are
fail-open: a failed read degrades to a documented default instead of
raising. Wrapping collaborator calls in Result keeps that degradation
visible at the call site:

    events = (await store.list_events(user_id, start, end)).unwrap_or([])

Load-bearing paths call `unwrap()` (or inspect `is_ok`) and surface the
failure instead.
"""

import logging
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from flashstudy.enums.errors import ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResultError(Exception):
    """Raised when unwrapping a failed Result."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or an ErrorKind with a message."""

    value: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    error_message: str = ""

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(error_kind=kind, error_message=message)

    @property
    def is_ok(self) -> bool:
        return self.error_kind is None

    def unwrap(self) -> T:
        """Return the value or raise ResultError."""
        if self.error_kind is not None:
            raise ResultError(self.error_kind, self.error_message)
        return self.value

    def unwrap_or(self, default: T, context: str = "") -> T:
        """
        Return the value, or the default on failure.

        Failures are logged with the optional context so the degradation
        is traceable.
        """
        if self.error_kind is None:
            return self.value
        logger.warning(
            f"Using default for {context or 'failed read'}: "
            f"{self.error_kind.value}: {self.error_message}"
        )
        return default
