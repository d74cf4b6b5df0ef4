"""
Contribution Event Store

Persistence adapter for the append-only `user_contributions` table.

Every method returns a Result: database failures are logged and reported
as ErrorKind.COLLABORATOR_UNAVAILABLE instead of raised, so callers decide
whether to fall back to a default (graph, stats) or surface the failure.

Each insert commits on its own. Multiple events emitted for one action are
therefore independent: one failing does not roll back the others.

Usage:
    from flashstudy.services.contributions.store import ContributionStore

    store = ContributionStore(db)
    result = await store.insert_event(user_id, ContributionType.APP_OPENED)
"""

import logging
from datetime import datetime
from typing import Any, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flashstudy.db.models import UserContribution
from flashstudy.enums.contributions import ContributionType
from flashstudy.enums.errors import ErrorKind
from flashstudy.models.contributions import (
    ContributionEvent,
    ContributionMetadataBase,
    StudyCompletedMetadata,
    build_metadata,
)
from flashstudy.services.contributions.timeutils import ensure_utc, utc_now
from flashstudy.services.result import Result

logger = logging.getLogger(__name__)

PERSISTENCE_ERRORS = (SQLAlchemyError, OSError)


class ContributionStore:
    """Reads and appends contribution events for users."""

    def __init__(self, db: AsyncSession):
        """
        Initialize the store.

        Args:
            db: SQLAlchemy async database session.
        """
        self.db = db

    # =========================================================================
    # Writes
    # =========================================================================

    async def insert_event(
        self,
        user_id: str,
        contribution_type: ContributionType,
        value: int = 1,
        metadata: Union[ContributionMetadataBase, dict[str, Any], None] = None,
        created_at: Optional[datetime] = None,
    ) -> Result[ContributionEvent]:
        """
        Append one event to the log.

        Args:
            user_id: Owner of the event
            contribution_type: Event type
            value: Event weight (>= 1)
            metadata: Typed metadata variant or raw dict
            created_at: Event time (defaults to now, UTC)

        Returns:
            Result with the stored event
        """
        if value < 1:
            return Result.failure(
                ErrorKind.VALIDATION, f"Contribution value must be >= 1, got {value}"
            )

        if not isinstance(metadata, ContributionMetadataBase):
            metadata = build_metadata(contribution_type, metadata)

        row = UserContribution(
            user_id=user_id,
            contribution_type=contribution_type.value,
            contribution_value=value,
            details=metadata.to_payload(),
            created_at=created_at or utc_now(),
        )

        try:
            self.db.add(row)
            await self.db.commit()
        except PERSISTENCE_ERRORS as e:
            logger.error(
                f"Failed to insert {contribution_type.value} contribution "
                f"for user {user_id}: {e}"
            )
            await self._safe_rollback()
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

        return Result.ok(self._to_event(row))

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_events(
        self, user_id: str, start: datetime, end: datetime
    ) -> Result[list[ContributionEvent]]:
        """
        Fetch events in [start, end], newest first.

        Rows with an unknown contribution type are skipped.
        """
        query = (
            select(UserContribution)
            .where(UserContribution.user_id == user_id)
            .where(UserContribution.created_at >= start)
            .where(UserContribution.created_at <= end)
            .order_by(UserContribution.created_at.desc(), UserContribution.id.desc())
        )
        try:
            result = await self.db.execute(query)
            rows = result.scalars().all()
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to read contributions for user {user_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

        events = []
        for row in rows:
            try:
                events.append(self._to_event(row))
            except ValueError as e:
                logger.warning(f"Skipping unreadable contribution row {row.id}: {e}")
        return Result.ok(events)

    async def total_value(self, user_id: str) -> Result[int]:
        """Sum of all event values for the user."""
        query = select(
            func.coalesce(func.sum(UserContribution.contribution_value), 0)
        ).where(UserContribution.user_id == user_id)
        try:
            result = await self.db.execute(query)
            return Result.ok(int(result.scalar() or 0))
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to sum contributions for user {user_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

    async def event_timestamps(self, user_id: str) -> Result[list[datetime]]:
        """All event timestamps for the user (UTC), newest first."""
        query = (
            select(UserContribution.created_at)
            .where(UserContribution.user_id == user_id)
            .order_by(UserContribution.created_at.desc())
        )
        try:
            result = await self.db.execute(query)
            return Result.ok([ensure_utc(ts) for ts in result.scalars().all()])
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to read contribution times for user {user_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

    async def value_by_type(self, user_id: str) -> Result[dict[str, int]]:
        """Summed event value per contribution type."""
        query = (
            select(
                UserContribution.contribution_type,
                func.sum(UserContribution.contribution_value),
            )
            .where(UserContribution.user_id == user_id)
            .group_by(UserContribution.contribution_type)
        )
        try:
            result = await self.db.execute(query)
            return Result.ok({row[0]: int(row[1] or 0) for row in result.all()})
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to group contributions for user {user_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

    async def cards_studied(self, user_id: str) -> Result[int]:
        """Total cards studied across all study_completed events."""
        query = (
            select(UserContribution.details)
            .where(UserContribution.user_id == user_id)
            .where(
                UserContribution.contribution_type
                == ContributionType.STUDY_COMPLETED.value
            )
        )
        try:
            result = await self.db.execute(query)
            payloads = result.scalars().all()
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to read study sessions for user {user_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

        total = 0
        for payload in payloads:
            metadata = build_metadata(ContributionType.STUDY_COMPLETED, payload)
            if isinstance(metadata, StudyCompletedMetadata):
                total += metadata.cards_studied
        return Result.ok(total)

    async def has_event_since(
        self,
        user_id: str,
        since: datetime,
        contribution_type: Optional[ContributionType] = None,
    ) -> Result[bool]:
        """Whether the user has any event (optionally of one type) at or after `since`."""
        query = (
            select(UserContribution.id)
            .where(UserContribution.user_id == user_id)
            .where(UserContribution.created_at >= since)
        )
        if contribution_type is not None:
            query = query.where(
                UserContribution.contribution_type == contribution_type.value
            )
        query = query.limit(1)

        try:
            result = await self.db.execute(query)
            return Result.ok(result.first() is not None)
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to check recent contributions for user {user_id}: {e}")
            return Result.failure(ErrorKind.COLLABORATOR_UNAVAILABLE, str(e))

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _to_event(row: UserContribution) -> ContributionEvent:
        contribution_type = ContributionType(row.contribution_type)
        return ContributionEvent(
            id=row.id,
            user_id=row.user_id,
            type=contribution_type,
            value=row.contribution_value,
            created_at=ensure_utc(row.created_at),
            metadata=build_metadata(contribution_type, row.details),
        )

    async def _safe_rollback(self) -> None:
        try:
            await self.db.rollback()
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Rollback failed: {e}")
