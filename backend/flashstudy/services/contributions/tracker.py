"""
Contribution Tracking Service

Write-side helpers for the contribution event log: recording events,
the first-of-day bonus and the once-per-day app-open check-in.

Usage:
    from flashstudy.services.contributions.tracker import ContributionTracker

    tracker = ContributionTracker(store)
    await tracker.track(user_id, ContributionType.PROFILE_UPDATED,
                        metadata={"updated_fields": ["full_name"]})
    is_new = await tracker.track_app_open(user_id)
"""

import logging
from typing import Any, Optional, Union

from flashstudy.config import settings
from flashstudy.enums.contributions import ContributionType
from flashstudy.models.contributions import (
    AppOpenedMetadata,
    ContributionEvent,
    ContributionMetadataBase,
    FirstOfDayMetadata,
)
from flashstudy.services.contributions.store import ContributionStore
from flashstudy.services.contributions.timeutils import Clock, start_of_utc_day, utc_now
from flashstudy.services.result import Result

logger = logging.getLogger(__name__)


class ContributionTracker:
    """
    Records contribution events.

    Attributes:
        store: Contribution event store
        clock: Callable returning the current UTC time
    """

    def __init__(self, store: ContributionStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or utc_now

    async def track(
        self,
        user_id: str,
        contribution_type: ContributionType,
        value: int = 1,
        metadata: Union[ContributionMetadataBase, dict[str, Any], None] = None,
    ) -> Result[ContributionEvent]:
        """
        Append one contribution event, stamped with the current time.

        Args:
            user_id: Owner of the event
            contribution_type: Event type
            value: Event weight (>= 1)
            metadata: Typed metadata or raw dict for the event type

        Returns:
            Result with the stored event
        """
        result = await self.store.insert_event(
            user_id,
            contribution_type,
            value=value,
            metadata=metadata,
            created_at=self.clock(),
        )
        if result.is_ok:
            logger.info(
                f"Tracked {contribution_type.value} (+{value}) for user {user_id}"
            )
        return result

    async def has_contributed_today(self, user_id: str) -> Result[bool]:
        """Whether the user already has any event in the current UTC day."""
        return await self.store.has_event_since(
            user_id, start_of_utc_day(self.clock())
        )

    async def award_first_of_day(
        self, user_id: str, already_active: bool
    ) -> Optional[ContributionEvent]:
        """
        Emit the first-of-day bonus when the user had no earlier event today.

        The caller checks activity *before* inserting the event that
        triggered the bonus and passes the answer in `already_active`.

        Args:
            user_id: User to award
            already_active: Whether an event existed earlier today

        Returns:
            The bonus event, or None if not awarded or the insert failed
        """
        if already_active:
            return None

        today = self.clock().date()
        result = await self.track(
            user_id,
            ContributionType.FIRST_OF_DAY,
            value=settings.FIRST_OF_DAY_VALUE,
            metadata=FirstOfDayMetadata(date=today.isoformat()),
        )
        if not result.is_ok:
            logger.error(
                f"First-of-day bonus for user {user_id} not recorded: "
                f"{result.error_message}"
            )
            return None
        return result.value

    async def track_app_open(self, user_id: str) -> bool:
        """
        Record the daily check-in, at most once per UTC day.

        Args:
            user_id: User opening the app

        Returns:
            True if a new app_opened event was recorded
        """
        now = self.clock()
        already_opened = (
            await self.store.has_event_since(
                user_id, start_of_utc_day(now), ContributionType.APP_OPENED
            )
        ).unwrap_or(True, context="app-open check")
        if already_opened:
            return False

        result = await self.track(
            user_id,
            ContributionType.APP_OPENED,
            metadata=AppOpenedMetadata(date=now.date().isoformat()),
        )
        return result.is_ok
