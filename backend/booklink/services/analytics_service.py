"""Analytics recorder for magic link interactions.

Appends access and interaction events tied to a booking and lists the
most recent ones. Two recording modes:

- record(): foreground, errors propagate (explicit /track calls).
- record_best_effort(): used as a side effect of resolving a link;
  failures are logged and swallowed so the resolution still succeeds.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from booklink.core.clock import Clock
from booklink.models.booking_analytics import BookingAnalyticsEvent
from booklink.repositories.analytics_repository import AnalyticsRepository

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50
MAGIC_LINK_CLICK = "magic_link_click"
DEFAULT_TRACK_EVENT = "interaction"


class AnalyticsService:
    """Records and lists booking analytics events.

    Args:
        db: Async database session.
        clock: Time source for event timestamps.
    """

    def __init__(self, db: AsyncSession, clock: Clock) -> None:
        self._db = db
        self._clock = clock

    async def record(
        self,
        booking_uuid: uuid.UUID,
        event_type: str,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> BookingAnalyticsEvent:
        """Append an event; database errors propagate to the caller."""
        return await AnalyticsRepository.create(
            self._db,
            booking_uuid=booking_uuid,
            event_type=event_type,
            timestamp=self._clock.now(),
            user_agent=user_agent,
            ip_address=ip_address,
        )

    async def record_best_effort(
        self,
        booking_uuid: uuid.UUID,
        event_type: str,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> bool:
        """Append an event without ever failing the surrounding operation.

        The insert runs inside a SAVEPOINT so a failed write rolls back
        only itself and leaves the caller's transaction usable.

        Returns:
            True if the event was stored, False if recording failed.
        """
        try:
            async with self._db.begin_nested():
                await self.record(
                    booking_uuid,
                    event_type,
                    user_agent=user_agent,
                    ip_address=ip_address,
                )
        except Exception:
            logger.warning(
                "Failed to record analytics event %s for booking %s",
                event_type,
                booking_uuid,
                exc_info=True,
            )
            return False
        return True

    async def list_recent(
        self,
        booking_uuid: uuid.UUID,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[BookingAnalyticsEvent]:
        """Most recent events for a booking, newest first."""
        return await AnalyticsRepository.list_recent(
            self._db, booking_uuid, limit=limit
        )
