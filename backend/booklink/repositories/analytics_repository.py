"""Repository for BookingAnalyticsEvent operations.

Append-only: rows are inserted and listed, never updated.
"""

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booklink.models.booking_analytics import BookingAnalyticsEvent


class AnalyticsRepository:
    """Stateless repository for booking_analytics table operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        booking_uuid: uuid.UUID,
        event_type: str,
        timestamp: datetime,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> BookingAnalyticsEvent:
        """Append an analytics event.

        Args:
            db: Async database session.
            booking_uuid: UUID of the owning booking.
            event_type: Free-form event tag.
            timestamp: When the event happened.
            user_agent: Client User-Agent, if known.
            ip_address: Client IP, if known.

        Returns:
            Created BookingAnalyticsEvent.
        """
        event = BookingAnalyticsEvent(
            booking_id=booking_uuid,
            event_type=event_type,
            user_agent=user_agent,
            ip_address=ip_address,
            timestamp=timestamp,
        )
        db.add(event)
        await db.flush()
        return event

    @staticmethod
    async def list_recent(
        db: AsyncSession,
        booking_uuid: uuid.UUID,
        *,
        limit: int,
    ) -> list[BookingAnalyticsEvent]:
        """List a booking's events, most recent first.

        Args:
            db: Async database session.
            booking_uuid: UUID of the owning booking.
            limit: Maximum number of events to return.

        Returns:
            At most `limit` events ordered by timestamp descending.
        """
        stmt = (
            select(BookingAnalyticsEvent)
            .where(BookingAnalyticsEvent.booking_id == booking_uuid)
            .order_by(
                BookingAnalyticsEvent.timestamp.desc(),
                BookingAnalyticsEvent.id.desc(),
            )
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
