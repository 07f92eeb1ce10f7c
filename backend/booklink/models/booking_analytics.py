"""Booking analytics event model - append-only access log.

Rows are owned by a Booking and removed with it (ON DELETE CASCADE).
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from booklink.models.base import Base


class BookingAnalyticsEvent(Base):
    """One recorded interaction with a booking's magic link.

    Attributes:
        id: UUID primary key.
        booking_id: FK to bookings.id (the UUID, not the human-readable id).
        event_type: Free-form tag, e.g. "magic_link_click" or "interaction".
        user_agent: Client User-Agent, if known.
        ip_address: Client IP (v4 or v6), if known.
        timestamp: When the event was recorded.
    """

    __tablename__ = "booking_analytics"
    __table_args__ = (
        Index("booking_analytics_booking_id_idx", "booking_id"),
        Index("booking_analytics_event_type_idx", "event_type"),
        Index("booking_analytics_timestamp_idx", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    user_agent: Mapped[str | None] = mapped_column(Text(), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
