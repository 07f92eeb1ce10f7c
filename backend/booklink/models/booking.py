"""Booking model - the entity every magic link resolves to.

A booking carries two independent state machines (status and
payment_status) plus the magic link bookkeeping: the lookup token, its
expiry, and access metrics.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Index, Numeric, String, Uuid, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from booklink.models.base import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
_JSON_DOCUMENT = JSON().with_variant(JSONB(), "postgresql")


class AppointmentType(str, Enum):
    """Kinds of appointment a booking can be made for."""

    CONSULTATION = "CONSULTATION"
    TUTORIAL = "TUTORIAL"
    ASSESSMENT = "ASSESSMENT"
    GROUP_SESSION = "GROUP_SESSION"
    WORKSHOP = "WORKSHOP"


class BookingStatus(str, Enum):
    """Booking lifecycle status."""

    PENDING_CONFIRMATION = "PENDING_CONFIRMATION"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, Enum):
    """Payment state, independent of BookingStatus."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


class Booking(Base):
    """A booked appointment reachable through a magic link.

    Attributes:
        id: UUID primary key (exposed to clients as "uuid").
        booking_id: Unique human-readable identifier.
        magic_link_id: Unique URL-safe lookup token used in /appt/{token}.
        user_name: Name of the person who booked.
        user_phone: Phone number the magic link is sent to.
        appointment_type: AppointmentType value.
        appointment_date: When the appointment takes place.
        booking_details: Free-form key/value document.
        status: BookingStatus value.
        payment_status: PaymentStatus value.
        payment_id: Processor payment reference.
        payment_amount: Amount paid (10,2).
        payment_currency: ISO 4217 currency code.
        created_at: Creation timestamp.
        confirmed_at: Last confirmation timestamp.
        payment_updated_at: Last payment update timestamp.
        last_accessed_at: Last successful magic link resolution.
        magic_link_expires_at: Token expiry. NULL = never expires (rows
            created before expiry was introduced).
        access_count: Successful magic link resolutions. Only incremented.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        Index("bookings_user_phone_idx", "user_phone"),
        Index("bookings_status_idx", "status"),
        Index("bookings_payment_status_idx", "payment_status"),
        Index("bookings_appointment_date_idx", "appointment_date"),
        Index("bookings_created_at_idx", "created_at"),
        Index("bookings_magic_link_expires_at_idx", "magic_link_expires_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    booking_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    magic_link_id: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
    )
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    appointment_type: Mapped[AppointmentType] = mapped_column(
        SAEnum(AppointmentType, name="appointment_type"),
        nullable=False,
    )
    appointment_date: Mapped[datetime] = mapped_column(nullable=False)
    booking_details: Mapped[dict[str, Any]] = mapped_column(
        _JSON_DOCUMENT,
        nullable=False,
        default=dict,
    )
    status: Mapped[BookingStatus] = mapped_column(
        SAEnum(BookingStatus, name="booking_status"),
        nullable=False,
        default=BookingStatus.PENDING_CONFIRMATION,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
    )
    payment_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    payment_updated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_accessed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    magic_link_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    access_count: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
        server_default=text("0"),
    )
