"""Repository for Booking CRUD operations.

Durable store for bookings: lookups by primary key and by magic link
token, inserts, allow-listed partial updates, the atomic access-count
increment, and administrative cascade delete.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booklink.models.booking import (
    AppointmentType,
    Booking,
    BookingStatus,
    PaymentStatus,
)
from booklink.models.booking_analytics import BookingAnalyticsEvent

# Fields that may be updated via BookingRepository.update().
# Never add 'id', 'booking_id', 'magic_link_id', 'created_at' or
# 'magic_link_expires_at': identity and link expiry are fixed at creation.
# 'access_count' and 'last_accessed_at' only move via increment_access().
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "status",
        "confirmed_at",
        "payment_status",
        "payment_id",
        "payment_amount",
        "payment_currency",
        "payment_updated_at",
    }
)


class BookingRepository:
    """Stateless repository for Booking table operations.

    All methods are static with no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, booking_uuid: uuid.UUID) -> Booking | None:
        """Fetch a booking by primary key.

        Args:
            db: Async database session.
            booking_uuid: UUID primary key.

        Returns:
            Booking if found, None otherwise.
        """
        return await db.get(Booking, booking_uuid)

    @staticmethod
    async def get_by_magic_link_id(
        db: AsyncSession, magic_link_id: str
    ) -> Booking | None:
        """Fetch a booking by its magic link token.

        Args:
            db: Async database session.
            magic_link_id: Token from the /appt/{token} URL.

        Returns:
            Booking if found, None otherwise.
        """
        stmt = select(Booking).where(Booking.magic_link_id == magic_link_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def booking_id_exists(db: AsyncSession, booking_id: str) -> bool:
        """Check whether a human-readable booking id is already taken."""
        stmt = select(exists().where(Booking.booking_id == booking_id))
        return bool(await db.scalar(stmt))

    @staticmethod
    async def magic_link_id_exists(db: AsyncSession, magic_link_id: str) -> bool:
        """Check whether a magic link token is already taken."""
        stmt = select(exists().where(Booking.magic_link_id == magic_link_id))
        return bool(await db.scalar(stmt))

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        booking_id: str,
        magic_link_id: str,
        user_name: str,
        user_phone: str,
        appointment_type: AppointmentType,
        appointment_date: datetime,
        booking_details: dict[str, Any],
        created_at: datetime,
        magic_link_expires_at: datetime | None,
        status: BookingStatus = BookingStatus.PENDING_CONFIRMATION,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
    ) -> Booking:
        """Insert a new booking.

        Args:
            db: Async database session.
            booking_id: Unique human-readable identifier.
            magic_link_id: Unique magic link token.
            user_name: Name of the person booking.
            user_phone: Phone number for magic link delivery.
            appointment_type: Kind of appointment.
            appointment_date: When the appointment takes place.
            booking_details: Free-form key/value document.
            created_at: Creation timestamp (from the injected clock).
            magic_link_expires_at: Token expiry, None for no expiry.
            status: Initial booking status.
            payment_status: Initial payment status.

        Returns:
            Created Booking with database-generated fields populated.

        Raises:
            sqlalchemy.exc.IntegrityError: If booking_id or magic_link_id
                already exists.
        """
        booking = Booking(
            booking_id=booking_id,
            magic_link_id=magic_link_id,
            user_name=user_name,
            user_phone=user_phone,
            appointment_type=appointment_type,
            appointment_date=appointment_date,
            booking_details=booking_details,
            status=status,
            payment_status=payment_status,
            created_at=created_at,
            magic_link_expires_at=magic_link_expires_at,
            access_count=0,
        )
        db.add(booking)
        await db.flush()
        await db.refresh(booking)
        return booking

    @staticmethod
    async def update(
        db: AsyncSession,
        booking_uuid: uuid.UUID,
        **kwargs: str | datetime | Decimal | None,
    ) -> Booking | None:
        """Update booking fields.

        Only fields in _UPDATABLE_FIELDS are allowed. Unknown field names
        raise ValueError. Concurrent updates are last-writer-wins.

        Args:
            db: Async database session.
            booking_uuid: UUID of the booking to update.
            **kwargs: Field names and values to update.

        Returns:
            Updated Booking if found, None if booking does not exist.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(kwargs) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        booking = await db.get(Booking, booking_uuid)
        if booking is None:
            return None

        for field, value in kwargs.items():
            setattr(booking, field, value)

        await db.flush()
        await db.refresh(booking)
        return booking

    @staticmethod
    async def increment_access(
        db: AsyncSession,
        booking_uuid: uuid.UUID,
        *,
        accessed_at: datetime,
    ) -> Booking | None:
        """Atomically bump access_count and stamp last_accessed_at.

        Uses a single UPDATE ... SET access_count = access_count + 1 so
        concurrent resolutions of the same token never lose increments.

        Args:
            db: Async database session.
            booking_uuid: UUID of the booking that was accessed.
            accessed_at: Access timestamp (from the injected clock).

        Returns:
            Refreshed Booking, or None if it vanished in the meantime.
        """
        stmt = (
            update(Booking)
            .where(Booking.id == booking_uuid)
            .values(
                access_count=Booking.access_count + 1,
                last_accessed_at=accessed_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            return None

        booking = await db.get(Booking, booking_uuid, populate_existing=True)
        return booking

    @staticmethod
    async def delete_cascade(db: AsyncSession, booking_uuid: uuid.UUID) -> bool:
        """Delete a booking and every analytics event it owns.

        Administrative only; the booking lifecycle never deletes. The
        analytics rows are removed explicitly so the cascade holds on
        backends where foreign key enforcement is off.

        Args:
            db: Async database session.
            booking_uuid: UUID of the booking to delete.

        Returns:
            True if a booking was deleted, False if it did not exist.
        """
        await db.execute(
            delete(BookingAnalyticsEvent).where(
                BookingAnalyticsEvent.booking_id == booking_uuid
            )
        )
        result = await db.execute(delete(Booking).where(Booking.id == booking_uuid))
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count > 0
