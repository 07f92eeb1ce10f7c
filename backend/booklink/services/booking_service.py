"""Booking lifecycle service.

Creates bookings with a fresh magic link, confirms them, records payment
state, and reports a booking together with the expiry state of its link.

Status transitions are unconstrained: confirm always sets CONFIRMED and
a payment update always overwrites every payment field, whatever the
current values are. Only existence is checked.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from booklink.core.clock import Clock
from booklink.core.errors import InternalError, NotFoundError
from booklink.models.booking import Booking, BookingStatus, PaymentStatus
from booklink.repositories.booking_repository import BookingRepository
from booklink.schemas.booking import CreateBookingRequest
from booklink.services.magic_link_policy import (
    build_magic_link,
    compute_expiration,
    format_remaining,
    generate_booking_id,
    generate_magic_link_id,
    is_expired,
)

logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 5
"""Identifier draws before giving up on a unique booking id / token pair."""


@dataclass(frozen=True)
class CreatedBooking:
    """A freshly stored booking and the absolute link to send the user."""

    booking: Booking
    magic_link: str


@dataclass(frozen=True)
class BookingView:
    """A booking plus the expiry state of its magic link at read time."""

    booking: Booking
    is_expired: bool
    expires_in: str


class BookingService:
    """Create, confirm, pay for, and fetch bookings.

    Args:
        db: Async database session. The caller owns the transaction.
        clock: Time source for creation, confirmation and expiry checks.
    """

    def __init__(self, db: AsyncSession, clock: Clock) -> None:
        self._db = db
        self._clock = clock

    async def create(
        self,
        request: CreateBookingRequest,
        *,
        magic_link_base_url: str,
    ) -> CreatedBooking:
        """Store a new booking with a unique id and magic link token.

        The booking starts as PENDING_CONFIRMATION / PENDING, with zero
        accesses and a link valid for one hour from now.

        Args:
            request: Validated and sanitized booking input.
            magic_link_base_url: Host the /appt/{token} link points at.

        Returns:
            The stored booking and its absolute magic link.

        Raises:
            InternalError: If no unused identifier pair could be drawn.
        """
        now = self._clock.now()
        booking_id, magic_link_id = await self._unique_identifiers(now)

        booking = await BookingRepository.create(
            self._db,
            booking_id=booking_id,
            magic_link_id=magic_link_id,
            user_name=request.user_name,
            user_phone=request.user_phone,
            appointment_type=request.appointment_type,
            appointment_date=request.appointment_date,
            booking_details=request.booking_details,
            created_at=now,
            magic_link_expires_at=compute_expiration(now),
        )
        logger.info("Created booking %s", booking.booking_id)
        return CreatedBooking(
            booking=booking,
            magic_link=build_magic_link(magic_link_base_url, magic_link_id),
        )

    async def _unique_identifiers(self, now: datetime) -> tuple[str, str]:
        for attempt in range(1, _MAX_ID_ATTEMPTS + 1):
            booking_id = generate_booking_id(now)
            magic_link_id = generate_magic_link_id()
            if await BookingRepository.booking_id_exists(self._db, booking_id):
                logger.warning("Booking id collision on attempt %d", attempt)
                continue
            if await BookingRepository.magic_link_id_exists(self._db, magic_link_id):
                logger.warning("Magic link id collision on attempt %d", attempt)
                continue
            return booking_id, magic_link_id
        raise InternalError("Could not allocate a unique booking identifier")

    async def confirm(self, booking_uuid: uuid.UUID) -> Booking:
        """Mark a booking CONFIRMED and stamp confirmed_at.

        Raises:
            NotFoundError: If the booking does not exist.
        """
        booking = await BookingRepository.update(
            self._db,
            booking_uuid,
            status=BookingStatus.CONFIRMED,
            confirmed_at=self._clock.now(),
        )
        if booking is None:
            raise NotFoundError("Booking", str(booking_uuid))
        logger.info("Confirmed booking %s", booking.booking_id)
        return booking

    async def update_payment(
        self,
        booking_uuid: uuid.UUID,
        payment_status: PaymentStatus,
        *,
        payment_id: str | None = None,
        amount: Decimal | None = None,
        currency: str | None = None,
    ) -> Booking:
        """Overwrite the payment fields of a booking.

        Fields not supplied are cleared, not preserved. Business rules on
        the combination (COMPLETED needs an id and amount, an amount needs
        a currency) are enforced by the request schema before this runs.

        Raises:
            NotFoundError: If the booking does not exist.
        """
        booking = await BookingRepository.update(
            self._db,
            booking_uuid,
            payment_status=payment_status,
            payment_id=payment_id,
            payment_amount=amount,
            payment_currency=currency,
            payment_updated_at=self._clock.now(),
        )
        if booking is None:
            raise NotFoundError("Booking", str(booking_uuid))
        logger.info(
            "Payment for booking %s set to %s",
            booking.booking_id,
            payment_status.value,
        )
        return booking

    async def get_by_id(self, booking_uuid: uuid.UUID) -> BookingView:
        """Fetch a booking with its link expiry state.

        Reading a booking by id does not count as a magic link access.

        Raises:
            NotFoundError: If the booking does not exist.
        """
        booking = await BookingRepository.get_by_id(self._db, booking_uuid)
        if booking is None:
            raise NotFoundError("Booking", str(booking_uuid))
        now = self._clock.now()
        return BookingView(
            booking=booking,
            is_expired=is_expired(booking.magic_link_expires_at, now),
            expires_in=format_remaining(booking.magic_link_expires_at, now),
        )
