"""Booking lifecycle endpoints.

Endpoints:
- POST /booking/create: create a booking and text the user a magic link
- GET /booking/magic/{token}: resolve a magic link to the full booking
- GET /booking/{id}: fetch a booking with its link expiry state
- POST /booking/confirm/{id}: confirm an appointment
- PUT /booking/payment/{id}: record payment state
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Path, Request, status

from booklink.api.deps import ClientIp, ClockDep, DbSession
from booklink.core.config import settings
from booklink.core.errors import ValidationError
from booklink.core.notifier import build_magic_link_message, send_magic_link_sms
from booklink.core.rate_limiting import limiter
from booklink.core.responses import DataResponse
from booklink.schemas.booking import (
    BookingConfirmedResponse,
    BookingCreatedResponse,
    BookingDetailResponse,
    BookingResponse,
    CreateBookingRequest,
    PaymentUpdatedResponse,
    UpdatePaymentRequest,
)
from booklink.services.booking_service import BookingService
from booklink.services.magic_link_resolver import MagicLinkResolver

router = APIRouter()

_MAX_TOKEN_LENGTH = 50


# ===================================================================
# POST /booking/create
# ===================================================================


@router.post("/create", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_create)
async def create_booking(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: CreateBookingRequest,
    background_tasks: BackgroundTasks,
    db: DbSession,
    clock: ClockDep,
) -> DataResponse[BookingCreatedResponse]:
    """Create a booking with a one-hour magic link.

    The SMS goes out as a background task after the booking is committed,
    so a slow or failing gateway never delays or fails the response.
    """
    created = await BookingService(db, clock).create(
        body, magic_link_base_url=settings.magic_link_base_url
    )
    await db.commit()

    background_tasks.add_task(
        send_magic_link_sms,
        to_phone=created.booking.user_phone,
        message=build_magic_link_message(created.magic_link),
    )

    booking = created.booking
    return DataResponse(
        data=BookingCreatedResponse(
            booking_id=booking.booking_id,
            uuid=booking.id,
            magic_link_id=booking.magic_link_id,
            magic_link=created.magic_link,
            status=booking.status,
        )
    )


# ===================================================================
# GET /booking/magic/{token}
# ===================================================================


@router.get("/magic/{token}")
async def get_booking_by_magic_link(
    token: Annotated[str, Path(min_length=1, max_length=_MAX_TOKEN_LENGTH)],
    request: Request,
    db: DbSession,
    clock: ClockDep,
    client_ip: ClientIp,
) -> DataResponse[BookingResponse]:
    """Resolve a magic link and return the booking it points at.

    Counts as an access. Expired links answer 410 MAGIC_LINK_EXPIRED.
    """
    booking = await MagicLinkResolver(db, clock).resolve_booking(
        token,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip,
    )
    return DataResponse(data=BookingResponse.from_booking(booking))


# ===================================================================
# GET /booking/{id}
# ===================================================================


@router.get("/{booking_uuid}")
async def get_booking(
    booking_uuid: uuid.UUID,
    db: DbSession,
    clock: ClockDep,
) -> DataResponse[BookingDetailResponse]:
    """Fetch a booking by UUID, including whether its link has expired."""
    view = await BookingService(db, clock).get_by_id(booking_uuid)
    return DataResponse(
        data=BookingDetailResponse.from_view(
            view.booking,
            is_expired=view.is_expired,
            expires_in=view.expires_in,
        )
    )


# ===================================================================
# POST /booking/confirm/{id}
# ===================================================================


@router.post("/confirm/{booking_uuid}")
async def confirm_booking(
    booking_uuid: uuid.UUID,
    db: DbSession,
    clock: ClockDep,
) -> DataResponse[BookingConfirmedResponse]:
    """Confirm an appointment. Re-confirming refreshes confirmedAt."""
    booking = await BookingService(db, clock).confirm(booking_uuid)
    return DataResponse(
        data=BookingConfirmedResponse(
            booking_id=booking.booking_id,
            uuid=booking.id,
            status=booking.status,
            confirmed_at=booking.confirmed_at,
        )
    )


# ===================================================================
# PUT /booking/payment/{id}
# ===================================================================


@router.put("/payment/{booking_uuid}")
async def update_payment(
    booking_uuid: uuid.UUID,
    body: UpdatePaymentRequest,
    db: DbSession,
    clock: ClockDep,
) -> DataResponse[PaymentUpdatedResponse]:
    """Record payment state. All payment fields are overwritten."""
    violations = body.rule_violations()
    if violations:
        raise ValidationError("Request validation failed", details=violations)

    booking = await BookingService(db, clock).update_payment(
        booking_uuid,
        body.payment_status,
        payment_id=body.payment_id,
        amount=body.amount,
        currency=body.currency,
    )
    return DataResponse(
        data=PaymentUpdatedResponse(
            booking_id=booking.booking_id,
            uuid=booking.id,
            payment_status=booking.payment_status,
        )
    )
