"""Booking request/response schemas.

Request models are the validation layer in front of BookingService:
malformed input is rejected with 400 VALIDATION_ERROR before any store
access. JSON keys are camelCase on the wire.
"""

import re
from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from booklink.core.sanitization import sanitize_text, sanitize_value
from booklink.models.booking import (
    AppointmentType,
    Booking,
    BookingStatus,
    PaymentStatus,
)

_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
_CURRENCY_PATTERN = r"^[A-Z]{3}$"

_MAX_DETAILS_KEYS = 100
"""Upper bound on top-level bookingDetails keys."""

JsonAmount = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]
"""Decimal that serializes as a JSON number rather than a string."""


class _CamelModel(BaseModel):
    """Base for models exchanged with clients in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _CamelRequest(_CamelModel):
    """Base for request bodies: camelCase, unknown keys rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# =============================================================================
# Requests
# =============================================================================


class CreateBookingRequest(_CamelRequest):
    """Request body for POST /booking/create."""

    user_phone: str = Field(min_length=1, max_length=50)
    user_name: str = Field(min_length=2, max_length=100)
    appointment_type: AppointmentType
    appointment_date: datetime
    booking_details: dict[str, Any] = Field(default_factory=dict)

    @field_validator("user_name", mode="before")
    @classmethod
    def sanitize_user_name(cls, v: Any) -> Any:
        """Strip markup before the length check runs."""
        if isinstance(v, str):
            return sanitize_text(v)
        return v

    @field_validator("user_phone")
    @classmethod
    def check_phone_format(cls, v: str) -> str:
        """Digits with optional leading +, spaces, dashes and parentheses."""
        v = v.strip()
        if not _PHONE_PATTERN.match(v):
            msg = "userPhone must be a valid phone number format"
            raise ValueError(msg)
        return v

    @field_validator("appointment_date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are interpreted as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @field_validator("booking_details")
    @classmethod
    def sanitize_details(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Bound the document size and strip markup from every string."""
        if len(v) > _MAX_DETAILS_KEYS:
            msg = f"bookingDetails must have at most {_MAX_DETAILS_KEYS} keys"
            raise ValueError(msg)
        sanitized: dict[str, Any] = sanitize_value(v)
        return sanitized


class UpdatePaymentRequest(_CamelRequest):
    """Request body for PUT /booking/payment/{id}.

    Field formats are checked by pydantic. Cross-field business rules are
    reported by rule_violations() so each one becomes its own itemized
    error.
    """

    payment_status: PaymentStatus
    payment_id: str | None = Field(default=None, min_length=1, max_length=255)
    amount: Decimal | None = Field(
        default=None,
        ge=0,
        max_digits=10,
        decimal_places=2,
    )
    currency: str | None = Field(default=None, pattern=_CURRENCY_PATTERN)

    def rule_violations(self) -> list[dict]:
        """Business rules for payment updates.

        - COMPLETED requires paymentId and amount
        - an amount requires a currency

        Returns:
            Field-level error dicts in the same shape as request
            validation errors; empty when the request is acceptable.
        """
        errors: list[dict] = []
        if self.payment_status == PaymentStatus.COMPLETED:
            if self.payment_id is None:
                errors.append(
                    _rule_error(
                        "paymentId",
                        "paymentId is required when payment status is COMPLETED",
                    )
                )
            if self.amount is None:
                errors.append(
                    _rule_error(
                        "amount",
                        "amount is required when payment status is COMPLETED",
                    )
                )
        if self.amount is not None and self.currency is None:
            errors.append(
                _rule_error("currency", "currency is required when amount is provided")
            )
        return errors


def _rule_error(field: str, message: str) -> dict:
    return {"loc": ["body", field], "msg": message, "type": "value_error"}


# =============================================================================
# Responses
# =============================================================================


class BookingCreatedResponse(_CamelModel):
    """Response for POST /booking/create."""

    booking_id: str
    uuid: UUID
    magic_link_id: str
    magic_link: str
    status: BookingStatus
    message: str = "Booking created successfully. Confirmation link sent to user."


class BookingResponse(_CamelModel):
    """Full booking payload (magic link data access path)."""

    booking_id: str
    uuid: UUID
    user_name: str
    user_phone: str
    appointment_type: AppointmentType
    appointment_date: datetime
    status: BookingStatus
    payment_status: PaymentStatus
    payment_id: str | None
    amount: JsonAmount | None
    currency: str | None
    created_at: datetime
    confirmed_at: datetime | None
    payment_updated_at: datetime | None
    booking_details: dict[str, Any]
    magic_link_id: str
    magic_link_expires_at: datetime | None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        """Build the payload from an ORM Booking."""
        return cls(**_booking_fields(booking))


class BookingDetailResponse(BookingResponse):
    """Booking fetched by id, with derived link expiry state."""

    is_expired: bool
    expires_in: str
    access_count: int
    last_accessed_at: datetime | None

    @classmethod
    def from_view(
        cls,
        booking: Booking,
        *,
        is_expired: bool,
        expires_in: str,
    ) -> "BookingDetailResponse":
        """Build the payload from an ORM Booking plus derived expiry fields."""
        return cls(
            **_booking_fields(booking),
            is_expired=is_expired,
            expires_in=expires_in,
            access_count=booking.access_count,
            last_accessed_at=booking.last_accessed_at,
        )


class BookingConfirmedResponse(_CamelModel):
    """Response for POST /booking/confirm/{id}."""

    booking_id: str
    uuid: UUID
    status: BookingStatus
    confirmed_at: datetime | None
    message: str = "Appointment confirmed successfully."


class PaymentUpdatedResponse(_CamelModel):
    """Response for PUT /booking/payment/{id}."""

    booking_id: str
    uuid: UUID
    payment_status: PaymentStatus
    message: str = "Payment status updated successfully."


def _booking_fields(booking: Booking) -> dict[str, Any]:
    return {
        "booking_id": booking.booking_id,
        "uuid": booking.id,
        "user_name": booking.user_name,
        "user_phone": booking.user_phone,
        "appointment_type": booking.appointment_type,
        "appointment_date": booking.appointment_date,
        "status": booking.status,
        "payment_status": booking.payment_status,
        "payment_id": booking.payment_id,
        "amount": booking.payment_amount,
        "currency": booking.payment_currency,
        "created_at": booking.created_at,
        "confirmed_at": booking.confirmed_at,
        "payment_updated_at": booking.payment_updated_at,
        "booking_details": booking.booking_details,
        "magic_link_id": booking.magic_link_id,
        "magic_link_expires_at": booking.magic_link_expires_at,
    }
