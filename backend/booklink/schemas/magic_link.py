"""Magic link preview, tracking and analytics schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from booklink.core.sanitization import sanitize_text
from booklink.models.booking import AppointmentType, BookingStatus, PaymentStatus
from booklink.models.booking_analytics import BookingAnalyticsEvent
from booklink.schemas.booking import _CamelModel, _CamelRequest


class MagicLinkPreviewResponse(_CamelModel):
    """Where a magic link would send the user, without redirecting."""

    uuid: UUID
    booking_id: str
    user_name: str
    appointment_type: AppointmentType
    status: BookingStatus
    payment_status: PaymentStatus
    redirect_url: str
    magic_link: str
    created_at: datetime


class TrackEventRequest(_CamelRequest):
    """Request body for POST /appt/{token}/track.

    All fields optional; the endpoint falls back to "interaction" and the
    request's own User-Agent header and client address.
    """

    event: str | None = Field(default=None, min_length=1, max_length=100)
    user_agent: str | None = Field(default=None, max_length=1000)
    ip_address: str | None = Field(default=None, max_length=45)

    @field_validator("event", "user_agent", "ip_address", mode="before")
    @classmethod
    def sanitize_strings(cls, v: Any) -> Any:
        """Strip markup; blank strings count as absent."""
        if isinstance(v, str):
            return sanitize_text(v) or None
        return v


class AnalyticsEventResponse(_CamelModel):
    """One analytics event as returned to clients."""

    event_type: str
    timestamp: datetime
    user_agent: str | None
    ip_address: str | None

    @classmethod
    def from_event(cls, event: BookingAnalyticsEvent) -> "AnalyticsEventResponse":
        return cls(
            event_type=event.event_type,
            timestamp=event.timestamp,
            user_agent=event.user_agent,
            ip_address=event.ip_address,
        )


class MagicLinkAnalyticsResponse(_CamelModel):
    """Access metrics and recent events for a magic link."""

    booking_id: str
    access_count: int
    last_accessed_at: datetime | None
    analytics: list[AnalyticsEventResponse]


class MessageResponse(_CamelModel):
    """Plain acknowledgement."""

    message: str
