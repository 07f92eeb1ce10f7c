"""Pydantic request/response schemas for API endpoints."""

from booklink.schemas.booking import (
    BookingConfirmedResponse,
    BookingCreatedResponse,
    BookingDetailResponse,
    BookingResponse,
    CreateBookingRequest,
    PaymentUpdatedResponse,
    UpdatePaymentRequest,
)
from booklink.schemas.magic_link import (
    AnalyticsEventResponse,
    MagicLinkAnalyticsResponse,
    MagicLinkPreviewResponse,
    MessageResponse,
    TrackEventRequest,
)

__all__ = [
    # Booking lifecycle
    "BookingConfirmedResponse",
    "BookingCreatedResponse",
    "BookingDetailResponse",
    "BookingResponse",
    "CreateBookingRequest",
    "PaymentUpdatedResponse",
    "UpdatePaymentRequest",
    # Magic links
    "AnalyticsEventResponse",
    "MagicLinkAnalyticsResponse",
    "MagicLinkPreviewResponse",
    "MessageResponse",
    "TrackEventRequest",
]
