"""SQLAlchemy ORM models for the booking magic link service.

All models are exported from this module for convenient imports:
    from booklink.models import Booking, BookingAnalyticsEvent

Models:
- booking.py: Booking plus the AppointmentType, BookingStatus and
  PaymentStatus enums
- booking_analytics.py: BookingAnalyticsEvent (owned by Booking)
"""

from booklink.models.base import Base, UTCDateTime
from booklink.models.booking import (
    AppointmentType,
    Booking,
    BookingStatus,
    PaymentStatus,
)
from booklink.models.booking_analytics import BookingAnalyticsEvent

__all__ = [
    # Base classes
    "Base",
    "UTCDateTime",
    # Enums
    "AppointmentType",
    "BookingStatus",
    "PaymentStatus",
    # Tables
    "Booking",
    "BookingAnalyticsEvent",
]
