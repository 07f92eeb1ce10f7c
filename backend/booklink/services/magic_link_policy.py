"""Magic link policy: expiry rules, token format, and link URLs.

Pure functions, no I/O. Callers pass `now` explicitly (from the injected
Clock) so every rule here is deterministic.

A missing expiry (None) means the link never expires. Bookings created
before expiry was introduced have no expiry and stay valid.
"""

import secrets
import string
from datetime import datetime, timedelta
from urllib.parse import urlencode

MAGIC_LINK_TTL = timedelta(hours=1)
"""Fixed lifetime of a freshly issued magic link."""

MAGIC_LINK_ID_LENGTH = 12
"""Length of generated magic link tokens."""

MAGIC_LINK_ALPHABET = string.ascii_letters + string.digits + "_-"
"""64 URL-safe characters tokens are drawn from."""

MAGIC_LINK_ID_PATTERN = r"^[A-Za-z0-9_-]{10,21}$"
"""Shape a magic link token must have to be looked up at all."""

_BOOKING_ID_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_BOOKING_ID_SUFFIX_LENGTH = 9

NO_EXPIRATION = "No expiration"
EXPIRED = "Expired"


# =============================================================================
# Expiry
# =============================================================================


def compute_expiration(now: datetime) -> datetime:
    """Expiry for a link issued at `now`."""
    return now + MAGIC_LINK_TTL


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """Whether a link with the given expiry is expired at `now`.

    The boundary instant itself (now == expires_at) is still valid.
    """
    if expires_at is None:
        return False
    return now > expires_at


def remaining(expires_at: datetime | None, now: datetime) -> timedelta | None:
    """Time left before expiry.

    Returns:
        None when the link never expires, otherwise the remaining
        duration clamped at zero.
    """
    if expires_at is None:
        return None
    return max(timedelta(0), expires_at - now)


def format_remaining(expires_at: datetime | None, now: datetime) -> str:
    """Human readable time left, e.g. "1h 0m", "45m", "Expired".

    Minutes are floored, so a link with 30 seconds left reads "0m".
    """
    left = remaining(expires_at, now)
    if left is None:
        return NO_EXPIRATION
    if left == timedelta(0):
        return EXPIRED

    minutes = int(left.total_seconds() // 60)
    hours, minutes_in_hour = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes_in_hour}m"
    return f"{minutes}m"


# =============================================================================
# Identifiers
# =============================================================================


def generate_magic_link_id() -> str:
    """Random URL-safe magic link token.

    12 characters over a 64-symbol alphabet gives 72 bits, so collisions
    are negligible; the lifecycle service still checks before inserting.
    """
    return "".join(
        secrets.choice(MAGIC_LINK_ALPHABET) for _ in range(MAGIC_LINK_ID_LENGTH)
    )


def generate_booking_id(now: datetime) -> str:
    """Human-readable booking id: booking_{epoch_ms}_{9 base36 chars}."""
    epoch_ms = int(now.timestamp() * 1000)
    suffix = "".join(
        secrets.choice(_BOOKING_ID_SUFFIX_ALPHABET)
        for _ in range(_BOOKING_ID_SUFFIX_LENGTH)
    )
    return f"booking_{epoch_ms}_{suffix}"


# =============================================================================
# URLs
# =============================================================================


def build_magic_link(base_url: str, magic_link_id: str) -> str:
    """Absolute magic link URL sent to the user."""
    return f"{base_url.rstrip('/')}/appt/{magic_link_id}"


def build_redirect_url(
    frontend_base_url: str,
    booking_id: str,
    status: str,
    payment_status: str,
) -> str:
    """Frontend URL a resolved magic link redirects to."""
    params = urlencode(
        {
            "status": status,
            "payment_status": payment_status,
            "source": "magic_link",
        }
    )
    return f"{frontend_base_url.rstrip('/')}/booking/{booking_id}?{params}"


def build_error_url(frontend_base_url: str, reason: str) -> str:
    """Frontend error page for links that cannot be resolved.

    Args:
        frontend_base_url: Frontend origin.
        reason: "not_found", "expired" or "server_error".
    """
    params = urlencode({"reason": reason})
    return f"{frontend_base_url.rstrip('/')}/booking/error?{params}"
