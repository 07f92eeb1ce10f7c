"""Magic link resolution.

Turns a token from /appt/{token} or /booking/magic/{token} into its
booking. Every resolution walks the same steps:

1. Look the token up. Unknown tokens raise NotFoundError and leave no
   trace: no counter change, no analytics row.
2. Check expiry against the injected clock. Expired links raise
   MagicLinkExpiredError (410), never NotFoundError.
3. Count the access with a single atomic UPDATE and record a
   "magic_link_click" event best-effort.

The three public resolve_* methods differ only in what they hand back.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from booklink.core.clock import Clock
from booklink.core.errors import MagicLinkExpiredError, NotFoundError
from booklink.models.booking import Booking
from booklink.repositories.booking_repository import BookingRepository
from booklink.schemas.magic_link import MagicLinkPreviewResponse
from booklink.services.analytics_service import MAGIC_LINK_CLICK, AnalyticsService
from booklink.services.magic_link_policy import (
    build_magic_link,
    build_redirect_url,
    is_expired,
)

logger = structlog.get_logger()

_RESOURCE = "Magic link"


class MagicLinkResolver:
    """Resolves magic link tokens to bookings.

    Args:
        db: Async database session. The caller owns the transaction.
        clock: Time source for expiry checks and access timestamps.
        analytics: Recorder for click events. Defaults to one sharing
            the same session and clock.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock,
        analytics: AnalyticsService | None = None,
    ) -> None:
        self._db = db
        self._clock = clock
        self._analytics = analytics or AnalyticsService(db, clock)

    async def lookup(self, token: str) -> Booking:
        """Find the booking behind a token without resolving it.

        No expiry check and no access is counted. Used by the tracking
        and analytics endpoints, which stay usable after the link expires.

        Raises:
            NotFoundError: If no booking carries this token.
        """
        booking = await BookingRepository.get_by_magic_link_id(self._db, token)
        if booking is None:
            raise NotFoundError(_RESOURCE, token)
        return booking

    async def _resolve(
        self,
        token: str,
        *,
        user_agent: str | None,
        ip_address: str | None,
    ) -> Booking:
        booking = await self.lookup(token)

        now = self._clock.now()
        if is_expired(booking.magic_link_expires_at, now):
            logger.info(
                "Expired magic link accessed",
                booking_id=booking.booking_id,
                expired_at=str(booking.magic_link_expires_at),
            )
            raise MagicLinkExpiredError()

        accessed = await BookingRepository.increment_access(
            self._db, booking.id, accessed_at=now
        )
        if accessed is None:
            raise NotFoundError(_RESOURCE, token)

        await self._analytics.record_best_effort(
            accessed.id,
            MAGIC_LINK_CLICK,
            user_agent=user_agent,
            ip_address=ip_address,
        )
        logger.info(
            "Magic link resolved",
            booking_id=accessed.booking_id,
            access_count=accessed.access_count,
        )
        return accessed

    async def resolve_redirect(
        self,
        token: str,
        *,
        frontend_base_url: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> str:
        """Resolve a token and return the frontend URL to redirect to.

        Raises:
            NotFoundError: Unknown token.
            MagicLinkExpiredError: Token past its expiry.
        """
        booking = await self._resolve(
            token, user_agent=user_agent, ip_address=ip_address
        )
        return _redirect_url(booking, frontend_base_url)

    async def resolve_preview(
        self,
        token: str,
        *,
        frontend_base_url: str,
        magic_link_base_url: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> MagicLinkPreviewResponse:
        """Resolve a token and describe where it leads, without redirecting.

        Raises:
            NotFoundError: Unknown token.
            MagicLinkExpiredError: Token past its expiry.
        """
        booking = await self._resolve(
            token, user_agent=user_agent, ip_address=ip_address
        )
        return MagicLinkPreviewResponse(
            uuid=booking.id,
            booking_id=booking.booking_id,
            user_name=booking.user_name,
            appointment_type=booking.appointment_type,
            status=booking.status,
            payment_status=booking.payment_status,
            redirect_url=_redirect_url(booking, frontend_base_url),
            magic_link=build_magic_link(magic_link_base_url, booking.magic_link_id),
            created_at=booking.created_at,
        )

    async def resolve_booking(
        self,
        token: str,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> Booking:
        """Resolve a token and return the full booking.

        Raises:
            NotFoundError: Unknown token.
            MagicLinkExpiredError: Token past its expiry.
        """
        return await self._resolve(
            token, user_agent=user_agent, ip_address=ip_address
        )


def _redirect_url(booking: Booking, frontend_base_url: str) -> str:
    return build_redirect_url(
        frontend_base_url,
        booking.booking_id,
        booking.status.value,
        booking.payment_status.value,
    )
