"""Magic link endpoints served at /appt.

Endpoints:
- GET /appt/{token}: browser entry point; 302 to the booking page
- GET /appt/{token}/preview: where the link leads, as JSON
- POST /appt/{token}/track: record a frontend interaction event
- GET /appt/{token}/analytics: access metrics and recent events

The redirect never answers with a JSON error: unknown, expired and
broken links all land on the frontend error page with a reason.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Path, Request
from fastapi.responses import RedirectResponse

from booklink.api.deps import ClientIp, ClockDep, DbSession
from booklink.core.config import settings
from booklink.core.errors import MagicLinkExpiredError, NotFoundError
from booklink.core.rate_limiting import limiter
from booklink.core.responses import DataResponse
from booklink.schemas.magic_link import (
    AnalyticsEventResponse,
    MagicLinkAnalyticsResponse,
    MagicLinkPreviewResponse,
    MessageResponse,
    TrackEventRequest,
)
from booklink.services.analytics_service import DEFAULT_TRACK_EVENT, AnalyticsService
from booklink.services.magic_link_policy import MAGIC_LINK_ID_PATTERN, build_error_url
from booklink.services.magic_link_resolver import MagicLinkResolver

logger = structlog.get_logger()

router = APIRouter()

MagicLinkToken = Annotated[str, Path(pattern=MAGIC_LINK_ID_PATTERN)]


# ===================================================================
# GET /appt/{token}
# ===================================================================


@router.get("/{token}")
async def redirect_magic_link(
    token: str,
    request: Request,
    db: DbSession,
    clock: ClockDep,
    client_ip: ClientIp,
) -> RedirectResponse:
    """Resolve the link and redirect the browser to its booking."""
    try:
        url = await MagicLinkResolver(db, clock).resolve_redirect(
            token,
            frontend_base_url=settings.frontend_base_url,
            user_agent=request.headers.get("user-agent"),
            ip_address=client_ip,
        )
    except NotFoundError:
        url = build_error_url(settings.frontend_base_url, "not_found")
    except MagicLinkExpiredError:
        url = build_error_url(settings.frontend_base_url, "expired")
    except Exception:
        logger.exception("Magic link redirect failed", token=token)
        await db.rollback()
        url = build_error_url(settings.frontend_base_url, "server_error")
    return RedirectResponse(url, status_code=302)


# ===================================================================
# GET /appt/{token}/preview
# ===================================================================


@router.get("/{token}/preview")
async def preview_magic_link(
    token: MagicLinkToken,
    request: Request,
    db: DbSession,
    clock: ClockDep,
    client_ip: ClientIp,
) -> DataResponse[MagicLinkPreviewResponse]:
    """Resolve the link without redirecting. Counts as an access."""
    preview = await MagicLinkResolver(db, clock).resolve_preview(
        token,
        frontend_base_url=settings.frontend_base_url,
        magic_link_base_url=settings.magic_link_base_url,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip,
    )
    return DataResponse(data=preview)


# ===================================================================
# POST /appt/{token}/track
# ===================================================================


@router.post("/{token}/track")
@limiter.limit(settings.rate_limit_track)
async def track_magic_link_event(
    token: MagicLinkToken,
    request: Request,
    db: DbSession,
    clock: ClockDep,
    client_ip: ClientIp,
    body: TrackEventRequest | None = None,
) -> DataResponse[MessageResponse]:
    """Record a frontend interaction against the link's booking.

    Works on expired links too; tracking does not count as an access.
    Missing fields fall back to "interaction" and the request's own
    User-Agent and client address.
    """
    body = body or TrackEventRequest()
    booking = await MagicLinkResolver(db, clock).lookup(token)
    await AnalyticsService(db, clock).record(
        booking.id,
        body.event or DEFAULT_TRACK_EVENT,
        user_agent=body.user_agent or request.headers.get("user-agent"),
        ip_address=body.ip_address or client_ip,
    )
    return DataResponse(data=MessageResponse(message="Event tracked successfully"))


# ===================================================================
# GET /appt/{token}/analytics
# ===================================================================


@router.get("/{token}/analytics")
async def get_magic_link_analytics(
    token: MagicLinkToken,
    db: DbSession,
    clock: ClockDep,
) -> DataResponse[MagicLinkAnalyticsResponse]:
    """Access count and the 50 most recent events, newest first."""
    booking = await MagicLinkResolver(db, clock).lookup(token)
    events = await AnalyticsService(db, clock).list_recent(booking.id)
    return DataResponse(
        data=MagicLinkAnalyticsResponse(
            booking_id=booking.booking_id,
            access_count=booking.access_count,
            last_accessed_at=booking.last_accessed_at,
            analytics=[AnalyticsEventResponse.from_event(e) for e in events],
        )
    )
