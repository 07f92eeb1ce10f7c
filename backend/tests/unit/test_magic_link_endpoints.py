"""Tests for the /appt magic link endpoints.

GET /appt/{token}, GET /appt/{token}/preview, POST /appt/{token}/track,
GET /appt/{token}/analytics.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlsplit

import pytest

from booklink.core.rate_limiting import limiter
from booklink.models.booking import BookingStatus

_FRONTEND = "https://usetextbook.com"
_RESOLVE_REDIRECT = (
    "booklink.api.magic_links.MagicLinkResolver.resolve_redirect"
)


def _error_reason(response) -> str:
    parts = urlsplit(response.headers["location"])
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == (
        f"{_FRONTEND}/booking/error"
    )
    return parse_qs(parts.query)["reason"][0]


# ===================================================================
# GET /appt/{token}
# ===================================================================


class TestRedirect:
    @pytest.mark.asyncio
    async def test_redirects_to_booking_page(
        self, client, make_booking, fetch_booking
    ):
        booking = await make_booking(status=BookingStatus.CONFIRMED)

        response = await client.get(f"/appt/{booking.magic_link_id}")

        assert response.status_code == 302
        parts = urlsplit(response.headers["location"])
        assert parts.path == f"/booking/{booking.booking_id}"
        assert parse_qs(parts.query) == {
            "status": ["CONFIRMED"],
            "payment_status": ["PENDING"],
            "source": ["magic_link"],
        }
        assert (await fetch_booking(booking.id)).access_count == 1

    @pytest.mark.asyncio
    async def test_unknown_token_redirects_to_not_found(self, client):
        response = await client.get("/appt/NoSuchToken1")

        assert response.status_code == 302
        assert _error_reason(response) == "not_found"

    @pytest.mark.asyncio
    async def test_malformed_token_redirects_to_not_found(self, client):
        response = await client.get("/appt/x")

        assert response.status_code == 302
        assert _error_reason(response) == "not_found"

    @pytest.mark.asyncio
    async def test_expired_link_redirects_to_expired(
        self, client, make_booking, clock, fetch_booking
    ):
        booking = await make_booking()
        clock.advance(timedelta(hours=1, seconds=1))

        response = await client.get(f"/appt/{booking.magic_link_id}")

        assert response.status_code == 302
        assert _error_reason(response) == "expired"
        assert (await fetch_booking(booking.id)).access_count == 0

    @pytest.mark.asyncio
    async def test_unexpected_failure_redirects_to_server_error(
        self, client, make_booking
    ):
        booking = await make_booking()

        with patch(_RESOLVE_REDIRECT, AsyncMock(side_effect=RuntimeError("db down"))):
            response = await client.get(f"/appt/{booking.magic_link_id}")

        assert response.status_code == 302
        assert _error_reason(response) == "server_error"


# ===================================================================
# GET /appt/{token}/preview
# ===================================================================


class TestPreview:
    @pytest.mark.asyncio
    async def test_preview_returns_destination(
        self, client, make_booking, fetch_booking
    ):
        booking = await make_booking()

        response = await client.get(f"/appt/{booking.magic_link_id}/preview")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["uuid"] == str(booking.id)
        assert data["bookingId"] == booking.booking_id
        assert data["userName"] == "Ada Lovelace"
        assert data["appointmentType"] == "CONSULTATION"
        assert data["status"] == "PENDING_CONFIRMATION"
        assert data["paymentStatus"] == "PENDING"
        assert data["magicLink"] == f"https://tbook.me/appt/{booking.magic_link_id}"
        assert data["redirectUrl"].startswith(
            f"{_FRONTEND}/booking/{booking.booking_id}?"
        )
        assert (await fetch_booking(booking.id)).access_count == 1

    @pytest.mark.asyncio
    async def test_malformed_token_is_400(self, client):
        response = await client.get("/appt/bad!token!/preview")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_token_is_404(self, client):
        response = await client.get("/appt/NoSuchToken1/preview")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_expired_link_is_410(self, client, make_booking, clock):
        booking = await make_booking(
            magic_link_expires_at=clock.now() - timedelta(seconds=1)
        )

        response = await client.get(f"/appt/{booking.magic_link_id}/preview")

        assert response.status_code == 410
        assert response.json()["error"]["code"] == "MAGIC_LINK_EXPIRED"


# ===================================================================
# POST /appt/{token}/track and GET /appt/{token}/analytics
# ===================================================================


class TestTrackAndAnalytics:
    @pytest.mark.asyncio
    async def test_track_defaults_to_request_context(
        self, client, make_booking, clock
    ):
        booking = await make_booking()

        response = await client.post(
            f"/appt/{booking.magic_link_id}/track",
            headers={"User-Agent": "TestBrowser/1.0"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["message"] == "Event tracked successfully"

        analytics = await client.get(f"/appt/{booking.magic_link_id}/analytics")
        event = analytics.json()["data"]["analytics"][0]
        assert event["eventType"] == "interaction"
        assert event["userAgent"] == "TestBrowser/1.0"
        assert event["ipAddress"] == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_track_body_overrides_defaults(self, client, make_booking):
        booking = await make_booking()

        response = await client.post(
            f"/appt/{booking.magic_link_id}/track",
            json={
                "event": "payment_started",
                "userAgent": "Kiosk/2",
                "ipAddress": "198.51.100.20",
            },
        )

        assert response.status_code == 200
        analytics = await client.get(f"/appt/{booking.magic_link_id}/analytics")
        event = analytics.json()["data"]["analytics"][0]
        assert event["eventType"] == "payment_started"
        assert event["userAgent"] == "Kiosk/2"
        assert event["ipAddress"] == "198.51.100.20"

    @pytest.mark.asyncio
    async def test_track_works_on_expired_link_without_counting(
        self, client, make_booking, clock, fetch_booking
    ):
        booking = await make_booking()
        clock.advance(timedelta(days=2))

        response = await client.post(
            f"/appt/{booking.magic_link_id}/track", json={"event": "reopened"}
        )

        assert response.status_code == 200
        assert (await fetch_booking(booking.id)).access_count == 0

    @pytest.mark.asyncio
    async def test_track_unknown_token_is_404(self, client):
        response = await client.post("/appt/NoSuchToken1/track")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_track_rejects_unknown_fields(self, client, make_booking):
        booking = await make_booking()

        response = await client.post(
            f"/appt/{booking.magic_link_id}/track", json={"bookingId": "x"}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_analytics_newest_first_with_access_count(
        self, client, make_booking, clock
    ):
        booking = await make_booking()
        token = booking.magic_link_id

        await client.get(f"/appt/{token}")
        clock.advance(timedelta(seconds=5))
        await client.post(f"/appt/{token}/track", json={"event": "viewed"})
        clock.advance(timedelta(seconds=5))
        await client.post(f"/appt/{token}/track", json={"event": "paid"})

        response = await client.get(f"/appt/{token}/analytics")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["bookingId"] == booking.booking_id
        assert data["accessCount"] == 1
        assert data["lastAccessedAt"] is not None
        assert [e["eventType"] for e in data["analytics"]] == [
            "paid",
            "viewed",
            "magic_link_click",
        ]

    @pytest.mark.asyncio
    async def test_analytics_unknown_token_is_404(self, client):
        response = await client.get("/appt/NoSuchToken1/analytics")
        assert response.status_code == 404


class TestTrackRateLimiting:
    """Event tracking is limited per client IP."""

    @pytest.mark.asyncio
    async def test_track_is_rate_limited(self, client, make_booking):
        booking = await make_booking()
        url = f"/appt/{booking.magic_link_id}/track"
        limiter.enabled = True
        limiter.reset()
        try:
            statuses = [(await client.post(url)).status_code for _ in range(61)]
            limited = await client.post(url)
        finally:
            limiter.reset()

        assert statuses[:60] == [200] * 60
        assert statuses[60] == 429
        assert limited.json()["error"]["code"] == "RATE_LIMITED"
