"""SMS delivery of magic links via an HTTP gateway.

Out-of-band notification is best-effort: an unconfigured gateway only
logs the message, and delivery failures are logged as warnings. Neither
ever fails the booking that triggered the notification.
"""

import logging

import httpx

from booklink.core.config import settings

logger = logging.getLogger(__name__)

_SMS_TIMEOUT = 10.0


def build_magic_link_message(magic_link: str) -> str:
    """Text sent to the user right after a booking is created."""
    return f"Your appointment is booked! Confirm here: {magic_link}"


async def send_magic_link_sms(*, to_phone: str, message: str) -> None:
    """Send an SMS through the configured gateway.

    The gateway receives a JSON body {"from", "to", "text"} with a bearer
    API key, which matches the shape most SMS webhook providers accept.

    Args:
        to_phone: Recipient phone number as entered at booking time.
        message: Message body, normally from build_magic_link_message().
    """
    if not settings.sms_gateway_url:
        logger.info("SMS gateway not configured; would send to %s: %s", to_phone, message)
        return

    try:
        async with httpx.AsyncClient() as client:
            resp = await client.post(
                settings.sms_gateway_url,
                headers={
                    "Authorization": f"Bearer {settings.sms_api_key.get_secret_value()}",
                },
                json={
                    "from": settings.sms_sender,
                    "to": to_phone,
                    "text": message,
                },
                timeout=_SMS_TIMEOUT,
            )
            resp.raise_for_status()
    except Exception:
        logger.warning("Failed to send magic link SMS", exc_info=True)
