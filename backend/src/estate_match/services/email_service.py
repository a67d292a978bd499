"""SendGrid delivery channel for notification batches.

Takes the ``{from, to, subject, text}`` messages built by the notification
batcher and sends one email per message.  Uses asyncio.to_thread to wrap
the synchronous SendGrid client.  Delivery is fire-and-forget for callers:
failures are logged, never raised.
"""

import asyncio
import logging

import sendgrid
from sendgrid.helpers.mail import Content, Email, Mail, To

logger = logging.getLogger(__name__)


def _get_api_key() -> str:
    """Get the SendGrid key from app settings (lazy to avoid import-time issues)."""
    from estate_match.app.config import get_settings
    return get_settings().sendgrid_api_key


def _get_client() -> sendgrid.SendGridAPIClient:
    """Return a configured SendGrid API client."""
    return sendgrid.SendGridAPIClient(api_key=_get_api_key())


def _build_mail(message: dict) -> Mail:
    return Mail(
        from_email=Email(message["from"]),
        to_emails=[To(address) for address in message["to"]],
        subject=message["subject"],
        plain_text_content=Content("text/plain", message["text"]),
    )


def _send_mail(mail: Mail) -> bool:
    """Synchronous send via SendGrid. Returns True on success."""
    client = _get_client()
    response = client.send(mail)
    if response.status_code in (200, 201, 202):
        return True
    logger.error(
        "SendGrid returned status %s: %s",
        response.status_code,
        response.body,
    )
    return False


# ---------------------------------------------------------------------------
# Public async API
# ---------------------------------------------------------------------------


async def send_batch(messages: list[dict]) -> int:
    """Send every message in the batch.

    Args:
        messages: Dicts with ``from``, ``to`` (list of addresses),
                  ``subject`` and ``text``.

    Returns:
        Number of messages SendGrid accepted.
    """
    if not messages:
        return 0
    if not _get_api_key():
        logger.warning("SENDGRID_API_KEY not set, skipping %d notification emails", len(messages))
        return 0

    sent = 0
    for message in messages:
        try:
            if await asyncio.to_thread(_send_mail, _build_mail(message)):
                sent += 1
        except Exception:
            logger.exception(
                "Failed to send '%s' to %d recipients", message["subject"], len(message["to"])
            )
    logger.info("Notification batch: %d of %d messages sent", sent, len(messages))
    return sent
