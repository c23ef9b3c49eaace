"""
Outbound email delivery.

The auth service depends only on EmailSender.send(); the concrete sender is
chosen from settings and injected per request, so tests substitute a fake.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from core.config import Settings
from services.exceptions import DeliveryFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    """A single HTML email."""

    to: str
    subject: str
    html: str


class EmailSender(ABC):
    """Capability to deliver one email."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> str | None:
        """
        Deliver a message.

        Returns:
            Provider message id when the provider returns one.

        Raises:
            DeliveryFailedError: If the message could not be handed to the provider.
        """


class ResendEmailSender(EmailSender):
    """Sends email through the Resend REST API."""

    def __init__(
        self,
        api_key: str,
        from_address: str,
        api_url: str,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._from_address = from_address
        self._api_url = api_url
        self._timeout = timeout

    async def send(self, message: EmailMessage) -> str | None:
        """POST the message to Resend. Non-2xx responses count as failures."""
        payload = {
            "from": self._from_address,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Email delivery request failed: %s", e, exc_info=True)
            raise DeliveryFailedError() from e

        if not response.is_success:
            # Provider error text stays in server logs
            logger.error(
                "Email provider rejected message: status=%s body=%s",
                response.status_code,
                response.text,
            )
            raise DeliveryFailedError()

        try:
            message_id = response.json().get("id")
        except ValueError:
            message_id = None
        logger.info("Email sent: subject=%r id=%s", message.subject, message_id)
        return message_id


class LoggingEmailSender(EmailSender):
    """
    Development sender used when no provider API key is configured.

    Logs that a message was suppressed without logging its body, since the
    body contains the one-time code.
    """

    async def send(self, message: EmailMessage) -> str | None:
        """Log and drop the message."""
        logger.warning(
            "No mail provider configured; suppressed email subject=%r",
            message.subject,
        )
        return None


def build_email_sender(settings: Settings) -> EmailSender:
    """Create the sender selected by settings."""
    if not settings.resend_api_key:
        return LoggingEmailSender()
    return ResendEmailSender(
        api_key=settings.resend_api_key,
        from_address=settings.mail_from,
        api_url=settings.resend_api_url,
        timeout=settings.mail_timeout_seconds,
    )
