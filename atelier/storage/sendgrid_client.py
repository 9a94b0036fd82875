"""
SendGrid mailer for Atelier: delivers contact, inquiry and offer
notifications through the SendGrid v3 REST API.
"""

from __future__ import annotations

import logging

import httpx

from atelier.config import FROM_EMAIL, SENDGRID_API_KEY, SENDGRID_API_URL
from atelier.errors import EmailDeliveryError
from atelier.models.forms import EmailMessage

logger = logging.getLogger(__name__)


class SendGridMailer:
    """Send one message per call. No retries: a failure is reported to the sender."""

    def __init__(
        self,
        api_key: str = SENDGRID_API_KEY,
        from_email: str = FROM_EMAIL,
        api_url: str = SENDGRID_API_URL,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.api_url = api_url
        self.http = http_client or httpx.Client(timeout=15)

    def build_payload(self, message: EmailMessage) -> dict:
        return {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": self.from_email},
            "subject": message.subject,
            "content": [
                {"type": "text/plain", "value": message.text},
                {"type": "text/html", "value": message.html},
            ],
        }

    def send(self, message: EmailMessage) -> None:
        if not self.api_key:
            raise EmailDeliveryError("Email delivery is not configured.")

        try:
            response = self.http.post(
                self.api_url,
                json=self.build_payload(message),
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "[mail] SendGrid HTTP %s for '%s': %s",
                exc.response.status_code,
                message.subject,
                exc.response.text[:300],
            )
            raise EmailDeliveryError() from exc
        except httpx.RequestError as exc:
            logger.error("[mail] SendGrid request error for '%s': %s", message.subject, exc)
            raise EmailDeliveryError() from exc

        logger.info("[mail] Sent '%s' to %s", message.subject, message.to)

    def close(self) -> None:
        self.http.close()
