"""Transactional email delivery through the Brevo HTTP API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from svj.config import settings

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """Outcome of one send attempt."""

    success: bool
    message_id: str | None = None
    error: str | None = None


class Mailer(Protocol):
    """Anything that can deliver one HTML email."""

    def send_email(
        self,
        from_addr: str,
        from_name: str,
        to_addr: str,
        to_name: str,
        subject: str,
        html_body: str,
    ) -> DeliveryResult: ...


class BrevoMailer:
    """Send emails with Brevo's ``/v3/smtp/email`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.brevo_api_key
        self.api_url = api_url or settings.brevo_api_url
        self.http = http_client or httpx.Client(
            timeout=httpx.Timeout(max(1, settings.mailer_timeout_seconds)),
        )

    def send_email(
        self,
        from_addr: str,
        from_name: str,
        to_addr: str,
        to_name: str,
        subject: str,
        html_body: str,
    ) -> DeliveryResult:
        """Deliver one message and report the provider result."""
        if not self.api_key:
            return DeliveryResult(success=False, error="BREVO_API_KEY not configured")

        body = {
            "sender": {"name": from_name, "email": from_addr},
            "to": [{"email": to_addr, "name": to_name}],
            "subject": subject,
            "htmlContent": html_body,
        }
        try:
            response = self.http.post(
                self.api_url,
                json=body,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "api-key": self.api_key,
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("Brevo request failed for %s: %s", to_addr, exc)
            return DeliveryResult(success=False, error=str(exc))

        payload = _json_or_text(response)
        if response.is_success:
            message_id = payload.get("messageId") if isinstance(payload, dict) else None
            return DeliveryResult(success=True, message_id=message_id)

        logger.warning("Brevo rejected email to %s with %s", to_addr, response.status_code)
        return DeliveryResult(success=False, error=f"Brevo API error: {payload}")


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
