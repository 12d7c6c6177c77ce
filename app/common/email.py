"""
Outbound transactional email.

Messages go to the Resend HTTP API. Without RESEND_API_KEY nothing is sent:
every call reports a failure and logs a warning, so local setups keep working.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from app.common.config import (
    EMAIL_API_URL,
    EMAIL_FROM,
    get_base_url,
    get_email_api_key,
)
from app.common.logger import get_logger

logger = get_logger(__name__)

REQUEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class SendEmailResult:
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None


def _greeting(user_name: Optional[str]) -> str:
    return f"Hi {user_name}" if user_name else "Hi"


class EmailSender:
    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: str = EMAIL_FROM,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.sender = sender
        self._transport = transport

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> SendEmailResult:
        if not self.api_key:
            logger.warning(f"[email] RESEND_API_KEY not configured, not sending '{subject}'")
            return SendEmailResult(success=False, error="Email delivery not configured")

        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "text": text,
        }
        if html:
            payload["html"] = html

        try:
            with httpx.Client(transport=self._transport, timeout=REQUEST_TIMEOUT) as client:
                resp = client.post(
                    EMAIL_API_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"[email] send failed subject='{subject}': {exc}")
            return SendEmailResult(success=False, error=str(exc))

        return SendEmailResult(success=True, id=data.get("id") or "unknown")

    # ------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------

    def send_verification_email(self, email: str, token: str, user_name: Optional[str] = None) -> SendEmailResult:
        url = (
            f"{get_base_url()}/auth/verify-email"
            f"?token={quote(token)}&email={quote(email)}"
        )
        text = (
            f"{_greeting(user_name)},\n\n"
            "Thanks for signing up to SchoolFanta! Confirm your address here:\n\n"
            f"{url}\n\n"
            "This link expires in 24 hours. If you did not create an account, ignore this email."
        )
        return self.send(email, "Verify your email address - SchoolFanta", text)

    def send_welcome_email(self, email: str, user_name: Optional[str] = None) -> SendEmailResult:
        text = (
            f"{_greeting(user_name)},\n\n"
            "Your SchoolFanta account is verified. Build your team here:\n\n"
            f"{get_base_url()}/create-team"
        )
        return self.send(email, "Welcome to SchoolFanta!", text)

    def send_email_change_verification(self, new_email: str, token: str, user_name: Optional[str] = None) -> SendEmailResult:
        url = f"{get_base_url()}/me/email/verify?token={quote(token)}"
        text = (
            f"{_greeting(user_name)},\n\n"
            "You asked to change the email address of your SchoolFanta account. "
            "Confirm the new address here:\n\n"
            f"{url}\n\n"
            "This link expires in 24 hours. If you did not ask for this, ignore this email."
        )
        return self.send(new_email, "Confirm your new email - SchoolFanta", text)


_sender: Optional[EmailSender] = None


def get_email_sender() -> EmailSender:
    """FastAPI dependency; one sender per process."""
    global _sender
    if _sender is None:
        _sender = EmailSender(api_key=get_email_api_key())
    return _sender


def send_in_background(func, *args) -> None:
    """
    Fire-and-forget wrapper for BackgroundTasks.

    The response is already gone when this runs, so a failure is only logged.
    """
    result = func(*args)
    if not result.success:
        logger.error(f"[email] background send failed: {result.error}")
