"""Outbound account emails over SMTP."""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from collections.abc import Awaitable
from email.message import EmailMessage
from urllib.parse import urlencode

from core import Settings, settings as default_settings

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to {app_name}"
WELCOME_TEXT = """Hello {name},

Your {app_name} account is ready. You can sign in with {email}.

-- {app_name}
"""

PASSWORD_RESET_SUBJECT = "Password reset request - {app_name}"
PASSWORD_RESET_TEXT = """Hello {name},

We received a request to reset the password of your {app_name} account.

Use the link below to choose a new password (valid for {minutes} minutes):
{reset_link}

If you didn't request this, you can safely ignore this email.

-- {app_name}
"""


class EmailSender:
    """Sends welcome and password-reset messages."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    def _build_message(self, to_email: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = f"{self._settings.smtp_from_name} <{self._settings.smtp_from_email}>"
        message["To"] = to_email
        message.set_content(body)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._settings.smtp_host, self._settings.smtp_port) as server:
            if self._settings.smtp_starttls:
                server.starttls(context=ssl.create_default_context())
            if self._settings.smtp_user:
                server.login(self._settings.smtp_user, self._settings.smtp_password)
            server.send_message(message)

    async def _send(self, to_email: str, subject: str, body: str) -> None:
        if not self._settings.smtp_enabled:
            logger.warning("SMTP disabled, email %r not sent to %s", subject, to_email)
            return
        if not self._settings.smtp_host:
            logger.error("SMTP host not configured")
            return

        message = self._build_message(to_email, subject, body)
        await asyncio.to_thread(self._deliver, message)
        logger.info("Email %r sent to %s", subject, to_email)

    def reset_link(self, token: str) -> str:
        base_url = self._settings.frontend_base_url.rstrip("/")
        return f"{base_url}/reset-password?{urlencode({'token': token})}"

    async def send_welcome(self, to_email: str, name: str | None) -> None:
        app_name = self._settings.app_name
        body = WELCOME_TEXT.format(name=name or "there", email=to_email, app_name=app_name)
        await self._send(to_email, WELCOME_SUBJECT.format(app_name=app_name), body)

    async def send_password_reset(self, to_email: str, name: str | None, token: str) -> None:
        app_name = self._settings.app_name
        body = PASSWORD_RESET_TEXT.format(
            name=name or "there",
            app_name=app_name,
            minutes=self._settings.password_reset_token_expire_minutes,
            reset_link=self.reset_link(token),
        )
        await self._send(to_email, PASSWORD_RESET_SUBJECT.format(app_name=app_name), body)


async def send_quietly(description: str, coro: Awaitable[None]) -> bool:
    """Await a notification, logging instead of raising on failure."""
    try:
        await coro
    except Exception:
        logger.exception("Failed to send %s email", description)
        return False
    return True


def get_email_sender() -> EmailSender:
    return EmailSender()


__all__ = ["EmailSender", "get_email_sender", "send_quietly"]
