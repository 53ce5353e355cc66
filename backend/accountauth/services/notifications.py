"""Outbound confirmation and password reset emails."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Protocol

from accountauth.core.config import Settings
from accountauth.models.enums import TokenPurpose

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when a message could not be handed to the transport."""


class Notifier(Protocol):
    def send_confirmation(self, email: str, name: str, token: str) -> None: ...

    def send_password_reset(self, email: str, name: str, token: str) -> None: ...


def _wrap_email_html(*, title: str, content: str, footer: str) -> str:
    return f"""\
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{escape(title)}</title>
  </head>
  <body style="margin:0;padding:24px 12px;background:#f3f6f8;font-family:Arial,sans-serif;color:#0f172a;">
    <div style="max-width:620px;margin:0 auto;background:#ffffff;border-radius:14px;border:1px solid #e2e8f0;">
      <h1 style="margin:0;padding:20px 24px;font-size:20px;">{escape(title)}</h1>
      <div style="padding:0 24px 24px;">{content}</div>
      <p style="margin:0;padding:16px 24px;font-size:12px;color:#475569;border-top:1px solid #e2e8f0;">{escape(footer)}</p>
    </div>
  </body>
</html>
"""


def _code_block(label: str, href: str, token: str) -> str:
    return (
        '<p style="margin:0 0 8px;font-size:14px;">Visit the following link:</p>'
        f'<p style="margin:0 0 16px;"><a href="{escape(href, quote=True)}">{escape(label)}</a></p>'
        '<p style="margin:0 0 16px;font-size:14px;">Enter the code: '
        f'<b style="font-size:22px;letter-spacing:4px;">{escape(token)}</b></p>'
    )


def build_confirmation_email(
    name: str, token: str, *, frontend_base_url: str, expires_minutes: int
) -> tuple[str, str, str]:
    link = f"{frontend_base_url}/auth/confirm-account"
    subject = "Confirm your account"
    body = (
        f"Hello {name},\n\n"
        "You have registered. Everything is almost ready, you only need to confirm your account.\n\n"
        f"Visit: {link}\n"
        f"Enter the code: {token}\n\n"
        f"This code expires in {expires_minutes} minutes."
    )
    html_content = (
        f'<p style="font-size:14px;">Hello {escape(name)}, you have registered. '
        "Everything is almost ready, you only need to confirm your account.</p>"
        f"{_code_block('Confirm account', link, token)}"
    )
    html_body = _wrap_email_html(
        title=subject,
        content=html_content,
        footer=f"This code expires in {expires_minutes} minutes.",
    )
    return subject, body, html_body


def build_password_reset_email(
    name: str, token: str, *, frontend_base_url: str, expires_minutes: int
) -> tuple[str, str, str]:
    link = f"{frontend_base_url}/auth/new-password"
    subject = "Reset your password"
    body = (
        f"Hello {name},\n\n"
        "You asked to reset your password.\n\n"
        f"Visit: {link}\n"
        f"Enter the code: {token}\n\n"
        f"This code expires in {expires_minutes} minutes.\n\n"
        "If you did not request this, you can ignore this email."
    )
    html_content = (
        f'<p style="font-size:14px;">Hello {escape(name)}, you asked to reset your password.</p>'
        f"{_code_block('Reset password', link, token)}"
    )
    html_body = _wrap_email_html(
        title=subject,
        content=html_content,
        footer="If you did not request this, you can ignore this email.",
    )
    return subject, body, html_body


class LoggingNotifier:
    """Records that an email would have been sent, without a mail server.

    Only the kind and recipient are logged; the code itself never is.
    """

    def send_confirmation(self, email: str, name: str, token: str) -> None:
        logger.info("SMTP not configured; skipping %s email to %s", TokenPurpose.confirmation.value, email)

    def send_password_reset(self, email: str, name: str, token: str) -> None:
        logger.info("SMTP not configured; skipping %s email to %s", TokenPurpose.password_reset.value, email)


class SmtpNotifier:
    """Sends multipart emails over SMTP."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def send_confirmation(self, email: str, name: str, token: str) -> None:
        subject, body, html_body = build_confirmation_email(
            name,
            token,
            frontend_base_url=self._settings.FRONTEND_BASE_URL,
            expires_minutes=self._settings.ONE_TIME_TOKEN_EXPIRE_MINUTES,
        )
        self._send(email, subject, body, html_body=html_body, kind=TokenPurpose.confirmation)

    def send_password_reset(self, email: str, name: str, token: str) -> None:
        subject, body, html_body = build_password_reset_email(
            name,
            token,
            frontend_base_url=self._settings.FRONTEND_BASE_URL,
            expires_minutes=self._settings.ONE_TIME_TOKEN_EXPIRE_MINUTES,
        )
        self._send(email, subject, body, html_body=html_body, kind=TokenPurpose.password_reset)

    def _send(self, to: str, subject: str, body: str, *, html_body: str, kind: TokenPurpose) -> None:
        settings = self._settings
        message = EmailMessage()
        message["From"] = settings.SMTP_FROM
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        message.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
                server.ehlo()
                if settings.SMTP_TLS:
                    server.starttls()
                    server.ehlo()
                if settings.SMTP_USER:
                    server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("Email send failed: %s (%s)", to, kind.value)
            raise NotificationError(f"{kind.value} email to {to} failed") from exc
        logger.info("Email sent: %s (%s)", to, kind.value)


def build_notifier(settings: Settings) -> Notifier:
    if settings.SMTP_HOST and settings.SMTP_FROM:
        return SmtpNotifier(settings)
    if settings.SMTP_HOST:
        logger.warning("SMTP_FROM not configured; emails will only be logged")
    return LoggingNotifier()
