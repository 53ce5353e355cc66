from __future__ import annotations

import logging
import smtplib

import pytest

from accountauth.core.config import Settings
from accountauth.services import notifications
from accountauth.services.notifications import (
    LoggingNotifier,
    NotificationError,
    SmtpNotifier,
    build_confirmation_email,
    build_notifier,
)


def test_confirmation_email_contains_code_and_expiry() -> None:
    subject, body, html_body = build_confirmation_email(
        "<Alice>", "123456", frontend_base_url="https://app.example.com", expires_minutes=10
    )

    assert subject == "Confirm your account"
    assert "123456" in body
    assert "https://app.example.com/auth/confirm-account" in body
    assert "10 minutes" in body
    assert "&lt;Alice&gt;" in html_body


def test_logging_notifier_never_logs_the_code(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=notifications.__name__)
    notifier = LoggingNotifier()

    notifier.send_confirmation("alice@x.com", "Alice", "123456")
    notifier.send_password_reset("alice@x.com", "Alice", "654321")

    messages = [record.getMessage() for record in caplog.records]
    assert len(messages) == 2
    assert "confirmation" in messages[0] and "alice@x.com" in messages[0]
    assert "password_reset" in messages[1]
    assert not any("123456" in message or "654321" in message for message in messages)


def test_build_notifier_picks_transport_from_settings() -> None:
    assert isinstance(build_notifier(Settings(SMTP_HOST="")), LoggingNotifier)
    assert isinstance(build_notifier(Settings(SMTP_HOST="smtp.example.com", SMTP_FROM="")), LoggingNotifier)
    smtp = build_notifier(Settings(SMTP_HOST="smtp.example.com", SMTP_FROM="noreply@example.com"))
    assert isinstance(smtp, SmtpNotifier)


def test_notifier_raises_on_transport_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def _refuse(*args, **kwargs):  # noqa: ANN001, ANN202
        raise smtplib.SMTPConnectError(421, b"busy")

    monkeypatch.setattr(notifications.smtplib, "SMTP", _refuse)
    notifier = SmtpNotifier(Settings(SMTP_HOST="smtp.example.com", SMTP_FROM="noreply@example.com"))

    with pytest.raises(NotificationError):
        notifier.send_password_reset("alice@x.com", "Alice", "123456")


def test_notifier_sends_multipart_message(monkeypatch: pytest.MonkeyPatch) -> None:
    sent = []

    class _FakeSMTP:
        def __init__(self, host: str, port: int, timeout: int) -> None:
            self.host = host

        def __enter__(self):  # noqa: ANN204
            return self

        def __exit__(self, *exc) -> None:  # noqa: ANN002
            return None

        def ehlo(self) -> None:
            return None

        def starttls(self) -> None:
            return None

        def login(self, user: str, password: str) -> None:
            return None

        def send_message(self, message) -> None:  # noqa: ANN001
            sent.append(message)

    monkeypatch.setattr(notifications.smtplib, "SMTP", _FakeSMTP)
    notifier = SmtpNotifier(Settings(SMTP_HOST="smtp.example.com", SMTP_FROM="noreply@example.com"))
    notifier.send_password_reset("alice@x.com", "Alice", "654321")

    assert len(sent) == 1
    assert sent[0]["To"] == "alice@x.com"
    assert sent[0]["Subject"] == "Reset your password"
    assert sent[0].is_multipart()
