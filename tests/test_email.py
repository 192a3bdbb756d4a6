"""Tests for SMTP email delivery."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from app.config import Settings
from app.services.email import EmailDeliveryError, EmailService


@pytest.fixture(name="settings")
def settings_fixture() -> Settings:
    settings = Settings()
    settings.EMAIL_HOST = "smtp.example.com"
    settings.EMAIL_PORT = 587
    settings.EMAIL_USER = "mailer@example.com"
    settings.EMAIL_PASS = "hunter2"
    settings.EMAIL_FROM = ""
    settings.EMAIL_USE_TLS = True
    return settings


def test_send_email_uses_relay(settings: Settings):
    """Message goes through STARTTLS + login with the expected headers."""
    with patch("app.services.email.smtplib.SMTP") as smtp_cls:
        server = MagicMock()
        smtp_cls.return_value.__enter__.return_value = server

        EmailService(settings).send_email("user@example.com", "Hello", "Body text")

    smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=30)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("mailer@example.com", "hunter2")
    message = server.send_message.call_args[0][0]
    assert message["To"] == "user@example.com"
    assert message["From"] == "mailer@example.com"
    assert message["Subject"] == "Hello"
    assert message.get_payload(decode=True).decode("utf-8") == "Body text"


def test_send_email_prefers_explicit_sender(settings: Settings):
    settings.EMAIL_FROM = "no-reply@example.com"
    message = EmailService(settings).build_message("user@example.com", "Hi", "text")
    assert message["From"] == "no-reply@example.com"


def test_send_email_without_credentials_skips_login(settings: Settings):
    settings.EMAIL_USER = ""
    settings.EMAIL_PASS = ""
    settings.EMAIL_USE_TLS = False
    with patch("app.services.email.smtplib.SMTP") as smtp_cls:
        server = MagicMock()
        smtp_cls.return_value.__enter__.return_value = server
        EmailService(settings).send_email("user@example.com", "Hi", "text")

    server.starttls.assert_not_called()
    server.login.assert_not_called()
    server.send_message.assert_called_once()


def test_send_email_relay_failure(settings: Settings):
    """SMTP errors surface as EmailDeliveryError."""
    with patch("app.services.email.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(
            535, b"bad credentials"
        )
        with pytest.raises(EmailDeliveryError):
            EmailService(settings).send_email("user@example.com", "Hi", "text")


def test_send_email_connection_refused(settings: Settings):
    with patch("app.services.email.smtplib.SMTP", side_effect=ConnectionRefusedError()):
        with pytest.raises(EmailDeliveryError):
            EmailService(settings).send_email("user@example.com", "Hi", "text")


def test_send_email_unconfigured(settings: Settings):
    settings.EMAIL_HOST = ""
    with pytest.raises(EmailDeliveryError):
        EmailService(settings).send_email("user@example.com", "Hi", "text")


def test_password_reset_message_contains_link(settings: Settings):
    service = EmailService(settings)
    with patch.object(service, "send_email") as send:
        service.send_password_reset("user@example.com", "http://localhost:5173/reset-password?token=abc", 30)

    to, subject, text = send.call_args[0]
    assert to == "user@example.com"
    assert subject == "Password reset instructions"
    assert "http://localhost:5173/reset-password?token=abc" in text
    assert "30 minutes" in text
