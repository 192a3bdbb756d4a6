"""Outbound email delivery over SMTP."""

import logging
import smtplib
from email.mime.text import MIMEText

from app.config import Settings, get_settings

logger = logging.getLogger("authgate")


class EmailDeliveryError(Exception):
    """Raised when a message could not be handed to the mail relay."""


class EmailService:
    """Sends plain-text messages through the configured SMTP relay."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build_message(self, to: str, subject: str, text: str) -> MIMEText:
        """Build the MIME message for a single recipient."""
        message = MIMEText(text, "plain", "utf-8")
        message["From"] = self.settings.sender_address
        message["To"] = to
        message["Subject"] = subject
        return message

    def send_email(self, to: str, subject: str, text: str) -> None:
        """Send one message. Raises EmailDeliveryError on any relay failure."""
        if not self.settings.EMAIL_HOST:
            raise EmailDeliveryError("Email relay is not configured")

        message = self.build_message(to, subject, text)
        try:
            with smtplib.SMTP(self.settings.EMAIL_HOST, self.settings.EMAIL_PORT, timeout=30) as server:
                if self.settings.EMAIL_USE_TLS:
                    server.starttls()
                if self.settings.EMAIL_USER and self.settings.EMAIL_PASS:
                    server.login(self.settings.EMAIL_USER, self.settings.EMAIL_PASS)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error sending '%s' to %s: %s", subject, to, e)
            raise EmailDeliveryError(str(e)) from e

        logger.info("Email '%s' sent to %s", subject, to)

    def send_password_reset(self, to: str, reset_url: str, expire_minutes: int) -> None:
        """Send reset instructions containing a single-use link."""
        text = (
            "You are receiving this email because a password reset was requested for your account.\n\n"
            f"Open the link below to choose a new password:\n\n{reset_url}\n\n"
            f"The link expires in {expire_minutes} minutes. "
            "If you did not request a reset, you can ignore this email."
        )
        self.send_email(to, "Password reset instructions", text)

    def send_unknown_account_notice(self, to: str) -> None:
        """Tell the recipient that a reset was requested for an address with no account."""
        text = (
            "Someone requested a password reset for this email address, "
            "but no account is registered with it.\n\n"
            "If you did not make this request, you can ignore this email."
        )
        self.send_email(to, "Password reset instructions", text)


_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    """Get singleton email service instance."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
