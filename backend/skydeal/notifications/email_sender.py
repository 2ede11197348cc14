import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from skydeal.core.config import settings
from skydeal.core.errors import TransientDependencyError

logger = logging.getLogger(__name__)


class EmailSendError(TransientDependencyError):
    pass


@dataclass(frozen=True)
class OutgoingEmail:
    to_email: str
    subject: str
    body_text: str
    body_html: str | None = None


class MailTransport(Protocol):
    def send(self, message: OutgoingEmail) -> None:
        """Deliver *message* or raise EmailSendError."""


def send_email(message: OutgoingEmail) -> None:
    if not settings.SMTP_HOST or not settings.SMTP_FROM_EMAIL:
        raise EmailSendError("SMTP is not configured")

    msg = EmailMessage()
    from_name = settings.SMTP_FROM_NAME or ""
    from_email = settings.SMTP_FROM_EMAIL

    if from_name:
        msg["From"] = f"{from_name} <{from_email}>"
    else:
        msg["From"] = from_email

    msg["To"] = message.to_email
    msg["Subject"] = message.subject
    msg.set_content(message.body_text)
    if message.body_html:
        msg.add_alternative(message.body_html, subtype="html")

    try:
        with smtplib.SMTP(
            settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
        ) as server:
            server.ehlo()
            if settings.SMTP_USE_TLS:
                server.starttls()
                server.ehlo()
            if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)
    except Exception as e:
        raise EmailSendError(str(e)) from e


class SmtpTransport:
    def send(self, message: OutgoingEmail) -> None:
        send_email(message)
        logger.info("Sent email to %s: %s", message.to_email, message.subject)


class LogTransport:
    """Log what would have been sent. Used while e-mail is disabled."""

    def send(self, message: OutgoingEmail) -> None:
        logger.info(
            "EMAIL DISABLED (log-only): to=%s subject=%s",
            message.to_email,
            message.subject,
        )


def default_transport() -> MailTransport:
    # SAFE MODE (default): don't touch SMTP
    if not settings.ENABLE_EMAIL_NOTIFICATIONS:
        return LogTransport()
    return SmtpTransport()
