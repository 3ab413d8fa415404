"""
Email delivery for signature requests.

Providers: SendGrid, plain SMTP, and a logging provider used in development
and tests. Every provider either returns a DeliveryReceipt or raises
DeliveryError.
"""

import logging
import smtplib
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from email.message import EmailMessage
from typing import Protocol

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content

from core.config import Settings, settings
from core.exceptions import DeliveryError
from models.deal import utcnow

logger = logging.getLogger("email_delivery")


@dataclass(frozen=True)
class DeliveryReceipt:
    provider: str
    recipient: str
    message_id: str | None = None
    delivered_at: datetime = field(default_factory=utcnow)


class EmailSender(Protocol):
    def deliver(self, to: str, subject: str, html_body: str) -> DeliveryReceipt: ...


class SendGridEmailSender:
    def __init__(self, api_key: str, sender: str, sender_name: str):
        self.api_key = api_key
        self.sender = sender
        self.sender_name = sender_name

    def deliver(self, to: str, subject: str, html_body: str) -> DeliveryReceipt:
        message = Mail(
            from_email=Email(self.sender, self.sender_name),
            to_emails=To(to),
            subject=subject,
            html_content=Content("text/html", html_body)
        )
        try:
            response = SendGridAPIClient(self.api_key).send(message)
        except Exception as e:
            raise DeliveryError(f"SendGrid request failed: {e}") from e

        if response.status_code not in (200, 202):
            raise DeliveryError(f"SendGrid rejected message: HTTP {response.status_code}")

        message_id = None
        if response.headers:
            message_id = response.headers.get("X-Message-Id")
        logger.info(f"Email sent to {to} via SendGrid: {subject}")
        return DeliveryReceipt(provider="sendgrid", recipient=to, message_id=message_id)


class SmtpEmailSender:
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        sender_name: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.sender_name = sender_name
        self.username = username
        self.password = password
        self.use_tls = use_tls

    def deliver(self, to: str, subject: str, html_body: str) -> DeliveryReceipt:
        message = EmailMessage()
        message["From"] = f"{self.sender_name} <{self.sender}>"
        message["To"] = to
        message["Subject"] = subject
        message_id = f"<{uuid.uuid4()}@{self.sender.split('@')[-1]}>"
        message["Message-ID"] = message_id
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP delivery failed: {e}") from e

        logger.info(f"Email sent to {to} via SMTP: {subject}")
        return DeliveryReceipt(provider="smtp", recipient=to, message_id=message_id)


class LoggingEmailSender:
    """Write messages to the log instead of sending them; keeps an outbox for inspection."""

    def __init__(self):
        self.outbox: list[dict] = []

    def deliver(self, to: str, subject: str, html_body: str) -> DeliveryReceipt:
        self.outbox.append({"to": to, "subject": subject, "html": html_body})
        logger.info(f"[email:log] to={to} subject={subject!r}")
        return DeliveryReceipt(provider="log", recipient=to, message_id=str(uuid.uuid4()))


def build_email_sender(config: Settings) -> EmailSender:
    provider = config.email_provider.lower()
    if provider == "sendgrid":
        if not config.sendgrid_api_key:
            raise ValueError("SENDGRID_API_KEY is required when EMAIL_PROVIDER=sendgrid")
        return SendGridEmailSender(config.sendgrid_api_key, config.email_sender, config.email_sender_name)
    if provider == "smtp":
        if not config.smtp_host:
            raise ValueError("SMTP_HOST is required when EMAIL_PROVIDER=smtp")
        return SmtpEmailSender(
            host=config.smtp_host,
            port=config.smtp_port,
            sender=config.email_sender,
            sender_name=config.email_sender_name,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
        )
    if provider == "log":
        return LoggingEmailSender()
    raise ValueError(f"Unknown email provider: {config.email_provider}")


_sender: EmailSender | None = None


def get_email_sender() -> EmailSender:
    global _sender
    if _sender is None:
        _sender = build_email_sender(settings)
    return _sender
