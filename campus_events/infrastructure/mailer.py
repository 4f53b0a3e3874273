"""SMTP mail transport.

Sends HTML email through the configured SMTP relay (Mailtrap in
development). Transient failures are retried with a linear backoff; the
caller decides what a final failure means.
"""

import smtplib
import time
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional, Sequence

import structlog

from campus_events.config import Settings

logger = structlog.get_logger(__name__)


class MailDeliveryError(Exception):
    """Raised when a message could not be handed to the SMTP relay."""


class SMTPMailer:
    """Client for the outbound SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        sender_name: str = "Campus Events",
        sender_email: str = "no-reply@campus-events.local",
        use_tls: bool = True,
        timeout: int = 30,
        enabled: bool = True,
        max_retries: int = 3,
        retry_delay: float = 2,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = formataddr((sender_name, sender_email))
        self.use_tls = use_tls
        self.timeout = timeout
        self.enabled = enabled
        self.max_retries = max_retries
        self.retry_delay = retry_delay  # seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPMailer":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            sender_name=settings.MAIL_SENDER_NAME,
            sender_email=settings.MAIL_SENDER_EMAIL,
            use_tls=settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT,
            enabled=settings.MAIL_ENABLED,
        )

    def build_message(
        self,
        subject: str,
        html: str,
        to: Sequence[str] = (),
        text: Optional[str] = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["Message-ID"] = make_msgid(domain="campus-events")
        if to:
            message["To"] = ", ".join(to)
        # Bcc is passed to the envelope only, never written as a header
        message.set_content(text or "This message requires an HTML-capable mail client.\n")
        message.add_alternative(html, subtype="html")
        return message

    def send(
        self,
        subject: str,
        html: str,
        to: Sequence[str] = (),
        bcc: Sequence[str] = (),
        text: Optional[str] = None,
    ) -> Optional[str]:
        """
        Send one HTML email. Returns the Message-ID.

        Retries up to max_retries times on failure before raising
        MailDeliveryError.
        """
        recipients = [*to, *bcc]
        if not recipients:
            logger.debug("Mail skipped, no recipients", subject=subject)
            return None

        message = self.build_message(subject, html, to=to, text=text)

        if not self.enabled:
            logger.info("Mail disabled, message not sent", subject=subject, recipients=len(recipients))
            return message["Message-ID"]

        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                    if self.use_tls:
                        smtp.starttls()
                    if self.username:
                        smtp.login(self.username, self.password)
                    smtp.send_message(message, to_addrs=recipients)
                logger.info(
                    "Mail sent",
                    subject=subject,
                    recipients=len(recipients),
                    attempt=attempt,
                    message_id=message["Message-ID"],
                )
                return message["Message-ID"]
            except smtplib.SMTPRecipientsRefused as e:
                # Permanent: retrying will not help
                raise MailDeliveryError(f"Recipients refused: {list(e.recipients)}") from e
            except (smtplib.SMTPException, OSError) as e:
                last_error = e
                logger.warning(
                    "SMTP error",
                    attempt=attempt,
                    max_retries=self.max_retries,
                    error=str(e),
                )

            if attempt < self.max_retries:
                time.sleep(self.retry_delay * attempt)

        raise MailDeliveryError(
            f"Failed to send mail after {self.max_retries} attempts: {last_error}"
        )
