"""SMTP transport for email delivery.

Wraps smtplib with TLS/SSL negotiation, optional authentication and proper
connection cleanup. Each notification is sent as a multipart message with
the plain text body and an HTML alternative.
"""

import smtplib
import ssl
from email.message import EmailMessage
from typing import Callable, Optional

from email_validator import EmailNotValidError, validate_email

from notify_engine.domain.models import Notification
from notify_engine.logging import get_logger

from .base import BlockingTransport
from .exceptions import SMTPDeliveryError, TransportConfigurationError

logger = get_logger(__name__, component="transport")

IMPLICIT_TLS_PORT = 465


class SmtpTransport(BlockingTransport):
    """Deliver notifications through an SMTP server.

    Port 465 uses implicit TLS (SMTP_SSL); any other port connects in plain
    text and upgrades with STARTTLS when ``use_tls`` is set.
    """

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        sender_name: str = "TalentBridge Notifications",
        sender_email: Optional[str] = None,
        timeout: float = 30.0,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize SMTP transport.

        Args:
            host: SMTP server hostname
            port: SMTP server port
            username: Login user (login is skipped unless both user and password are set)
            password: Login password
            use_tls: Upgrade plain connections with STARTTLS
            sender_name: Display name in the From header
            sender_email: From address (defaults to username, then noreply@host)
            timeout: Socket timeout in seconds
            smtp_factory: Factory for SMTP connections (for mocking)
            smtp_ssl_factory: Factory for SMTP_SSL connections (for mocking)

        Raises:
            TransportConfigurationError: If host or port is unusable
        """
        if not host:
            raise TransportConfigurationError("SMTP transport requires a host")
        if not 1 <= int(port) <= 65535:
            raise TransportConfigurationError(f"Invalid SMTP port: {port}")

        self.host = host
        self.port = int(port)
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender_name = sender_name
        self.sender_email = sender_email
        self.timeout = timeout
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    @property
    def sender_address(self) -> str:
        """Formatted From header, e.g. ``Name <user@example.com>``."""
        address = self.sender_email or self.username or f"noreply@{self.host}"
        return f"{self.sender_name} <{address}>"

    def build_message(self, notification: Notification) -> EmailMessage:
        """Build the email for a notification.

        Raises:
            SMTPDeliveryError: If the recipient address is invalid
        """
        try:
            recipient = validate_email(notification.to, check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise SMTPDeliveryError(f"Invalid recipient address '{notification.to}': {e}") from e

        message = EmailMessage()
        # Header values cannot span lines
        message["Subject"] = " ".join(notification.subject.split())
        message["From"] = self.sender_address
        message["To"] = recipient
        message["X-Notification-Id"] = notification.id

        message.set_content(notification.text_body or notification.subject)
        if notification.body:
            message.add_alternative(notification.body, subtype="html")

        return message

    def deliver(self, notification: Notification) -> None:
        """Send one notification over SMTP.

        Raises:
            SMTPDeliveryError: On SMTP, network, or unexpected errors
        """
        message = self.build_message(notification)

        smtp = None
        try:
            if self.port == IMPLICIT_TLS_PORT:
                logger.debug(f"Connecting to {self.host}:{self.port} with implicit TLS")
                smtp = self.smtp_ssl_factory(
                    self.host,
                    self.port,
                    context=ssl.create_default_context(),
                    timeout=self.timeout,
                )
            else:
                logger.debug(f"Connecting to {self.host}:{self.port}")
                smtp = self.smtp_factory(self.host, self.port, timeout=self.timeout)
                if self.use_tls:
                    smtp.starttls(context=ssl.create_default_context())

            if self.username and self.password:
                smtp.login(self.username, self.password)

            smtp.send_message(message)
            logger.debug(f"Message {notification.id} accepted for {message['To']}")

        except smtplib.SMTPException as e:
            raise SMTPDeliveryError(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            raise SMTPDeliveryError(f"Network error during SMTP connection: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except Exception as e:
                    logger.warning(f"Error closing SMTP connection: {e}")
