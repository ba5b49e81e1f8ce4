"""Email delivery of availability notifications."""

import logging
import smtplib
from typing import Optional, Protocol

from flask import Flask
from flask_mail import Mail, Message

from ..catalog.manager import MediaCatalog
from ..users.directory import User

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    """Outbound mail transport."""

    def send(self, to: str, subject: str, body: str) -> bool: ...


class SmtpMailer:
    """Sends plain-text mail through Flask-Mail over SMTP with STARTTLS.

    Flask-Mail needs an application context, so the mailer owns a minimal
    Flask app holding nothing but the mail settings.
    """

    def __init__(
        self,
        username: Optional[str],
        password: Optional[str],
        host: str = "smtp.gmail.com",
        port: int = 587,
        suppress: bool = False,
    ):
        """Initialize the mailer.

        Args:
            username: SMTP login, also used as the sender address
            password: SMTP password
            host: SMTP server
            port: SMTP port
            suppress: Build and dispatch messages without connecting
        """
        self.username = username
        self.password = password
        self.host = host
        self.port = port

        self.app = Flask(__name__)
        self.app.config.update(
            MAIL_SERVER=host,
            MAIL_PORT=port,
            MAIL_USE_TLS=True,
            MAIL_USE_SSL=False,
            MAIL_USERNAME=username,
            MAIL_PASSWORD=password,
            MAIL_DEFAULT_SENDER=username,
            MAIL_SUPPRESS_SEND=suppress,
        )
        self.mail = Mail(self.app)

    def send(self, to: str, subject: str, body: str) -> bool:
        """Send one message.

        Returns:
            True if the server accepted it; failures are logged, not raised
        """
        if not to:
            return False
        if not self.username or not self.password:
            logger.warning("Email credentials are not configured; not sending to %s", to)
            return False

        try:
            with self.app.app_context():
                self.mail.send(Message(subject=subject, recipients=[to], body=body))
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Failed to send email to %s: %s", to, e)
            return False


class EmailNotifier:
    """Emails a user when the item they asked for becomes available."""

    SUBJECT = "Media Item Is Now Available"

    def __init__(self, user: User, mailer: Mailer, catalog: MediaCatalog):
        self.user = user
        self.mailer = mailer
        self.catalog = catalog

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EmailNotifier):
            return NotImplemented
        return self.user.username == other.user.username

    def __hash__(self) -> int:
        return hash(self.user.username)

    def build_message(self, identifier: str) -> Optional[str]:
        item = self.catalog.find_by_identifier(identifier)
        if item is None:
            return None
        return (
            f"Hello {self.user.username}\n\n"
            "The item you requested is now available.\n"
            f'Title: "{item.title}" (ID: {item.identifier})\n\n'
            "You can borrow it now."
        )

    def on_item_available(self, identifier: str) -> None:
        if not self.user.has_email:
            logger.info("User %s has no email, cannot send notification", self.user.username)
            return

        body = self.build_message(identifier)
        if body is None:
            logger.warning("Item not found for notification: %s", identifier)
            return

        self.mailer.send(self.user.email, self.SUBJECT, body)
