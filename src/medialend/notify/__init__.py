"""Availability notifications."""

from .mailer import EmailNotifier, Mailer, SmtpMailer
from .hub import ItemObserver, NotificationHub

__all__ = [
    "EmailNotifier",
    "Mailer",
    "SmtpMailer",
    "ItemObserver",
    "NotificationHub",
]
