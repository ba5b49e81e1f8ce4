"""Library: wires the ledgers and services together.

One ``Library`` is created per process. It owns the database, loads the
catalog, copy and loan ledgers in dependency order and hands them to the
lending and reminder services.
"""

import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Callable, Optional

from .catalog.items import MediaItem
from .catalog.manager import MediaCatalog
from .catalog.schemas import MediaItemCreate
from .config import Config, get_config
from .copies.ledger import CopyLedger
from .db.sqlite import Database
from .lending.service import LendingService
from .loans.ledger import LoanLedger
from .notify.hub import NotificationHub
from .notify.mailer import Mailer, SmtpMailer
from .records.transfer import TransferResult, export_library, import_library
from .reminders.service import ReminderService
from .users.directory import User, UserDirectory

logger = logging.getLogger(__name__)


class Library:
    """Composition root for the lending system."""

    def __init__(
        self,
        db: Optional[Database] = None,
        config: Optional[Config] = None,
        users: Optional[UserDirectory] = None,
        mailer: Optional[Mailer] = None,
        clock: Callable[[], date] = date.today,
        notify_waiting: bool = True,
    ):
        """Build every ledger and service.

        Args:
            db: Database instance. If None, one is opened at the configured path.
            config: Configuration. If None, uses the global config.
            users: User directory. If None, the configured users file is read.
            mailer: Mail transport. If None and credentials are configured,
                    an SMTP mailer is used.
            clock: Returns today's date
            notify_waiting: Subscribe users to items they could not borrow.
                            Subscriptions live in memory, so only a
                            long-running process should enable this.
        """
        self.config = config or get_config()
        self.db = db or Database(str(self.config.db_path))
        self.db.create_tables()
        self.users = users if users is not None else UserDirectory.from_file(self.config.users_path)
        if mailer is None and self.config.has_email_config():
            mailer = SmtpMailer(
                self.config.email_username,
                self.config.email_password,
                host=self.config.smtp_host,
                port=self.config.smtp_port,
            )
        self.mailer = mailer
        self.clock = clock
        self.hub: Optional[NotificationHub] = NotificationHub() if notify_waiting else None
        self._build()

    def _build(self) -> None:
        self.catalog = MediaCatalog(self.db)
        self.copies = CopyLedger(self.db, self.catalog)
        self.loans = LoanLedger(self.db, self.catalog, self.copies, self.users, clock=self.clock)
        self.lending = LendingService(
            self.catalog, self.copies, self.loans, hub=self.hub, mailer=self.mailer, clock=self.clock
        )
        self.reminders = ReminderService(self.loans, self.users, mailer=self.mailer, clock=self.clock)

    def reload(self) -> None:
        """Reload the ledgers from the database, keeping the logged-in user."""
        current = self.lending.current_user
        self._build()
        if current is not None:
            self.lending.login(current)

    # -------------------------------------------------------------------------
    # Catalog administration
    # -------------------------------------------------------------------------

    def add_item(self, data: MediaItemCreate, copies: int = 1) -> Optional[MediaItem]:
        """Catalog a new book or CD together with its first copies.

        Args:
            data: Validated item fields
            copies: Number of copies to create

        Returns:
            The stored item, or None if the database write failed

        Raises:
            ValueError: If copies is not positive
            DuplicateItemError: If the identifier is already catalogued
        """
        if copies <= 0:
            raise ValueError("Number of copies must be positive")

        item = data.to_item()
        if not self.catalog.save(item):
            return None
        self.copies.add_copies(item.identifier, copies)
        stored = self.catalog.find_by_identifier(item.identifier)
        logger.info("Catalogued %s with %d copies", item.identifier, copies)
        return replace(stored) if stored else None

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def login(self, username: str) -> Optional[User]:
        """Log a known user into the lending service."""
        user = self.users.find_user_by_username(username)
        if user is None:
            logger.info("Unknown user: %s", username)
            return None
        self.lending.login(user)
        return user

    # -------------------------------------------------------------------------
    # Import / Export
    # -------------------------------------------------------------------------

    def export_to(self, directory: Path) -> TransferResult:
        return export_library(self.catalog, self.copies, self.loans, directory)

    def import_from(self, directory: Path) -> TransferResult:
        """Import record files and reload the ledgers so availability reconciles."""
        result = import_library(self.db, directory)
        if result.success:
            self.reload()
        return result
