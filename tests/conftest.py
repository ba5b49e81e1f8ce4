"""Pytest configuration and shared fixtures.

This module provides fixtures for testing medialend: an in-memory database,
ledgers wired together, a controllable clock, sample users and a recording
mailer.
"""

from datetime import date, timedelta
from pathlib import Path

import pytest

from medialend.catalog import MediaCatalog, MediaItem, MediaType
from medialend.config import Config, reset_config
from medialend.copies import CopyLedger
from medialend.db.sqlite import Database, reset_db
from medialend.lending import LendingService
from medialend.loans import LoanLedger
from medialend.notify import NotificationHub
from medialend.reminders import ReminderService
from medialend.users import User, UserDirectory

START = date(2025, 1, 1)


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, today: date = START):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int) -> None:
        self.today += timedelta(days=days)


class RecordingMailer:
    """Mailer that keeps every message instead of sending it."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: list[tuple[str, str, str]] = []

    def send(self, to: str, subject: str, body: str) -> bool:
        self.sent.append((to, subject, body))
        return self.succeed


def add_item(
    catalog: MediaCatalog,
    copies: CopyLedger,
    identifier: str,
    title: str,
    author: str,
    media_type: MediaType = MediaType.BOOK,
    count: int = 1,
) -> MediaItem:
    """Catalog an item with its copies and return the live item."""
    catalog.save(MediaItem(identifier=identifier, title=title, author=author, media_type=media_type))
    copies.add_copies(identifier, count)
    return catalog.find_by_identifier(identifier)


# ============================================================================
# Global State
# ============================================================================


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset the global database and config around every test."""
    reset_db()
    reset_config()
    yield
    reset_db()
    reset_config()


# ============================================================================
# Database and Ledger Fixtures
# ============================================================================


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog(db: Database) -> MediaCatalog:
    return MediaCatalog(db)


@pytest.fixture
def copies(db: Database, catalog: MediaCatalog) -> CopyLedger:
    return CopyLedger(db, catalog)


@pytest.fixture
def alice() -> User:
    return User(username="alice", email="alice@example.com")


@pytest.fixture
def bob() -> User:
    """A user without an email address."""
    return User(username="bob")


@pytest.fixture
def carol() -> User:
    return User(username="carol", email="carol@example.com")


@pytest.fixture
def users(alice: User, bob: User, carol: User) -> UserDirectory:
    return UserDirectory([alice, bob, carol])


@pytest.fixture
def loans(db, catalog, copies, users, clock) -> LoanLedger:
    return LoanLedger(db, catalog, copies, users, clock=clock)


@pytest.fixture
def hub() -> NotificationHub:
    return NotificationHub()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def service(catalog, copies, loans, hub, mailer, clock) -> LendingService:
    return LendingService(catalog, copies, loans, hub=hub, mailer=mailer, clock=clock)


@pytest.fixture
def reminders(loans, users, mailer, clock) -> ReminderService:
    return ReminderService(loans, users, mailer=mailer, clock=clock)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def book(catalog: MediaCatalog, copies: CopyLedger) -> MediaItem:
    """Book B1 with a single copy."""
    return add_item(catalog, copies, "B1", "Dune", "Frank Herbert")


@pytest.fixture
def cd(catalog: MediaCatalog, copies: CopyLedger) -> MediaItem:
    """CD C1 with a single copy."""
    return add_item(catalog, copies, "C1", "Kind of Blue", "Miles Davis", MediaType.CD)


@pytest.fixture
def library_config(tmp_path: Path) -> Config:
    """Configuration with no email and a users file under tmp_path."""
    return Config(
        db_path=Path(":memory:"),
        users_path=tmp_path / "users.txt",
        email_username=None,
        email_password=None,
        smtp_host="smtp.example.com",
        smtp_port=587,
        log_level="WARNING",
    )
