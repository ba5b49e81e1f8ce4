"""Read-only view of the users file kept by user management."""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from ..records.codec import UserRecord

logger = logging.getLogger(__name__)


@dataclass
class User:
    """A library user as seen by lending."""

    username: str
    role: str = "customer"
    email: Optional[str] = None
    last_login_date: Optional[date] = None

    @property
    def has_email(self) -> bool:
        return bool(self.email)

    @classmethod
    def from_record(cls, record: UserRecord) -> "User":
        return cls(
            username=record.username,
            role=record.role,
            email=record.email,
            last_login_date=record.last_login_date,
        )


class UserDirectory:
    """Looks users up by username.

    Registration and credentials belong to user management; this class only
    reads the users file it maintains.
    """

    def __init__(self, users: Optional[Iterable[User]] = None):
        self._users: dict[str, User] = {}
        for user in users or []:
            self._users[user.username] = user

    @classmethod
    def from_file(cls, path: Path) -> "UserDirectory":
        """Load users from a users file; a missing or unreadable file gives no users."""
        directory = cls()
        if not path.exists():
            logger.info("Users file not found: %s", path)
            return directory

        try:
            with open(path, "r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        record = UserRecord.from_line(line)
                    except ValueError as e:
                        logger.warning("Skipping users line %d: %s", line_no, e)
                        continue
                    directory.add(User.from_record(record))
        except OSError as e:
            logger.error("Error reading users file %s: %s", path, e)
        return directory

    def add(self, user: User) -> None:
        self._users[user.username] = user

    def find_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by exact username."""
        return self._users.get(username)

    def list_all(self) -> list[User]:
        return list(self._users.values())

    def __len__(self) -> int:
        return len(self._users)
