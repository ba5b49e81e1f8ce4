"""Line codecs for the semicolon-separated record files.

Formats (one entity per line):
- catalog: ``title;author;identifier[;available]``
- copy:    ``copyId;identifier;available``
- loan:    ``loanId;username;identifier;borrowDate;returnDateOrNULL``
- user:    ``username;password;role;email;lastLoginDate``

Every ``from_line`` raises ``ValueError`` for a line it cannot read.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ValidationError

SEPARATOR = ";"
NULL_DATE = "NULL"


def parse_bool(value: str) -> bool:
    """Read a boolean column; anything but ``true`` is false."""
    return value.strip().lower() == "true"


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def split_line(line: str, min_fields: int, max_fields: Optional[int] = None) -> list[str]:
    """Split a record line and check its field count."""
    parts = line.rstrip("\r\n").split(SEPARATOR)
    max_fields = max_fields or min_fields
    if not min_fields <= len(parts) <= max_fields:
        raise ValueError(f"Expected {min_fields}-{max_fields} fields, got {len(parts)}: {line!r}")
    return parts


def _build(model: type[BaseModel], **fields) -> BaseModel:
    try:
        return model(**fields)
    except ValidationError as e:
        raise ValueError(str(e)) from e


class CatalogRecord(BaseModel):
    """A catalog line (books.txt or CD.txt)."""

    title: str
    author: str
    identifier: str
    available: bool = True

    @classmethod
    def from_line(cls, line: str) -> "CatalogRecord":
        parts = split_line(line, 3, 4)
        available = parse_bool(parts[3]) if len(parts) == 4 else True
        return _build(cls, title=parts[0], author=parts[1], identifier=parts[2], available=available)

    def to_line(self) -> str:
        return SEPARATOR.join([self.title, self.author, self.identifier, format_bool(self.available)])


class CopyRecord(BaseModel):
    """A copy line (media_copies.txt)."""

    copy_id: str
    identifier: str
    available: bool

    @classmethod
    def from_line(cls, line: str) -> "CopyRecord":
        parts = split_line(line, 3)
        return _build(cls, copy_id=parts[0], identifier=parts[1], available=parse_bool(parts[2]))

    def to_line(self) -> str:
        return SEPARATOR.join([self.copy_id, self.identifier, format_bool(self.available)])


class LoanRecord(BaseModel):
    """A loan line (loans.txt)."""

    loan_id: str
    username: str
    identifier: str
    borrow_date: date
    return_date: Optional[date] = None

    @classmethod
    def from_line(cls, line: str) -> "LoanRecord":
        parts = split_line(line, 5)
        return_date = None if parts[4] == NULL_DATE else parts[4]
        return _build(
            cls,
            loan_id=parts[0],
            username=parts[1],
            identifier=parts[2],
            borrow_date=parts[3],
            return_date=return_date,
        )

    def to_line(self) -> str:
        return_date = self.return_date.isoformat() if self.return_date else NULL_DATE
        return SEPARATOR.join(
            [self.loan_id, self.username, self.identifier, self.borrow_date.isoformat(), return_date]
        )


class UserRecord(BaseModel):
    """A user line (users.txt), owned by user management."""

    username: str
    password: str
    role: str
    email: Optional[str] = None
    last_login_date: Optional[date] = None

    @classmethod
    def from_line(cls, line: str) -> "UserRecord":
        parts = split_line(line, 3, 5)
        email = parts[3].strip() if len(parts) > 3 else ""
        last_login = parts[4].strip() if len(parts) > 4 else ""
        return _build(
            cls,
            username=parts[0],
            password=parts[1],
            role=parts[2],
            email=email if email and email != "null" else None,
            last_login_date=last_login if last_login and last_login != "null" else None,
        )

    def to_line(self) -> str:
        return SEPARATOR.join(
            [
                self.username,
                self.password,
                self.role,
                self.email or "",
                self.last_login_date.isoformat() if self.last_login_date else "",
            ]
        )
