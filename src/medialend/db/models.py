"""SQLAlchemy declarative base shared by every ledger table.

Tables (defined next to the ledger that owns them):
- catalog_items: media catalog (books and CDs)
- media_copies: physical copies of catalog items
- loans: the loan journal
"""

from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())
