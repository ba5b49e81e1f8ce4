"""Media catalog: the canonical record of every book and CD."""

import logging
from dataclasses import replace
from threading import RLock
from typing import TYPE_CHECKING, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..db.sqlite import Database
from .items import MediaItem, MediaType, normalize_identifier
from .models import CatalogEntry
from .schemas import SearchField

if TYPE_CHECKING:
    from ..copies.ledger import CopyLedger

logger = logging.getLogger(__name__)


class DuplicateItemError(ValueError):
    """An item with the same identifier is already catalogued."""

    pass


class MediaCatalog:
    """Keeps the catalog in memory and writes every change through to the database.

    Items returned by :meth:`find_by_identifier` are the live objects shared
    with the copy and loan ledgers. Listings and searches return copies.
    """

    def __init__(self, db: Database):
        """Initialize the catalog and load it from the database.

        Args:
            db: Database instance
        """
        self.db = db
        self.copies: Optional["CopyLedger"] = None
        self._items: list[MediaItem] = []
        self._next_position = 0
        self._lock = RLock()
        self._load()

    def attach_copies(self, copies: "CopyLedger") -> None:
        """Set the copy ledger availability is derived from."""
        self.copies = copies

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        self._items.clear()
        try:
            with self.db.get_session() as session:
                rows = session.execute(
                    select(CatalogEntry).order_by(CatalogEntry.position)
                ).scalars().all()
                for row in rows:
                    self._items.append(
                        MediaItem(
                            identifier=row.identifier,
                            title=row.title,
                            author=row.author,
                            media_type=MediaType(row.media_type),
                            available=row.available,
                        )
                    )
                self._next_position = (
                    session.execute(select(func.max(CatalogEntry.position))).scalar() or 0
                ) + 1
        except (SQLAlchemyError, ValueError) as e:
            logger.error("Error loading catalog: %s", e)
            self._items.clear()

    def _write(self, item: MediaItem) -> bool:
        """Write one item's current state to its row."""
        try:
            with self.db.get_session() as session:
                row = session.get(CatalogEntry, item.key)
                if row is None:
                    logger.warning("No catalog row for %s", item.identifier)
                    return False
                row.title = item.title
                row.author = item.author
                row.available = item.available
            return True
        except SQLAlchemyError as e:
            logger.error("Error saving catalog item %s: %s", item.identifier, e)
            return False

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def save(self, item: MediaItem) -> bool:
        """Add a new item to the catalog.

        With a copy ledger attached, availability is taken from the copies,
        so an item saved before its copies starts out unavailable.

        Args:
            item: Item to add. Its identifier must not exist as a book or CD.

        Returns:
            True if stored, False if the database write failed

        Raises:
            DuplicateItemError: If the identifier is already catalogued
        """
        with self._lock:
            if self.find_by_identifier(item.identifier) is not None:
                raise DuplicateItemError(f"Identifier already exists: {item.identifier}")

            try:
                with self.db.get_session() as session:
                    session.add(
                        CatalogEntry(
                            key=item.key,
                            identifier=item.identifier,
                            media_type=item.media_type.value,
                            title=item.title,
                            author=item.author,
                            available=item.available,
                            position=self._next_position,
                        )
                    )
            except SQLAlchemyError as e:
                logger.error("Error writing catalog item %s: %s", item.identifier, e)
                return False

            self._next_position += 1
            self._items.append(item)
            if self.copies is not None:
                self.refresh_availability(item.identifier)
            logger.info("Catalogued %s %s", item.media_type.value, item.identifier)
            return True

    def update(self, item: MediaItem) -> bool:
        """Persist a title, author or availability change.

        Args:
            item: Item carrying the new values; matched by identifier

        Returns:
            True if the item exists and was written
        """
        with self._lock:
            live = self.find_by_identifier(item.identifier)
            if live is None:
                return False
            if live is not item:
                live.title = item.title
                live.author = item.author
                live.available = item.available
            return self._write(live)

    def refresh_availability(self, identifier: str) -> Optional[bool]:
        """Recompute an item's availability from its available copies.

        Args:
            identifier: Item identifier

        Returns:
            The new availability, or None if the item is unknown
        """
        with self._lock:
            item = self.find_by_identifier(identifier)
            if item is None:
                return None
            if self.copies is None:
                logger.warning("No copy ledger attached; availability of %s unchanged", identifier)
                return item.available

            item.available = self.copies.available_count(item.identifier) > 0
            self._write(item)
            return item.available

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def find_by_identifier(self, identifier: Optional[str]) -> Optional[MediaItem]:
        """Get the live item for an identifier (case-insensitive)."""
        if not identifier or not identifier.strip():
            return None
        key = normalize_identifier(identifier)
        for item in self._items:
            if item.key == key:
                return item
        return None

    def search_by_title(self, text: str) -> list[MediaItem]:
        """Items whose title contains the text, ignoring case."""
        needle = text.strip().lower()
        return [replace(i) for i in self._items if needle in i.title.lower()]

    def search_by_author(self, text: str) -> list[MediaItem]:
        """Items whose author contains the text, ignoring case."""
        needle = text.strip().lower()
        return [replace(i) for i in self._items if needle in i.author.lower()]

    def search_by_identifier(self, identifier: str) -> list[MediaItem]:
        """Zero or one item with exactly this identifier, ignoring case."""
        item = self.find_by_identifier(identifier)
        return [replace(item)] if item else []

    def search(self, query: str, by: SearchField = SearchField.TITLE) -> list[MediaItem]:
        """Search the catalog on one field."""
        if by == SearchField.AUTHOR:
            return self.search_by_author(query)
        if by == SearchField.IDENTIFIER:
            return self.search_by_identifier(query)
        return self.search_by_title(query)

    def list_all(self) -> list[MediaItem]:
        """All items in insertion order, as detached copies."""
        return [replace(i) for i in self._items]

    def list_by_type(self, media_type: MediaType) -> list[MediaItem]:
        """All items of one media type, as detached copies."""
        return [replace(i) for i in self._items if i.media_type == media_type]

    def __len__(self) -> int:
        return len(self._items)
