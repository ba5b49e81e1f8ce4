"""Copy ledger: individual physical copies of catalog items."""

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..catalog.items import MediaItem, normalize_identifier
from ..catalog.manager import MediaCatalog
from ..db.sqlite import Database
from .models import CopyEntry

logger = logging.getLogger(__name__)

COPY_ID_SEPARATOR = "-"


@dataclass
class MediaCopy:
    """One loanable copy of a catalog item."""

    copy_id: str
    item: MediaItem
    available: bool = True

    @property
    def identifier(self) -> str:
        return self.item.identifier

    @property
    def sequence(self) -> int:
        """Numeric suffix of the copy id, 0 if it is not a number."""
        return parse_sequence(self.copy_id)

    def __str__(self) -> str:
        state = "Available" if self.available else "Borrowed"
        return f"Copy[{self.copy_id}]: {self.item.title} - {self.item.author} [{state}]"


def make_copy_id(identifier: str, sequence: int) -> str:
    """Build the id of a copy from its item identifier and sequence number."""
    return f"{identifier}{COPY_ID_SEPARATOR}{sequence}"


def parse_sequence(copy_id: str) -> int:
    """Read the sequence number after the last separator of a copy id.

    Malformed or missing suffixes count as 0.
    """
    _, sep, suffix = copy_id.rpartition(COPY_ID_SEPARATOR)
    if not sep:
        return 0
    try:
        return max(0, int(suffix))
    except ValueError:
        return 0


class CopyLedger:
    """Tracks physical copies and their availability.

    Registers itself with the catalog so that item availability can be
    derived from the number of available copies.
    """

    def __init__(self, db: Database, catalog: MediaCatalog):
        """Initialize the ledger and load copies from the database.

        Args:
            db: Database instance
            catalog: Catalog that resolves copy identifiers to items
        """
        self.db = db
        self.catalog = catalog
        self._copies: list[MediaCopy] = []
        self._next_position = 0
        self._lock = RLock()
        catalog.attach_copies(self)
        self._load()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        self._copies.clear()
        try:
            with self.db.get_session() as session:
                rows = session.execute(
                    select(CopyEntry).order_by(CopyEntry.position)
                ).scalars().all()
                for row in rows:
                    item = self.catalog.find_by_identifier(row.identifier)
                    if item is None:
                        logger.warning(
                            "Skipping copy %s: no catalog item %s", row.copy_id, row.identifier
                        )
                        continue
                    self._copies.append(MediaCopy(row.copy_id, item, row.available))
                self._next_position = (
                    session.execute(select(func.max(CopyEntry.position))).scalar() or 0
                ) + 1
        except SQLAlchemyError as e:
            logger.error("Error loading media copies: %s", e)
            self._copies.clear()

    def _write_availability(self, copy: MediaCopy) -> bool:
        try:
            with self.db.get_session() as session:
                row = session.get(CopyEntry, copy.copy_id)
                if row is None:
                    logger.warning("No copy row for %s", copy.copy_id)
                    return False
                row.available = copy.available
            return True
        except SQLAlchemyError as e:
            logger.error("Error saving copy %s: %s", copy.copy_id, e)
            return False

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_copies(
        self,
        identifier: str,
        count: int,
        available: bool = True,
    ) -> list[MediaCopy]:
        """Add a batch of copies for a catalog item.

        Args:
            identifier: Item identifier
            count: Number of copies to add; nothing happens if not positive
            available: Initial availability of the new copies

        Returns:
            The created copies (empty if nothing was added)
        """
        if count <= 0:
            return []

        item = self.catalog.find_by_identifier(identifier)
        if item is None:
            logger.warning("Cannot find media item with identifier: %s", identifier)
            return []

        with self._lock:
            start = self.max_sequence(item.identifier) + 1
            new_copies = [
                MediaCopy(make_copy_id(item.identifier, start + i), item, available)
                for i in range(count)
            ]

            try:
                with self.db.get_session() as session:
                    for offset, copy in enumerate(new_copies):
                        session.add(
                            CopyEntry(
                                copy_id=copy.copy_id,
                                identifier=item.identifier,
                                available=copy.available,
                                position=self._next_position + offset,
                            )
                        )
            except SQLAlchemyError as e:
                logger.error("Error saving media copies for %s: %s", identifier, e)
                return []

            self._next_position += count
            self._copies.extend(new_copies)

        logger.info("Added %d copies of %s", count, item.identifier)
        self.catalog.refresh_availability(item.identifier)
        return new_copies

    def set_available(self, copy_id: str, available: bool) -> bool:
        """Set one copy's availability.

        Returns:
            True if the copy exists and its state was written
        """
        with self._lock:
            copy = self.find_copy(copy_id)
            if copy is None:
                return False
            copy.available = available
            return self._write_availability(copy)

    def checkout(self, identifier: str) -> Optional[MediaCopy]:
        """Mark the first available copy of an item as out.

        Returns:
            The copy taken, or None if no copy is available
        """
        with self._lock:
            for copy in self.copies_for(identifier):
                if copy.available:
                    copy.available = False
                    self._write_availability(copy)
                    return copy
            return None

    def release(self, copy_id: str) -> bool:
        """Mark a copy as back on the shelf."""
        return self.set_available(copy_id, True)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def max_sequence(self, identifier: str) -> int:
        """Highest sequence number used by any copy of an item."""
        return max((c.sequence for c in self.copies_for(identifier)), default=0)

    def available_count(self, identifier: str) -> int:
        """Number of copies of an item that are available."""
        return sum(1 for c in self.copies_for(identifier) if c.available)

    def copies_for(self, identifier: str) -> list[MediaCopy]:
        """All copies of an item, ignoring identifier case."""
        key = normalize_identifier(identifier)
        return [c for c in self._copies if c.item.key == key]

    def find_copy(self, copy_id: str) -> Optional[MediaCopy]:
        """Get a copy by its id."""
        for copy in self._copies:
            if copy.copy_id == copy_id:
                return copy
        return None

    def list_all(self) -> list[MediaCopy]:
        """All copies in insertion order."""
        return list(self._copies)

    def __len__(self) -> int:
        return len(self._copies)
