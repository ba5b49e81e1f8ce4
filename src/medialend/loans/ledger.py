"""Loan ledger: the journal of every borrow and return."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from threading import RLock
from typing import Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..catalog.items import MediaItem, normalize_identifier
from ..catalog.manager import MediaCatalog
from ..copies.ledger import CopyLedger
from ..db.models import generate_uuid
from ..db.sqlite import Database
from ..users.directory import User, UserDirectory
from .models import LoanEntry

logger = logging.getLogger(__name__)


class ItemUnavailableError(Exception):
    """A borrow was attempted on an item with no available copy."""

    pass


@dataclass
class Loan:
    """A borrowing of one copy of an item by one user."""

    loan_id: str
    user: User
    item: MediaItem
    borrow_date: date
    copy_id: Optional[str] = None
    return_date: Optional[date] = None

    @property
    def due_date(self) -> date:
        return self.borrow_date + timedelta(days=self.item.borrowing_period_days)

    @property
    def is_active(self) -> bool:
        return self.return_date is None

    @property
    def username(self) -> str:
        return self.user.username

    def is_overdue(self, today: date) -> bool:
        """Check if the loan is still out after its due date."""
        return self.return_date is None and today > self.due_date

    def overdue_days(self, today: date) -> int:
        """Days past the due date (0 if not overdue or already returned)."""
        if not self.is_overdue(today):
            return 0
        return (today - self.due_date).days

    def fine(self, today: date) -> int:
        """Fine accrued as of a date."""
        return self.overdue_days(today) * self.item.fine_per_day

    def close(self, return_date: date) -> None:
        """Set the return date. A closed loan cannot be closed again."""
        if self.return_date is not None:
            raise ValueError(f"Loan {self.loan_id} is already returned")
        self.return_date = return_date

    def __str__(self) -> str:
        return f"Loan[{self.loan_id}]: {self.item.title} borrowed by {self.username} (Due: {self.due_date})"


class LoanLedger:
    """Creates and closes loans and answers loan queries.

    The loan journal decides which copies are out: on construction every
    active loan is given a copy, the remaining copies are marked available,
    and each catalog item's availability is refreshed from its copies.
    """

    def __init__(
        self,
        db: Database,
        catalog: MediaCatalog,
        copies: CopyLedger,
        users: Optional[UserDirectory] = None,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize the ledger, load loans and reconcile availability.

        Args:
            db: Database instance
            catalog: Catalog that owns the loaned items
            copies: Copy ledger the loans hold copies from
            users: Directory used to resolve usernames on load
            clock: Returns today's date
        """
        self.db = db
        self.catalog = catalog
        self.copies = copies
        self.users = users or UserDirectory()
        self.clock = clock
        self._loans: list[Loan] = []
        self._unreadable_copies: set[str] = set()
        self._next_position = 0
        self._lock = RLock()
        if self._load():
            self._reconcile()
        else:
            logger.warning("Loan journal unreadable; copy availability left as stored")

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _resolve_user(self, username: str) -> User:
        return self.users.find_user_by_username(username) or User(username=username)

    def _load(self) -> bool:
        """Read the loan journal.

        Rows that cannot be read are skipped with a warning. Copies they
        record stay out, since the loan may still be active.

        Returns:
            False if the journal could not be read at all
        """
        self._loans.clear()
        self._unreadable_copies.clear()
        try:
            with self.db.get_session() as session:
                rows = session.execute(
                    select(LoanEntry).order_by(LoanEntry.position)
                ).scalars().all()
                for row in rows:
                    item = self.catalog.find_by_identifier(row.identifier)
                    if item is None:
                        logger.warning(
                            "Skipping loan %s: no catalog item %s", row.loan_id, row.identifier
                        )
                        continue
                    try:
                        borrow_date = date.fromisoformat(row.borrow_date)
                        return_date = (
                            date.fromisoformat(row.return_date) if row.return_date else None
                        )
                    except ValueError as e:
                        logger.warning("Skipping loan %s: %s", row.loan_id, e)
                        if row.copy_id:
                            self._unreadable_copies.add(row.copy_id)
                        continue
                    self._loans.append(
                        Loan(
                            loan_id=row.loan_id,
                            user=self._resolve_user(row.username),
                            item=item,
                            borrow_date=borrow_date,
                            copy_id=row.copy_id,
                            return_date=return_date,
                        )
                    )
                self._next_position = (
                    session.execute(select(func.max(LoanEntry.position))).scalar() or 0
                ) + 1
        except SQLAlchemyError as e:
            logger.error("Error loading loans: %s", e)
            self._loans.clear()
            return False
        return True

    def _insert(self, loan: Loan) -> bool:
        try:
            with self.db.get_session() as session:
                session.add(
                    LoanEntry(
                        loan_id=loan.loan_id,
                        username=loan.username,
                        identifier=loan.item.identifier,
                        copy_id=loan.copy_id,
                        borrow_date=loan.borrow_date.isoformat(),
                        return_date=loan.return_date.isoformat() if loan.return_date else None,
                        position=self._next_position,
                    )
                )
            self._next_position += 1
            return True
        except SQLAlchemyError as e:
            logger.error("Error saving loan %s: %s", loan.loan_id, e)
            return False

    def _write(self, loan: Loan) -> bool:
        try:
            with self.db.get_session() as session:
                row = session.get(LoanEntry, loan.loan_id)
                if row is None:
                    logger.warning("No loan row for %s", loan.loan_id)
                    return False
                row.copy_id = loan.copy_id
                row.return_date = loan.return_date.isoformat() if loan.return_date else None
            return True
        except SQLAlchemyError as e:
            logger.error("Error saving loan %s: %s", loan.loan_id, e)
            return False

    def _reconcile(self) -> None:
        """Make copy and item availability agree with the active loans."""
        held: set[str] = set(self._unreadable_copies)
        for loan in self.all_active_loans():
            copy = self.copies.find_copy(loan.copy_id) if loan.copy_id else None
            if copy is None or copy.copy_id in held or copy.item is not loan.item:
                copy = next(
                    (
                        c
                        for c in self.copies.copies_for(loan.item.identifier)
                        if c.copy_id not in held
                    ),
                    None,
                )
                if copy is None:
                    logger.warning(
                        "Active loan %s has no copy of %s to hold",
                        loan.loan_id,
                        loan.item.identifier,
                    )
                    continue
                loan.copy_id = copy.copy_id
                self._write(loan)
            held.add(copy.copy_id)

        for copy in self.copies.list_all():
            on_shelf = copy.copy_id not in held
            if copy.available != on_shelf:
                self.copies.set_available(copy.copy_id, on_shelf)

        for item in self.catalog.list_all():
            self.catalog.refresh_availability(item.identifier)

    # -------------------------------------------------------------------------
    # Borrow / Return
    # -------------------------------------------------------------------------

    def borrow(self, user: User, item: MediaItem, borrow_date: Optional[date] = None) -> Loan:
        """Lend one copy of an item to a user.

        Args:
            user: Borrower
            item: Item to borrow
            borrow_date: Start of the loan (default: today)

        Returns:
            The new loan

        Raises:
            ValueError: If the item is not in the catalog
            ItemUnavailableError: If the item has no available copy
        """
        with self._lock:
            live = self.catalog.find_by_identifier(item.identifier)
            if live is None:
                raise ValueError(f"Item not found: {item.identifier}")
            if not live.available:
                raise ItemUnavailableError(f"Item is not available: {live.identifier}")

            copy = self.copies.checkout(live.identifier)
            if copy is None:
                self.catalog.refresh_availability(live.identifier)
                raise ItemUnavailableError(f"No available copy of {live.identifier}")

            loan = Loan(
                loan_id=generate_uuid(),
                user=user,
                item=live,
                borrow_date=borrow_date or self.clock(),
                copy_id=copy.copy_id,
            )
            self.catalog.refresh_availability(live.identifier)
            self._loans.append(loan)
            self._insert(loan)

        logger.info("Loan %s: %s borrowed %s", loan.loan_id, user.username, live.identifier)
        return loan

    def return_loan(self, loan_id: str, return_date: Optional[date] = None) -> bool:
        """Close an active loan and put its copy back.

        Args:
            loan_id: Loan ID
            return_date: Date of return (default: today)

        Returns:
            True if an active loan was closed
        """
        with self._lock:
            loan = self.find_by_id(loan_id)
            if loan is None or not loan.is_active:
                return False

            loan.close(return_date or self.clock())
            if loan.copy_id:
                self.copies.release(loan.copy_id)
            else:
                logger.warning("Returned loan %s held no copy", loan.loan_id)
            self.catalog.refresh_availability(loan.item.identifier)
            self._write(loan)

        logger.info("Loan %s returned on %s", loan.loan_id, loan.return_date)
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def find_by_id(self, loan_id: str) -> Optional[Loan]:
        """Get a loan by ID."""
        for loan in self._loans:
            if loan.loan_id == loan_id:
                return loan
        return None

    def active_loans_for_user(self, username: str) -> list[Loan]:
        """Open loans of one user."""
        return [l for l in self._loans if l.is_active and l.username == username]

    def all_active_loans(self) -> list[Loan]:
        """Every loan not yet returned."""
        return [l for l in self._loans if l.is_active]

    def overdue_loans(self, today: Optional[date] = None) -> list[Loan]:
        """Active loans past their due date."""
        today = today or self.clock()
        return [l for l in self._loans if l.is_overdue(today)]

    def overdue_loans_for_user(self, username: str, today: Optional[date] = None) -> list[Loan]:
        """Open loans of one user that are past due."""
        today = today or self.clock()
        return [l for l in self.active_loans_for_user(username) if l.is_overdue(today)]

    def loans_for_item(self, identifier: str) -> list[Loan]:
        """Loan history of an item, oldest first."""
        key = normalize_identifier(identifier)
        return [l for l in self._loans if l.item.key == key]

    def total_fine_due(self, today: Optional[date] = None) -> int:
        """Sum of fines over all overdue loans."""
        today = today or self.clock()
        return sum(l.fine(today) for l in self.overdue_loans(today))

    def list_all(self) -> list[Loan]:
        """All loans, open and closed, oldest first."""
        return list(self._loans)

    def __len__(self) -> int:
        return len(self._loans)
