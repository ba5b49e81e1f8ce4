"""Lending service: borrow and return policy for the logged-in user."""

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Optional

from ..catalog.items import MediaItem
from ..catalog.manager import MediaCatalog
from ..copies.ledger import CopyLedger, MediaCopy
from ..loans.ledger import Loan, LoanLedger
from ..notify.hub import NotificationHub
from ..notify.mailer import EmailNotifier, Mailer
from ..users.directory import User
from .schemas import BorrowReceipt, LoanReport, LoanSummary

logger = logging.getLogger(__name__)


class LendingService:
    """Decides whether a borrow or return is allowed and carries it out.

    Every operation returns a boolean and leaves a human-readable status in
    ``last_message``. Refusals are ordinary outcomes, not exceptions.
    """

    def __init__(
        self,
        catalog: MediaCatalog,
        copies: CopyLedger,
        loans: LoanLedger,
        hub: Optional[NotificationHub] = None,
        mailer: Optional[Mailer] = None,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize the lending service.

        Args:
            catalog: Media catalog
            copies: Copy ledger
            loans: Loan ledger
            hub: Where availability is published after a return
            mailer: Used to email users waiting for an item
            clock: Returns today's date
        """
        self.catalog = catalog
        self.copies = copies
        self.loans = loans
        self.hub = hub
        self.mailer = mailer
        self.clock = clock
        self.current_user: Optional[User] = None
        self.last_message = ""
        self.last_loan: Optional[BorrowReceipt] = None

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def login(self, user: User) -> None:
        """Bind the user the following operations act for."""
        self.current_user = user

    def logout(self) -> None:
        self.current_user = None

    def _refuse(self, message: str) -> bool:
        self.last_message = message
        logger.info("Refused: %s", message)
        return False

    def _succeed(self, message: str) -> bool:
        self.last_message = message
        return True

    # -------------------------------------------------------------------------
    # Borrow / Return
    # -------------------------------------------------------------------------

    def borrow_media_item(self, identifier: str) -> bool:
        """Borrow one copy of an item for the current user.

        Refused when the user is not logged in, the item is unknown or
        unavailable, or the user has an overdue loan or any unpaid fine.
        On success ``last_loan`` holds the loan id and due date.
        """
        self.last_loan = None
        user = self.current_user
        if user is None:
            return self._refuse("User not logged in.")
        if not identifier or not identifier.strip():
            return self._refuse("Identifier is empty.")

        item = self.catalog.find_by_identifier(identifier)
        if item is None:
            return self._refuse(f"Item with identifier '{identifier}' not found.")

        if not item.available or self.copies.available_count(item.identifier) == 0:
            message = f"{item.media_type.label} is currently borrowed."
            if self._wait_for(item, user):
                message += " We will notify you by email when it becomes available."
            return self._refuse(message)

        today = self.clock()
        active = self.loans.active_loans_for_user(user.username)
        has_overdue = any(loan.is_overdue(today) for loan in active)
        total_fine = sum(loan.fine(today) for loan in active)
        if has_overdue or total_fine > 0:
            return self._refuse(
                f"Cannot borrow: you have overdue items or unpaid fines ({total_fine})."
            )

        loan = self.loans.borrow(user, item, today)
        self.last_loan = BorrowReceipt.from_loan(loan)
        return self._succeed(
            f"{item.media_type.label} borrowed successfully! "
            f"Loan ID: {loan.loan_id}. Due date: {loan.due_date.isoformat()}."
        )

    def return_item(self, loan_id: str) -> bool:
        """Return a loan of the current user if no fine is owed on it."""
        if self.current_user is None:
            return self._refuse("User not logged in.")

        loan = self.loans.find_by_id(loan_id)
        if loan is None or not loan.is_active:
            return self._refuse("Invalid or already returned loan ID.")
        if loan.username != self.current_user.username:
            return self._refuse("This loan does not belong to you.")

        today = self.clock()
        fine = loan.fine(today)
        if fine > 0:
            return self._refuse(f"You have an overdue fine: {fine}. Pay it to complete the return.")

        self._close(loan, today)
        return self._succeed("Item returned on time. Thank you!")

    def complete_return(self, loan_id: str) -> bool:
        """Return a loan after its fine has been paid, whatever the amount."""
        if self.current_user is None:
            return self._refuse("User not logged in.")

        loan = self.loans.find_by_id(loan_id)
        if loan is None or not loan.is_active:
            return self._refuse("Invalid or already returned loan ID.")

        today = self.clock()
        fine = loan.fine(today)
        self._close(loan, today)
        return self._succeed(f"Fine of {fine} paid. Item returned successfully!")

    def _close(self, loan: Loan, today: date) -> None:
        self.loans.return_loan(loan.loan_id, today)
        if self.hub is not None and loan.item.available:
            self.hub.publish_available(loan.item.identifier)

    def _wait_for(self, item: MediaItem, user: User) -> bool:
        """Subscribe the user to the item's next availability."""
        if self.hub is None or self.mailer is None or not user.has_email:
            return False
        self.hub.subscribe(item.identifier, EmailNotifier(user, self.mailer, self.catalog))
        return True

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def view_loans(self) -> Optional[LoanReport]:
        """Active loans of the current user with fines as of today."""
        if self.current_user is None:
            self._refuse("Not logged in.")
            return None

        today = self.clock()
        summaries = [
            LoanSummary.from_loan(loan, today)
            for loan in self.loans.active_loans_for_user(self.current_user.username)
        ]
        report = LoanReport(
            username=self.current_user.username,
            report_date=today,
            loans=summaries,
            total_fine=sum(s.fine for s in summaries),
        )
        self._succeed(
            f"{len(summaries)} active loan(s)" if summaries else "You have no active loans."
        )
        return report

    def available_items(self) -> list[MediaItem]:
        """Catalog items with at least one copy on the shelf."""
        return [
            item
            for item in self.catalog.list_all()
            if item.available and self.copies.available_count(item.identifier) > 0
        ]

    def find_item(self, identifier: str) -> Optional[MediaItem]:
        item = self.catalog.find_by_identifier(identifier)
        return replace(item) if item else None

    def copies_for(self, identifier: str) -> list[MediaCopy]:
        return self.copies.copies_for(identifier)
