"""Overdue reminders for borrowers."""

import logging
from datetime import date
from typing import Callable, Optional

from ..loans.ledger import Loan, LoanLedger
from ..notify.mailer import Mailer
from ..users.directory import User, UserDirectory
from .schemas import OverdueUser, ReminderSummary

logger = logging.getLogger(__name__)


class ReminderService:
    """Finds users with overdue loans and emails them a reminder."""

    SUBJECT = "Overdue Library Items Reminder"

    def __init__(
        self,
        loans: LoanLedger,
        users: UserDirectory,
        mailer: Optional[Mailer] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.loans = loans
        self.users = users
        self.mailer = mailer
        self.clock = clock

    def overdue_by_user(self, today: Optional[date] = None) -> dict[str, list[Loan]]:
        """Overdue loans grouped by username, in loan order."""
        grouped: dict[str, list[Loan]] = {}
        for loan in self.loans.overdue_loans(today or self.clock()):
            grouped.setdefault(loan.username, []).append(loan)
        return grouped

    def overdue_users(self, today: Optional[date] = None) -> list[OverdueUser]:
        today = today or self.clock()
        return [
            OverdueUser(
                username=username,
                overdue_count=len(loans),
                total_fine=sum(l.fine(today) for l in loans),
            )
            for username, loans in self.overdue_by_user(today).items()
        ]

    def build_reminder(self, user: User, loans: list[Loan], today: date) -> str:
        """Write the reminder email for one user."""
        rule = "=" * 50
        lines = [
            f"Dear {user.username},",
            "",
            "This is a friendly reminder that you have overdue items from our library.",
            "",
            rule,
            "OVERDUE ITEMS:",
            rule,
            "",
        ]
        for loan in loans:
            lines += [
                f"• Title: {loan.item.title}",
                f"  Author: {loan.item.author}",
                f"  Due Date: {loan.due_date.isoformat()}",
                f"  Days Overdue: {loan.overdue_days(today)}",
                f"  Fine: {loan.fine(today)} ({loan.item.fine_per_day} per day)",
                "",
            ]
        lines += [
            rule,
            f"TOTAL FINE: {sum(l.fine(today) for l in loans)}",
            rule,
            "",
            "Please return the items as soon as possible to avoid additional fines.",
            "",
            "Thank you for your cooperation.",
            "",
            "Best regards,",
            "Library Management System",
        ]
        return "\n".join(lines)

    def send_reminders(self, today: Optional[date] = None) -> ReminderSummary:
        """Email every user with overdue loans.

        Users without an email address, or whose mail could not be sent,
        are reported as skipped.
        """
        today = today or self.clock()
        summary = ReminderSummary()

        for username, loans in self.overdue_by_user(today).items():
            user = self.users.find_user_by_username(username) or loans[0].user
            if not user.has_email or self.mailer is None:
                logger.info("User %s has no email or no mailer is set, skipping", username)
                summary.skipped.append(username)
                continue

            body = self.build_reminder(user, loans, today)
            if self.mailer.send(user.email, self.SUBJECT, body):
                summary.sent.append(username)
            else:
                summary.skipped.append(username)

        logger.info("Reminders sent: %d, skipped: %d", summary.sent_count, summary.skipped_count)
        return summary
