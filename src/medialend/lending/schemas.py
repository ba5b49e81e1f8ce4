"""Pydantic schemas for lending results and reports."""

from datetime import date
from typing import Optional

from pydantic import BaseModel

from ..catalog.items import MediaType
from ..loans.ledger import Loan


class BorrowReceipt(BaseModel):
    """What a borrower is told after a successful borrow."""

    loan_id: str
    copy_id: Optional[str]
    identifier: str
    title: str
    media_type: MediaType
    due_date: date
    borrowing_period_days: int
    fine_per_day: int

    @classmethod
    def from_loan(cls, loan: Loan) -> "BorrowReceipt":
        return cls(
            loan_id=loan.loan_id,
            copy_id=loan.copy_id,
            identifier=loan.item.identifier,
            title=loan.item.title,
            media_type=loan.item.media_type,
            due_date=loan.due_date,
            borrowing_period_days=loan.item.borrowing_period_days,
            fine_per_day=loan.item.fine_per_day,
        )


class LoanSummary(BaseModel):
    """One active loan with its fine as of the report date."""

    loan_id: str
    identifier: str
    title: str
    author: str
    media_type: MediaType
    borrow_date: date
    due_date: date
    is_overdue: bool
    overdue_days: int
    fine: int

    @classmethod
    def from_loan(cls, loan: Loan, today: date) -> "LoanSummary":
        return cls(
            loan_id=loan.loan_id,
            identifier=loan.item.identifier,
            title=loan.item.title,
            author=loan.item.author,
            media_type=loan.item.media_type,
            borrow_date=loan.borrow_date,
            due_date=loan.due_date,
            is_overdue=loan.is_overdue(today),
            overdue_days=loan.overdue_days(today),
            fine=loan.fine(today),
        )


class LoanReport(BaseModel):
    """A user's active loans and what they owe."""

    username: str
    report_date: date
    loans: list[LoanSummary]
    total_fine: int

    @property
    def book_loans(self) -> list[LoanSummary]:
        return [l for l in self.loans if l.media_type == MediaType.BOOK]

    @property
    def cd_loans(self) -> list[LoanSummary]:
        return [l for l in self.loans if l.media_type == MediaType.CD]

    def to_text(self) -> str:
        """Render the report as plain text."""
        rule = "=" * 50
        thin = "-" * 50
        lines = [
            rule,
            "        LIBRARY LOAN REPORT",
            rule,
            f"User: {self.username}",
            f"Report Date: {self.report_date.isoformat()}",
            rule,
            "",
        ]

        if not self.loans:
            lines.append("You have no active loans.")
            return "\n".join(lines) + "\n"

        for heading, creator, loans in (
            ("BOOK LOANS:", "Author", self.book_loans),
            ("CD LOANS:", "Artist", self.cd_loans),
        ):
            if not loans:
                continue
            lines += [heading, thin]
            for loan in loans:
                status = " (OVERDUE)" if loan.is_overdue else ""
                lines += [
                    f"• {loan.title}",
                    f"  {creator}: {loan.author}",
                    f"  Due Date: {loan.due_date.isoformat()}{status}",
                    f"  Loan ID: {loan.loan_id}",
                    f"  Fine: {loan.fine}",
                    "",
                ]
            lines += [thin, ""]

        if self.total_fine > 0:
            lines += [rule, f"TOTAL FINE OWED: {self.total_fine}", rule]

        return "\n".join(lines) + "\n"
