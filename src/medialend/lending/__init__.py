"""Lending policy.

Provides functionality for:
- Borrowing with overdue and unpaid fine checks
- Returns that refuse while a fine is owed
- Completing a return once the fine is paid
- Loan reports with fines
"""

from .schemas import BorrowReceipt, LoanReport, LoanSummary
from .service import LendingService

__all__ = [
    "BorrowReceipt",
    "LoanReport",
    "LoanSummary",
    "LendingService",
]
