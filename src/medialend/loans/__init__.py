"""Loan journal.

Provides functionality for:
- Borrowing and returning copies
- Due dates and overdue fines
- Active and overdue loan queries
"""

from .ledger import ItemUnavailableError, Loan, LoanLedger
from .models import LoanEntry

__all__ = [
    "ItemUnavailableError",
    "Loan",
    "LoanLedger",
    "LoanEntry",
]
