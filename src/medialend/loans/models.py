"""SQLAlchemy model for the loan journal."""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid


class LoanEntry(Base):
    """Loan row - one per borrow, closed by setting return_date."""

    __tablename__ = "loans"

    loan_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    username: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    identifier: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    # Copy held by the loan; empty for loans imported without one
    copy_id: Mapped[Optional[str]] = mapped_column(String(220))

    # Dates
    borrow_date: Mapped[str] = mapped_column(String(10), nullable=False)  # ISO date
    return_date: Mapped[Optional[str]] = mapped_column(String(10), index=True)  # ISO date

    # Insertion order for listings
    position: Mapped[int] = mapped_column(default=0, index=True)

    def __repr__(self) -> str:
        return f"<LoanEntry(loan_id={self.loan_id}, identifier={self.identifier}, returned={self.return_date})>"
