"""SQLAlchemy model for physical media copies."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base


class CopyEntry(Base):
    """Copy row - one per physical copy of a catalog item."""

    __tablename__ = "media_copies"

    copy_id: Mapped[str] = mapped_column(String(220), primary_key=True)
    identifier: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    available: Mapped[bool] = mapped_column(Boolean, default=True)

    # Insertion order for listings
    position: Mapped[int] = mapped_column(default=0, index=True)

    def __repr__(self) -> str:
        return f"<CopyEntry(copy_id={self.copy_id}, available={self.available})>"
