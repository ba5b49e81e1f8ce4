"""SQLAlchemy model for the media catalog."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base


class CatalogEntry(Base):
    """Catalog row - one per book or CD."""

    __tablename__ = "catalog_items"

    # Lower-cased identifier keeps books and CDs unique case-insensitively
    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    identifier: Mapped[str] = mapped_column(String(200), nullable=False)
    media_type: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    available: Mapped[bool] = mapped_column(Boolean, default=True)

    # Insertion order for listings
    position: Mapped[int] = mapped_column(default=0, index=True)

    def __repr__(self) -> str:
        return f"<CatalogEntry(identifier={self.identifier}, type={self.media_type})>"
