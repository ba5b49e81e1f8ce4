"""Pydantic schemas for catalog input and output."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from .items import MediaItem, MediaType

FIELD_SEPARATOR = ";"


class SearchField(str, Enum):
    """Catalog field a search runs against."""

    TITLE = "title"
    AUTHOR = "author"
    IDENTIFIER = "identifier"


class MediaItemCreate(BaseModel):
    """Schema for adding an item to the catalog."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    identifier: str = Field(..., min_length=1, max_length=200)
    media_type: MediaType = MediaType.BOOK

    @field_validator("title", "author", "identifier")
    @classmethod
    def no_separator(cls, v: str) -> str:
        """Strip whitespace and reject the record field separator."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        if FIELD_SEPARATOR in v:
            raise ValueError(f"must not contain '{FIELD_SEPARATOR}'")
        return v

    def to_item(self) -> MediaItem:
        """Build a new, available catalog item."""
        return MediaItem(
            identifier=self.identifier,
            title=self.title,
            author=self.author,
            media_type=self.media_type,
        )


class MediaItemResponse(BaseModel):
    """Schema for item responses."""

    identifier: str
    title: str
    author: str
    media_type: MediaType
    available: bool
    borrowing_period_days: int
    fine_per_day: int

    model_config = {"from_attributes": True}
