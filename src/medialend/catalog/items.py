"""Media item types and their lending policy."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class LendingPolicy:
    """Borrowing rules shared by every item of one media type."""

    borrowing_period_days: int
    fine_per_day: int


class MediaType(str, Enum):
    """Kind of media item."""

    BOOK = "book"
    CD = "cd"

    @property
    def policy(self) -> LendingPolicy:
        """Lending policy for this media type."""
        return POLICIES[self]

    @property
    def label(self) -> str:
        """Display name."""
        return "Book" if self is MediaType.BOOK else "CD"


POLICIES: dict[MediaType, LendingPolicy] = {
    MediaType.BOOK: LendingPolicy(borrowing_period_days=28, fine_per_day=10),
    MediaType.CD: LendingPolicy(borrowing_period_days=7, fine_per_day=20),
}


@dataclass
class MediaItem:
    """A catalog entry: one title that may have many physical copies."""

    identifier: str
    title: str
    author: str
    media_type: MediaType = MediaType.BOOK
    available: bool = True

    @property
    def borrowing_period_days(self) -> int:
        return self.media_type.policy.borrowing_period_days

    @property
    def fine_per_day(self) -> int:
        return self.media_type.policy.fine_per_day

    @property
    def key(self) -> str:
        """Case-insensitive lookup key for the identifier."""
        return normalize_identifier(self.identifier)

    def __str__(self) -> str:
        state = "Available" if self.available else "Borrowed"
        return f"{self.media_type.label}: {self.title} by {self.author} | ID: {self.identifier} | {state}"


def normalize_identifier(identifier: str) -> str:
    """Normalize an identifier for comparisons."""
    return identifier.strip().lower()
