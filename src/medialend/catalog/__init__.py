"""Media catalog module.

Provides functionality for:
- Books and CDs with per-type borrowing periods and fines
- Case-insensitive lookup and search
- Availability derived from copies
"""

from .items import LendingPolicy, MediaItem, MediaType, POLICIES
from .manager import DuplicateItemError, MediaCatalog
from .models import CatalogEntry
from .schemas import MediaItemCreate, MediaItemResponse, SearchField

__all__ = [
    "LendingPolicy",
    "MediaItem",
    "MediaType",
    "POLICIES",
    "DuplicateItemError",
    "MediaCatalog",
    "CatalogEntry",
    "MediaItemCreate",
    "MediaItemResponse",
    "SearchField",
]
