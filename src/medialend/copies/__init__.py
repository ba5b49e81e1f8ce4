"""Physical copy tracking."""

from .ledger import CopyLedger, MediaCopy, make_copy_id, parse_sequence
from .models import CopyEntry

__all__ = [
    "CopyLedger",
    "MediaCopy",
    "make_copy_id",
    "parse_sequence",
    "CopyEntry",
]
