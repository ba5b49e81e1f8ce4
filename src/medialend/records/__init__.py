"""Semicolon-separated record files.

Import and export live in :mod:`medialend.records.transfer`.
"""

from .codec import CatalogRecord, CopyRecord, LoanRecord, UserRecord

__all__ = [
    "CatalogRecord",
    "CopyRecord",
    "LoanRecord",
    "UserRecord",
]
