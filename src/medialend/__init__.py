"""medialend - lending catalog for books and CDs.

Tracks catalog items, their physical copies, loans and overdue fines.
"""

__version__ = "0.1.0"
