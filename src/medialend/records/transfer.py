"""Import and export of the ledgers as semicolon-separated text files.

File names follow the original layout: ``books.txt``, ``CD.txt``,
``media_copies.txt`` and ``loans.txt``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..catalog.items import MediaType, normalize_identifier
from ..catalog.manager import MediaCatalog
from ..catalog.models import CatalogEntry
from ..copies.ledger import CopyLedger
from ..copies.models import CopyEntry
from ..db.sqlite import Database
from ..loans.ledger import LoanLedger
from ..loans.models import LoanEntry
from .codec import CatalogRecord, CopyRecord, LoanRecord

logger = logging.getLogger(__name__)

BOOKS_FILE = "books.txt"
CDS_FILE = "CD.txt"
COPIES_FILE = "media_copies.txt"
LOANS_FILE = "loans.txt"

CATALOG_FILES = {MediaType.BOOK: BOOKS_FILE, MediaType.CD: CDS_FILE}

R = TypeVar("R")


@dataclass
class TransferResult:
    """Result of an import or export."""

    success: bool
    directory: Optional[Path] = None
    items: int = 0
    copies: int = 0
    loans: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def read_records(path: Path, parse: Callable[[str], R], result: TransferResult) -> Iterator[R]:
    """Yield the parsed records of a file, counting lines that cannot be read."""
    if not path.exists():
        return
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                yield parse(line)
            except ValueError as e:
                logger.warning("Skipping %s line %d: %s", path.name, line_no, e)
                result.skipped += 1


def write_lines(path: Path, lines: list[str]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")


def export_library(
    catalog: MediaCatalog,
    copies: CopyLedger,
    loans: LoanLedger,
    directory: Path,
) -> TransferResult:
    """Write the catalog, copies and loans as record files.

    Args:
        catalog: Media catalog
        copies: Copy ledger
        loans: Loan ledger
        directory: Target directory, created if missing

    Returns:
        TransferResult with counts written
    """
    result = TransferResult(success=True, directory=directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)

        for media_type, file_name in CATALOG_FILES.items():
            items = catalog.list_by_type(media_type)
            write_lines(
                directory / file_name,
                [
                    CatalogRecord(
                        title=i.title,
                        author=i.author,
                        identifier=i.identifier,
                        available=i.available,
                    ).to_line()
                    for i in items
                ],
            )
            result.items += len(items)

        all_copies = copies.list_all()
        write_lines(
            directory / COPIES_FILE,
            [
                CopyRecord(copy_id=c.copy_id, identifier=c.identifier, available=c.available).to_line()
                for c in all_copies
            ],
        )
        result.copies = len(all_copies)

        all_loans = loans.list_all()
        write_lines(
            directory / LOANS_FILE,
            [
                LoanRecord(
                    loan_id=l.loan_id,
                    username=l.username,
                    identifier=l.item.identifier,
                    borrow_date=l.borrow_date,
                    return_date=l.return_date,
                ).to_line()
                for l in all_loans
            ],
        )
        result.loans = len(all_loans)
    except OSError as e:
        logger.error("Error exporting to %s: %s", directory, e)
        result.success = False
        result.errors.append(str(e))

    return result


def import_library(db: Database, directory: Path) -> TransferResult:
    """Load record files into the database.

    Existing identifiers, copy ids and loan ids are kept and the incoming
    duplicates skipped. Availability is reconciled when the ledgers are
    next loaded.

    Args:
        db: Database instance
        directory: Directory holding the record files

    Returns:
        TransferResult with counts imported
    """
    result = TransferResult(success=True, directory=directory)
    if not directory.is_dir():
        result.success = False
        result.errors.append(f"Not a directory: {directory}")
        return result

    try:
        with db.get_session() as session:
            known_items = {
                key: identifier
                for key, identifier in session.execute(
                    select(CatalogEntry.key, CatalogEntry.identifier)
                ).all()
            }
            known_copies = set(session.execute(select(CopyEntry.copy_id)).scalars().all())
            known_loans = set(session.execute(select(LoanEntry.loan_id)).scalars().all())

            position = (session.execute(select(func.max(CatalogEntry.position))).scalar() or 0) + 1
            for media_type, file_name in CATALOG_FILES.items():
                for record in read_records(directory / file_name, CatalogRecord.from_line, result):
                    key = normalize_identifier(record.identifier)
                    if key in known_items:
                        logger.warning("Skipping duplicate identifier %s", record.identifier)
                        result.skipped += 1
                        continue
                    session.add(
                        CatalogEntry(
                            key=key,
                            identifier=record.identifier,
                            media_type=media_type.value,
                            title=record.title,
                            author=record.author,
                            available=record.available,
                            position=position,
                        )
                    )
                    known_items[key] = record.identifier
                    position += 1
                    result.items += 1

            position = (session.execute(select(func.max(CopyEntry.position))).scalar() or 0) + 1
            for record in read_records(directory / COPIES_FILE, CopyRecord.from_line, result):
                key = normalize_identifier(record.identifier)
                if record.copy_id in known_copies or key not in known_items:
                    result.skipped += 1
                    continue
                session.add(
                    CopyEntry(
                        copy_id=record.copy_id,
                        identifier=known_items[key],
                        available=record.available,
                        position=position,
                    )
                )
                known_copies.add(record.copy_id)
                position += 1
                result.copies += 1

            position = (session.execute(select(func.max(LoanEntry.position))).scalar() or 0) + 1
            for record in read_records(directory / LOANS_FILE, LoanRecord.from_line, result):
                key = normalize_identifier(record.identifier)
                if record.loan_id in known_loans or key not in known_items:
                    result.skipped += 1
                    continue
                session.add(
                    LoanEntry(
                        loan_id=record.loan_id,
                        username=record.username,
                        identifier=known_items[key],
                        borrow_date=record.borrow_date.isoformat(),
                        return_date=record.return_date.isoformat() if record.return_date else None,
                        position=position,
                    )
                )
                known_loans.add(record.loan_id)
                position += 1
                result.loans += 1
    except (OSError, SQLAlchemyError) as e:
        logger.error("Error importing from %s: %s", directory, e)
        result.success = False
        result.errors.append(str(e))

    return result
