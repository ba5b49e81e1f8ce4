"""Command-line interface for medialend.

Built with Typer for commands and Rich for output.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .catalog.items import MediaType
from .catalog.schemas import MediaItemCreate, SearchField
from .config import get_config
from .db import get_db
from .library import Library

# Create the main app
app = typer.Typer(
    name="medialend",
    help="Lend books and CDs, track copies, loans and fines.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def get_library() -> Library:
    """Open the library at the configured database path.

    Each command is its own process, so nobody would be left to deliver an
    availability notification; waiting subscriptions are turned off.
    """
    config = get_config()
    return Library(db=get_db(str(config.db_path)), config=config, notify_waiting=False)


def login_or_exit(library: Library, username: str) -> None:
    if library.login(username) is None:
        print_error(f"Unknown user: {username}")
        raise typer.Exit(1)


def format_item_table(items: list, title: str = "Catalog") -> Table:
    """Create a rich table for displaying catalog items."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Type")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author/Artist", style="green", max_width=25)
    table.add_column("Available", justify="center")

    for item in items:
        table.add_row(
            item.identifier,
            item.media_type.label,
            item.title,
            item.author,
            "[green]yes[/green]" if item.available else "[red]no[/red]",
        )

    return table


def format_loan_table(loans: list, title: str = "Loans") -> Table:
    """Create a rich table for loan summaries."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Loan ID", style="dim")
    table.add_column("User")
    table.add_column("Title", style="cyan", max_width=30)
    table.add_column("Due", justify="center")
    table.add_column("Overdue", justify="right")
    table.add_column("Fine", justify="right")

    for row in loans:
        table.add_row(*row)

    return table


def _add_item(title: str, author: str, identifier: str, media_type: MediaType, copies: int) -> None:
    try:
        data = MediaItemCreate(title=title, author=author, identifier=identifier, media_type=media_type)
    except ValidationError as e:
        print_error(f"Invalid {media_type.label.lower()}: {e.errors()[0]['msg']}")
        raise typer.Exit(1)

    library = get_library()
    try:
        item = library.add_item(data, copies)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if item is None:
        print_error(f"Could not save {identifier}")
        raise typer.Exit(1)
    print_success(f"Added {media_type.label}: {item.title} ({copies} copies)")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Lend books and CDs, track copies, loans and fines."""
    level = "DEBUG" if verbose else get_config().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


# ============================================================================
# Catalog Commands
# ============================================================================


@app.command("add-book")
def add_book(
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Argument(..., help="Author"),
    isbn: str = typer.Argument(..., help="ISBN"),
    copies: int = typer.Option(1, "--copies", "-c", help="Number of copies"),
) -> None:
    """Add a book to the catalog."""
    _add_item(title, author, isbn, MediaType.BOOK, copies)


@app.command("add-cd")
def add_cd(
    title: str = typer.Argument(..., help="CD title"),
    artist: str = typer.Argument(..., help="Artist"),
    identifier: str = typer.Argument(..., help="CD identifier"),
    copies: int = typer.Option(1, "--copies", "-c", help="Number of copies"),
) -> None:
    """Add a CD to the catalog."""
    _add_item(title, artist, identifier, MediaType.CD, copies)


@app.command("add-copies")
def add_copies(
    identifier: str = typer.Argument(..., help="Item identifier"),
    count: int = typer.Argument(..., help="Number of copies to add"),
) -> None:
    """Add copies of an existing item."""
    if count <= 0:
        print_error("Number of copies must be positive")
        raise typer.Exit(1)

    library = get_library()
    if library.catalog.find_by_identifier(identifier) is None:
        print_error(f"Item not found: {identifier}")
        raise typer.Exit(1)

    added = library.copies.add_copies(identifier, count)
    if not added:
        print_error(f"Could not add copies of {identifier}")
        raise typer.Exit(1)
    print_success(f"Added copies {', '.join(c.copy_id for c in added)}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search text"),
    by: SearchField = typer.Option(SearchField.TITLE, "--by", "-b", help="Field to search"),
) -> None:
    """Search the catalog by title, author or identifier."""
    library = get_library()
    items = library.catalog.search(query, by)

    if not items:
        console.print(f"[dim]No items found matching '{query}'[/dim]")
        return

    console.print(format_item_table(items, title=f"Search: {query}"))


@app.command()
def available() -> None:
    """List items with at least one copy on the shelf."""
    library = get_library()
    items = library.lending.available_items()

    if not items:
        console.print("[dim]No items available[/dim]")
        return

    console.print(format_item_table(items, title="Available Items"))


@app.command("copies")
def list_copies(
    identifier: str = typer.Argument(..., help="Item identifier"),
) -> None:
    """Show the copies of an item."""
    library = get_library()
    item = library.lending.find_item(identifier)
    if item is None:
        print_error(f"Item not found: {identifier}")
        raise typer.Exit(1)

    table = Table(title=f"Copies of {item.title}", show_header=True, header_style="bold magenta")
    table.add_column("Copy ID")
    table.add_column("Available", justify="center")
    for copy in library.lending.copies_for(identifier):
        table.add_row(copy.copy_id, "[green]yes[/green]" if copy.available else "[red]no[/red]")
    console.print(table)


# ============================================================================
# Lending Commands
# ============================================================================


@app.command()
def borrow(
    identifier: str = typer.Argument(..., help="Item identifier"),
    user: str = typer.Option(..., "--user", "-u", help="Borrowing user"),
) -> None:
    """Borrow an item."""
    library = get_library()
    login_or_exit(library, user)

    if not library.lending.borrow_media_item(identifier):
        print_error(library.lending.last_message)
        raise typer.Exit(1)

    receipt = library.lending.last_loan
    print_success(f"Borrowed {receipt.title}")
    console.print(f"Loan ID: {receipt.loan_id}")
    console.print(f"Due: {receipt.due_date.isoformat()}")


@app.command("return")
def return_cmd(
    loan_id: str = typer.Argument(..., help="Loan ID to return"),
    user: str = typer.Option(..., "--user", "-u", help="Returning user"),
) -> None:
    """Return a loan with no fine owed."""
    library = get_library()
    login_or_exit(library, user)

    if not library.lending.return_item(loan_id):
        print_error(library.lending.last_message)
        raise typer.Exit(1)
    print_success(library.lending.last_message)


@app.command()
def pay(
    loan_id: str = typer.Argument(..., help="Loan ID to pay and return"),
    user: str = typer.Option(..., "--user", "-u", help="Paying user"),
) -> None:
    """Pay the fine on a loan and return it."""
    library = get_library()
    login_or_exit(library, user)

    if not library.lending.complete_return(loan_id):
        print_error(library.lending.last_message)
        raise typer.Exit(1)
    print_success(library.lending.last_message)


@app.command()
def loans(
    user: str = typer.Option(..., "--user", "-u", help="User whose loans to show"),
) -> None:
    """Show a user's active loans and fines."""
    library = get_library()
    login_or_exit(library, user)

    report = library.lending.view_loans()
    if not report.loans:
        console.print("[dim]No active loans[/dim]")
        return

    rows = [
        (
            s.loan_id,
            report.username,
            s.title,
            s.due_date.isoformat(),
            str(s.overdue_days),
            str(s.fine),
        )
        for s in report.loans
    ]
    console.print(format_loan_table(rows, title=f"Loans for {report.username}"))
    if report.total_fine > 0:
        print_warning(f"Total fine owed: {report.total_fine}")


@app.command()
def report(
    user: str = typer.Option(..., "--user", "-u", help="User to report on"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to a file"),
) -> None:
    """Print a text loan report for a user."""
    library = get_library()
    login_or_exit(library, user)

    text = library.lending.view_loans().to_text()
    if output:
        try:
            output.write_text(text, encoding="utf-8")
        except OSError as e:
            print_error(f"Could not write report: {e}")
            raise typer.Exit(1)
        print_success(f"Report written to {output}")
        return

    console.print(text, markup=False, highlight=False)


# ============================================================================
# Librarian Commands
# ============================================================================


@app.command()
def overdue(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Only this user's loans"),
) -> None:
    """List overdue loans and the total fine due."""
    library = get_library()
    today = library.clock()

    if user:
        found = library.loans.overdue_loans_for_user(user, today)
    else:
        found = library.loans.overdue_loans(today)

    if not found:
        console.print("[dim]No overdue loans[/dim]")
        return

    rows = [
        (
            loan.loan_id,
            loan.username,
            loan.item.title,
            loan.due_date.isoformat(),
            str(loan.overdue_days(today)),
            str(loan.fine(today)),
        )
        for loan in found
    ]
    console.print(format_loan_table(rows, title="Overdue Loans"))
    console.print(f"Total fine due: {sum(loan.fine(today) for loan in found)}")


@app.command()
def remind() -> None:
    """Email every user with overdue loans."""
    library = get_library()
    if library.mailer is None:
        print_warning("Email is not configured; users will be skipped")

    summary = library.reminders.send_reminders()
    print_success(f"Reminders sent: {summary.sent_count}")
    if summary.skipped:
        console.print(f"[dim]Skipped: {', '.join(summary.skipped)}[/dim]")


# ============================================================================
# Import / Export Commands
# ============================================================================


@app.command()
def export(
    directory: Path = typer.Argument(..., help="Directory to write record files to"),
) -> None:
    """Export the catalog, copies and loans as text records."""
    library = get_library()
    result = library.export_to(directory)

    if not result.success:
        print_error("; ".join(result.errors))
        raise typer.Exit(1)
    print_success(
        f"Exported {result.items} items, {result.copies} copies, {result.loans} loans to {directory}"
    )


@app.command("import")
def import_cmd(
    directory: Path = typer.Argument(..., help="Directory holding record files"),
) -> None:
    """Import text records into the library."""
    library = get_library()
    result = library.import_from(directory)

    if not result.success:
        print_error("; ".join(result.errors))
        raise typer.Exit(1)
    print_success(f"Imported {result.items} items, {result.copies} copies, {result.loans} loans")
    if result.skipped:
        print_warning(f"Skipped {result.skipped} records")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"medialend version {__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
