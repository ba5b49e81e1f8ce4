"""Tests for Loan and LoanLedger."""

from datetime import date, timedelta

import pytest

from medialend.catalog import MediaCatalog, MediaItem, MediaType
from medialend.copies import CopyEntry, CopyLedger
from medialend.loans import ItemUnavailableError, Loan, LoanEntry, LoanLedger
from medialend.users import User, UserDirectory

from conftest import START, add_item


class TestLoan:
    """Tests for due dates and fines."""

    def test_book_due_date(self, book: MediaItem, alice: User):
        loan = Loan(loan_id="L1", user=alice, item=book, borrow_date=START)
        assert loan.due_date == START + timedelta(days=28)

    def test_cd_due_date(self, cd: MediaItem, alice: User):
        loan = Loan(loan_id="L1", user=alice, item=cd, borrow_date=START)
        assert loan.due_date == START + timedelta(days=7)

    def test_not_overdue_on_due_date(self, book: MediaItem, alice: User):
        loan = Loan(loan_id="L1", user=alice, item=book, borrow_date=START)
        assert not loan.is_overdue(loan.due_date)
        assert loan.fine(loan.due_date) == 0

    def test_book_fine(self, book: MediaItem, alice: User):
        """40 days after borrowing a book is 12 days overdue, fine 120."""
        loan = Loan(loan_id="L1", user=alice, item=book, borrow_date=START)
        today = START + timedelta(days=40)
        assert loan.is_overdue(today)
        assert loan.overdue_days(today) == 12
        assert loan.fine(today) == 120

    def test_cd_fine(self, cd: MediaItem, alice: User):
        loan = Loan(loan_id="L1", user=alice, item=cd, borrow_date=START)
        assert loan.fine(START + timedelta(days=10)) == 60

    def test_closed_loan_has_no_fine(self, book: MediaItem, alice: User):
        loan = Loan(loan_id="L1", user=alice, item=book, borrow_date=START)
        loan.close(START + timedelta(days=40))

        assert not loan.is_active
        assert not loan.is_overdue(START + timedelta(days=50))
        assert loan.fine(START + timedelta(days=50)) == 0

    def test_close_twice(self, book: MediaItem, alice: User):
        loan = Loan(loan_id="L1", user=alice, item=book, borrow_date=START)
        loan.close(START)
        with pytest.raises(ValueError):
            loan.close(START)


class TestBorrow:
    """Tests for borrowing."""

    def test_borrow(self, loans: LoanLedger, book: MediaItem, alice: User, copies: CopyLedger):
        """Test a borrow takes the copy and makes a single-copy item unavailable."""
        loan = loans.borrow(alice, book)

        assert loan.is_active
        assert loan.borrow_date == START
        assert loan.copy_id == "B1-1"
        assert not copies.find_copy("B1-1").available
        assert not book.available
        assert loans.find_by_id(loan.loan_id) is loan

    def test_borrow_one_of_many(self, catalog, copies, loans: LoanLedger, alice: User):
        item = add_item(catalog, copies, "B2", "Emma", "Jane Austen", count=2)

        loans.borrow(alice, item)
        assert item.available
        assert copies.available_count("B2") == 1

    def test_borrow_unavailable(self, loans: LoanLedger, book: MediaItem, alice: User, bob: User):
        """Borrowing an unavailable item fails and creates no loan."""
        loans.borrow(alice, book)

        with pytest.raises(ItemUnavailableError):
            loans.borrow(bob, book)
        assert len(loans) == 1

    def test_borrow_unknown_item(self, loans: LoanLedger, alice: User):
        with pytest.raises(ValueError):
            loans.borrow(alice, MediaItem(identifier="Z9", title="Nothing", author="Nobody"))

    def test_borrow_item_without_copies(self, catalog: MediaCatalog, loans: LoanLedger, alice: User):
        catalog.save(MediaItem(identifier="B5", title="Emma", author="Jane Austen"))

        with pytest.raises(ItemUnavailableError):
            loans.borrow(alice, catalog.find_by_identifier("B5"))
        assert not catalog.find_by_identifier("B5").available
        assert len(loans) == 0


class TestReturn:
    """Tests for returning loans."""

    def test_return(self, loans: LoanLedger, book: MediaItem, alice: User, copies: CopyLedger):
        loan = loans.borrow(alice, book)

        assert loans.return_loan(loan.loan_id, START + timedelta(days=5))
        assert loan.return_date == START + timedelta(days=5)
        assert copies.find_copy("B1-1").available
        assert book.available

    def test_return_defaults_to_today(self, loans: LoanLedger, book: MediaItem, alice: User, clock):
        loan = loans.borrow(alice, book)
        clock.advance(3)

        loans.return_loan(loan.loan_id)
        assert loan.return_date == START + timedelta(days=3)

    def test_return_twice(self, loans: LoanLedger, book: MediaItem, alice: User):
        loan = loans.borrow(alice, book)
        assert loans.return_loan(loan.loan_id)
        assert not loans.return_loan(loan.loan_id)

    def test_return_unknown(self, loans: LoanLedger):
        assert not loans.return_loan("missing")


class TestPersistence:
    """Tests for loading loans and reconciling availability."""

    def reload(self, db, users=None):
        catalog = MediaCatalog(db)
        copies = CopyLedger(db, catalog)
        return catalog, copies, LoanLedger(db, catalog, copies, users)

    def test_loans_survive_reload(self, db, loans: LoanLedger, book: MediaItem, users, alice: User):
        loan = loans.borrow(alice, book)

        catalog, copies, reloaded = self.reload(db, users)
        found = reloaded.find_by_id(loan.loan_id)
        assert found is not None
        assert found.user.email == "alice@example.com"
        assert found.copy_id == "B1-1"
        assert found.is_active
        assert not catalog.find_by_identifier("B1").available

    def test_returned_loan_survives_reload(self, db, loans: LoanLedger, book: MediaItem, alice: User):
        loan = loans.borrow(alice, book)
        loans.return_loan(loan.loan_id, START + timedelta(days=2))

        catalog, _, reloaded = self.reload(db)
        assert reloaded.find_by_id(loan.loan_id).return_date == START + timedelta(days=2)
        assert catalog.find_by_identifier("B1").available

    def test_unknown_user_gets_placeholder(self, db, loans: LoanLedger, book: MediaItem):
        loans.borrow(User(username="dave"), book)

        _, _, reloaded = self.reload(db, UserDirectory())
        assert reloaded.list_all()[0].username == "dave"

    def test_reconcile_marks_held_copy_out(self, db, catalog, copies, book: MediaItem):
        """An active loan with no copy recorded takes one on load."""
        with db.get_session() as session:
            session.add(
                LoanEntry(
                    loan_id="L1",
                    username="alice",
                    identifier="B1",
                    borrow_date=START.isoformat(),
                    position=1,
                )
            )

        catalog, copies, reloaded = self.reload(db)
        assert reloaded.find_by_id("L1").copy_id == "B1-1"
        assert not copies.find_copy("B1-1").available
        assert not catalog.find_by_identifier("B1").available

    def test_reconcile_frees_copies_without_loans(self, db, catalog, copies, book: MediaItem):
        """A copy marked out with no active loan goes back on the shelf."""
        copies.set_available("B1-1", False)
        catalog.refresh_availability("B1")

        catalog, copies, _ = self.reload(db)
        assert copies.find_copy("B1-1").available
        assert catalog.find_by_identifier("B1").available

    def test_loans_for_unknown_items_skipped(self, db, loans: LoanLedger):
        with db.get_session() as session:
            session.add(
                LoanEntry(
                    loan_id="L9",
                    username="alice",
                    identifier="Z9",
                    borrow_date=START.isoformat(),
                    position=1,
                )
            )

        _, _, reloaded = self.reload(db)
        assert len(reloaded) == 0

    def test_unreadable_row_keeps_other_loans(
        self, db, loans: LoanLedger, book: MediaItem, alice: User
    ):
        """A loan row with a bad date is skipped; the rest still hold their copies."""
        loans.borrow(alice, book)
        with db.get_session() as session:
            session.add(
                LoanEntry(
                    loan_id="L9",
                    username="bob",
                    identifier="B1",
                    borrow_date="not-a-date",
                    position=99,
                )
            )

        catalog, copies, reloaded = self.reload(db)
        assert len(reloaded.all_active_loans()) == 1
        assert not copies.find_copy("B1-1").available
        assert not catalog.find_by_identifier("B1").available

    def test_unreadable_row_keeps_its_copy_out(self, db, catalog, copies, book: MediaItem):
        """The copy recorded on a skipped row is not put back on the shelf."""
        copies.add_copies("B1", 1, available=False)
        with db.get_session() as session:
            session.add(
                LoanEntry(
                    loan_id="L9",
                    username="bob",
                    identifier="B1",
                    borrow_date="not-a-date",
                    copy_id="B1-2",
                    position=1,
                )
            )

        catalog, copies, reloaded = self.reload(db)
        assert len(reloaded) == 0
        assert copies.find_copy("B1-1").available
        assert not copies.find_copy("B1-2").available
        assert catalog.find_by_identifier("B1").available


class TestQueries:
    """Tests for loan queries."""

    @pytest.fixture
    def lent(self, catalog, copies, loans: LoanLedger, book, cd, alice, bob):
        """Alice holds B1, bob holds C1, both borrowed on START."""
        return [loans.borrow(alice, book), loans.borrow(bob, cd)]

    def test_active_loans_for_user(self, loans: LoanLedger, lent):
        assert [l.item.identifier for l in loans.active_loans_for_user("alice")] == ["B1"]
        assert loans.active_loans_for_user("carol") == []

    def test_all_active_loans(self, loans: LoanLedger, lent):
        loans.return_loan(lent[1].loan_id)
        assert [l.item.identifier for l in loans.all_active_loans()] == ["B1"]

    def test_overdue_loans(self, loans: LoanLedger, lent):
        """After 10 days only the CD is overdue."""
        today = START + timedelta(days=10)
        overdue = loans.overdue_loans(today)
        assert [l.item.identifier for l in overdue] == ["C1"]
        assert loans.overdue_loans_for_user("alice", today) == []
        assert loans.total_fine_due(today) == 60

    def test_overdue_uses_clock(self, loans: LoanLedger, lent, clock):
        clock.advance(40)
        assert len(loans.overdue_loans()) == 2
        assert loans.total_fine_due() == 120 + 33 * 20

    def test_loans_for_item(self, loans: LoanLedger, lent, carol):
        loans.return_loan(lent[0].loan_id)
        loans.borrow(carol, lent[0].item)
        assert [l.username for l in loans.loans_for_item("b1")] == ["alice", "carol"]
