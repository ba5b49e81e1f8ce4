"""Tests for ReminderService."""

from datetime import timedelta

import pytest

from medialend.loans import LoanLedger
from medialend.reminders import ReminderService

from conftest import START, RecordingMailer


@pytest.fixture
def overdue(loans: LoanLedger, book, cd, alice, bob, clock):
    """Alice holds B1 and bob holds C1; 40 days later both are overdue."""
    loans.borrow(alice, book)
    loans.borrow(bob, cd)
    clock.advance(40)


class TestOverdueUsers:
    """Tests for finding users with overdue loans."""

    def test_nothing_overdue(self, reminders: ReminderService, loans, book, alice):
        loans.borrow(alice, book)
        assert reminders.overdue_by_user() == {}
        assert reminders.overdue_users() == []

    def test_grouped_by_user(self, reminders: ReminderService, overdue):
        grouped = reminders.overdue_by_user()
        assert list(grouped) == ["alice", "bob"]
        assert grouped["alice"][0].item.identifier == "B1"

    def test_totals(self, reminders: ReminderService, overdue):
        by_name = {u.username: u for u in reminders.overdue_users()}
        assert by_name["alice"].overdue_count == 1
        assert by_name["alice"].total_fine == 120
        assert by_name["bob"].total_fine == 33 * 20

    def test_explicit_date(self, reminders: ReminderService, loans, book, cd, alice):
        loans.borrow(alice, book)
        loans.borrow(alice, cd)
        users = reminders.overdue_users(START + timedelta(days=10))
        assert len(users) == 1
        assert users[0].overdue_count == 1
        assert users[0].total_fine == 60


class TestSendReminders:
    """Tests for sending reminder emails."""

    def test_reminder_text(self, reminders: ReminderService, overdue, alice, clock):
        loans = reminders.overdue_by_user()["alice"]
        text = reminders.build_reminder(alice, loans, clock())

        assert text.startswith("Dear alice,")
        assert "Title: Dune" in text
        assert "Days Overdue: 12" in text
        assert "Fine: 120 (10 per day)" in text
        assert "TOTAL FINE: 120" in text

    def test_send(self, reminders: ReminderService, mailer: RecordingMailer, overdue):
        """Users with email get a reminder; users without are skipped."""
        summary = reminders.send_reminders()

        assert summary.sent == ["alice"]
        assert summary.skipped == ["bob"]
        assert mailer.sent[0][0] == "alice@example.com"
        assert mailer.sent[0][1] == ReminderService.SUBJECT

    def test_failed_send_is_skipped(self, loans, users, clock, overdue):
        service = ReminderService(loans, users, mailer=RecordingMailer(succeed=False), clock=clock)
        summary = service.send_reminders()
        assert summary.sent_count == 0
        assert summary.skipped_count == 2

    def test_no_mailer(self, loans, users, clock, overdue):
        summary = ReminderService(loans, users, clock=clock).send_reminders()
        assert summary.sent == []
        assert sorted(summary.skipped) == ["alice", "bob"]
