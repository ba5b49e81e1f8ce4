"""Overdue reminders."""

from .schemas import OverdueUser, ReminderSummary
from .service import ReminderService

__all__ = ["OverdueUser", "ReminderSummary", "ReminderService"]
