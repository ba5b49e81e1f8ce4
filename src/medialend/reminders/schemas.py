"""Pydantic schemas for overdue reminders."""

from pydantic import BaseModel, Field


class OverdueUser(BaseModel):
    """A user with at least one overdue loan."""

    username: str
    overdue_count: int
    total_fine: int


class ReminderSummary(BaseModel):
    """Outcome of a reminder run."""

    sent: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    @property
    def sent_count(self) -> int:
        return len(self.sent)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)
