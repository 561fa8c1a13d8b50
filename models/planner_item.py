"""SQLModel table for planner items."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional
import uuid

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from core.priorities import DEFAULT_PRIORITY, Priority
from utils.datetime_utils import format_duration


def _new_id() -> str:
    return uuid.uuid4().hex


class PlannerItem(SQLModel, table=True):
    """A time-boxed planner entry.

    ``calendar_event_id`` is set only while an external calendar event mirrors
    the item; ``reminder_minutes_before`` is ``None`` when no reminder is wanted.
    Times are naive local wall-clock values, hence the plain ``DateTime`` columns.
    ``end_time > start_time`` is expected but not enforced here.
    """

    id: str = Field(default_factory=_new_id, primary_key=True)
    title: str = Field(default="")
    notes: str = Field(default="")
    start_time: datetime = Field(sa_type=DateTime, index=True)
    end_time: datetime = Field(sa_type=DateTime)
    is_completed: bool = Field(default=False)
    priority: Priority = Field(default=DEFAULT_PRIORITY)
    calendar_event_id: Optional[str] = Field(default=None, index=True)
    reminder_minutes_before: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def duration_formatted(self) -> str:
        return format_duration(self.duration)

    @property
    def is_synced(self) -> bool:
        return self.calendar_event_id is not None

    @property
    def wants_reminder(self) -> bool:
        return self.reminder_minutes_before is not None


__all__ = ["PlannerItem"]
