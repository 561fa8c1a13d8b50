# wrangle/services/planner_items.py
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, Optional

from sqlmodel import Session, select

from core.priorities import normalize_priority
from models.planner_item import PlannerItem
from storage.db import get_session
from utils.datetime_utils import end_of_day, start_of_day, start_of_week

SessionFactory = Callable[[], Session]

EDITABLE_FIELDS = (
    "title",
    "notes",
    "start_time",
    "end_time",
    "priority",
    "reminder_minutes_before",
    "is_completed",
)


class PlannerItemRepository:
    """Local store for planner items.

    Every call opens its own session; returned objects are detached snapshots.
    Persistence errors propagate to the caller.
    """

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory or get_session

    def add(self, item: PlannerItem) -> PlannerItem:
        item.priority = normalize_priority(item.priority)
        with self._session_factory() as s:
            s.add(item)
            s.commit()
            s.refresh(item)
            return item

    def get(self, item_id: str) -> Optional[PlannerItem]:
        with self._session_factory() as s:
            return s.get(PlannerItem, item_id)

    def update(self, item_id: str, **fields) -> Optional[PlannerItem]:
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        with self._session_factory() as s:
            item = s.get(PlannerItem, item_id)
            if not item:
                return None
            for key, value in fields.items():
                if key == "priority":
                    value = normalize_priority(value)
                setattr(item, key, value)
            item.updated_at = datetime.now()
            s.add(item)
            s.commit()
            s.refresh(item)
            return item

    def set_calendar_event_id(self, item_id: str, event_id: Optional[str]) -> Optional[PlannerItem]:
        """Record or clear the external event link.

        Not a user edit, so ``updated_at`` stays as it was.
        """
        with self._session_factory() as s:
            item = s.get(PlannerItem, item_id)
            if not item:
                return None
            item.calendar_event_id = event_id
            s.add(item)
            s.commit()
            s.refresh(item)
            return item

    def toggle_completed(self, item_id: str) -> Optional[PlannerItem]:
        with self._session_factory() as s:
            item = s.get(PlannerItem, item_id)
            if not item:
                return None
            item.is_completed = not item.is_completed
            item.updated_at = datetime.now()
            s.add(item)
            s.commit()
            s.refresh(item)
            return item

    def delete(self, item_id: str) -> bool:
        with self._session_factory() as s:
            item = s.get(PlannerItem, item_id)
            if not item:
                return False
            s.delete(item)
            s.commit()
            return True

    # ---------- queries ----------
    def list_between(self, start: datetime, end: datetime) -> List[PlannerItem]:
        """Items whose start falls in ``[start, end)``, ordered by start time."""
        with self._session_factory() as s:
            stmt = (
                select(PlannerItem)
                .where(PlannerItem.start_time >= start, PlannerItem.start_time < end)
                .order_by(PlannerItem.start_time.asc(), PlannerItem.created_at.asc())
            )
            return list(s.exec(stmt))

    def list_for_day(self, day: date | datetime) -> List[PlannerItem]:
        return self.list_between(start_of_day(day), end_of_day(day))

    def list_for_week(self, day: date | datetime, *, first_weekday: int = 0) -> List[PlannerItem]:
        first = start_of_day(start_of_week(day, first_weekday=first_weekday))
        return self.list_between(first, first + timedelta(days=7))

    def list_all(self) -> List[PlannerItem]:
        with self._session_factory() as s:
            return list(s.exec(select(PlannerItem).order_by(PlannerItem.start_time.asc())))

    def list_with_reminders_after(self, moment: datetime) -> Iterable[PlannerItem]:
        """Items that still want a reminder and have not started yet."""
        with self._session_factory() as s:
            stmt = (
                select(PlannerItem)
                .where(
                    PlannerItem.reminder_minutes_before != None,  # noqa: E711
                    PlannerItem.start_time > moment,
                    PlannerItem.is_completed == False,  # noqa: E712
                )
                .order_by(PlannerItem.start_time.asc())
            )
            return list(s.exec(stmt))


__all__ = ["PlannerItemRepository", "SessionFactory", "EDITABLE_FIELDS"]
