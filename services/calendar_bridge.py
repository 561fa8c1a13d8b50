"""Mirror planner items into an external calendar.

The bridge owns the authorization state for the calendar backend and turns
every backend failure into a soft result (``None``, ``False`` or ``[]``).
Callers never see an exception from here.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Protocol, TypeVar

from core.logging_setup import get_logger
from models.planner_item import PlannerItem
from services.access import AuthorizationState
from utils.datetime_utils import end_of_day, start_of_day

T = TypeVar("T")


class CalendarError(Exception):
    """A backend call failed."""


class CalendarAccessError(CalendarError):
    """The backend rejected our credentials or they were revoked."""


@dataclass(frozen=True)
class ExternalEvent:
    id: str
    title: str
    notes: str
    start: Optional[datetime]
    end: Optional[datetime]
    calendar_id: Optional[str] = None
    all_day: bool = False


@dataclass(frozen=True)
class CalendarRef:
    id: str
    title: str
    is_primary: bool = False
    color: Optional[str] = None


class CalendarBackend(Protocol):
    def request_access(self) -> bool: ...

    def fetch_events(self, start: datetime, end: datetime) -> List[ExternalEvent]: ...

    def get_event(self, event_id: str) -> Optional[ExternalEvent]: ...

    def create_event(self, title: str, notes: str, start: datetime, end: datetime) -> Optional[str]: ...

    def update_event(self, event_id: str, title: str, notes: str, start: datetime, end: datetime) -> bool: ...

    def delete_event(self, event_id: str) -> bool: ...

    def list_calendars(self) -> List[CalendarRef]: ...


class CalendarBridge:
    def __init__(self, backend: CalendarBackend):
        self.backend = backend
        self._state = AuthorizationState.UNKNOWN
        self.logger = get_logger("calendar")

    # ---------- authorization ----------
    def authorization_status(self) -> AuthorizationState:
        return self._state

    def request_access(self) -> bool:
        try:
            granted = bool(self.backend.request_access())
        except Exception as exc:
            self.logger.warning("Calendar access request failed: %s", exc)
            granted = False
        self._state = AuthorizationState.from_bool(granted)
        if not granted:
            self.logger.info("Calendar access denied")
        return granted

    def _ensure_access(self) -> bool:
        if self._state is AuthorizationState.GRANTED:
            return True
        return self.request_access()

    def _call(self, action: str, fn: Callable[[], T], fallback: T) -> T:
        if not self._ensure_access():
            return fallback
        try:
            return fn()
        except CalendarAccessError as exc:
            self.logger.warning("Calendar %s rejected, access will be re-requested: %s", action, exc)
            self._state = AuthorizationState.UNKNOWN
        except Exception:
            self.logger.exception("Calendar %s failed", action)
        return fallback

    # ---------- queries ----------
    def fetch_events(self, start: datetime, end: datetime) -> List[ExternalEvent]:
        return self._call("fetch", lambda: list(self.backend.fetch_events(start, end)), [])

    def fetch_events_for_day(self, day: date | datetime) -> List[ExternalEvent]:
        return self.fetch_events(start_of_day(day), end_of_day(day))

    def list_calendars(self) -> List[CalendarRef]:
        return self._call("list calendars", lambda: list(self.backend.list_calendars()), [])

    def event_exists(self, event_id: str) -> Optional[bool]:
        """``None`` when the backend could not be asked."""
        return self._call("lookup", lambda: self.backend.get_event(event_id) is not None, None)

    # ---------- item mirroring ----------
    def create_event(self, item: PlannerItem) -> Optional[str]:
        """Create the mirrored event and return its id; the caller persists it."""
        event_id = self._call(
            "create",
            lambda: self.backend.create_event(item.title, item.notes or "", item.start_time, item.end_time),
            None,
        )
        if event_id:
            self.logger.info("Created calendar event %s for item %s", event_id, item.id)
        return event_id or None

    def update_event(self, item: PlannerItem) -> bool:
        event_id = item.calendar_event_id
        if not event_id:
            return False

        def _update() -> bool:
            if self.backend.get_event(event_id) is None:
                self.logger.info("Calendar event %s is gone; not recreating", event_id)
                return False
            return bool(
                self.backend.update_event(event_id, item.title, item.notes or "", item.start_time, item.end_time)
            )

        return self._call("update", _update, False)

    def delete_event(self, event_id: Optional[str]) -> bool:
        if not event_id:
            return False

        def _delete() -> bool:
            if self.backend.get_event(event_id) is None:
                self.logger.info("Calendar event %s already gone", event_id)
                return False
            return bool(self.backend.delete_event(event_id))

        deleted = self._call("delete", _delete, False)
        if deleted:
            self.logger.info("Deleted calendar event %s", event_id)
        return deleted


__all__ = [
    "CalendarBackend",
    "CalendarBridge",
    "CalendarError",
    "CalendarAccessError",
    "CalendarRef",
    "ExternalEvent",
]
