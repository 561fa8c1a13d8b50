"""Per-item reminder scheduling.

Each planner item owns at most one pending notification, identified by
``"wrangle-item-" + item.id``. Scheduling always replaces the previous one.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Protocol

from core.logging_setup import get_logger
from core.settings import REMINDERS
from models.planner_item import PlannerItem
from services.access import AuthorizationState
from utils.datetime_utils import truncate_to_minute

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class PendingNotification:
    id: str
    title: str
    body: str
    fire_at: datetime
    category: str = REMINDERS.category


class NotificationBackend(Protocol):
    def request_permission(self) -> bool: ...

    def schedule(self, notification_id: str, title: str, body: str, fire_at: datetime) -> None: ...

    def cancel(self, notification_id: str) -> None: ...

    def cancel_all(self) -> None: ...

    def list_pending(self) -> List[PendingNotification]: ...


def notification_id_for(item_id: str) -> str:
    return f"{REMINDERS.id_prefix}{item_id}"


def item_id_from_notification(notification_id: str) -> Optional[str]:
    if not notification_id.startswith(REMINDERS.id_prefix):
        return None
    return notification_id[len(REMINDERS.id_prefix):] or None


def reminder_fire_time(item: PlannerItem) -> Optional[datetime]:
    if item.reminder_minutes_before is None:
        return None
    return truncate_to_minute(item.start_time - timedelta(minutes=item.reminder_minutes_before))


def reminder_title(item: PlannerItem) -> str:
    return f"Upcoming: {item.title}"


def reminder_body(minutes: int) -> str:
    return f"Starts in {minutes} minutes"


class ReminderScheduler:
    def __init__(self, backend: NotificationBackend, *, clock: Optional[Clock] = None):
        self.backend = backend
        self.clock: Clock = clock or datetime.now
        self._state = AuthorizationState.UNKNOWN
        self.logger = get_logger("reminders")

    # ---------- permission ----------
    def permission_status(self) -> AuthorizationState:
        return self._state

    def request_permission(self) -> bool:
        try:
            granted = bool(self.backend.request_permission())
        except Exception as exc:
            self.logger.warning("Notification permission request failed: %s", exc)
            granted = False
        self._state = AuthorizationState.from_bool(granted)
        return granted

    def _ensure_permission(self) -> bool:
        if self._state is AuthorizationState.GRANTED:
            return True
        return self.request_permission()

    # ---------- scheduling ----------
    @staticmethod
    def notification_id(item: PlannerItem) -> str:
        return notification_id_for(item.id)

    def schedule_notification(self, item: PlannerItem) -> Optional[datetime]:
        """Replace the item's reminder; return the fire time, or None when skipped."""
        minutes = item.reminder_minutes_before
        if minutes is None:
            return None
        if not self._ensure_permission():
            return None

        self.cancel_notification(item)

        fire_at = reminder_fire_time(item)
        if fire_at is None or fire_at <= self.clock():
            self.logger.debug("Reminder for %s at %s is not in the future; skipped", item.id, fire_at)
            return None

        try:
            self.backend.schedule(self.notification_id(item), reminder_title(item), reminder_body(minutes), fire_at)
        except Exception:
            self._state = AuthorizationState.UNKNOWN
            self.logger.exception("Failed to schedule reminder for %s", item.id)
            return None
        self.logger.info("Reminder for %s scheduled at %s", item.id, fire_at)
        return fire_at

    def cancel_notification(self, item: PlannerItem) -> None:
        try:
            self.backend.cancel(self.notification_id(item))
        except Exception:
            self.logger.exception("Failed to cancel reminder for %s", item.id)

    def cancel_all_notifications(self) -> None:
        try:
            self.backend.cancel_all()
        except Exception:
            self.logger.exception("Failed to cancel reminders")

    def get_pending_notifications(self) -> List[PendingNotification]:
        try:
            return sorted(self.backend.list_pending(), key=lambda n: n.fire_at)
        except Exception:
            self.logger.exception("Failed to list pending reminders")
            return []

    def snooze(self, notification: PendingNotification, minutes: int = REMINDERS.snooze_minutes) -> Optional[datetime]:
        """Re-fire an already delivered reminder ``minutes`` from now."""
        if not self._ensure_permission():
            return None
        fire_at = truncate_to_minute(self.clock()) + timedelta(minutes=minutes)
        try:
            self.backend.schedule(notification.id, notification.title, notification.body, fire_at)
        except Exception:
            self.logger.exception("Failed to snooze reminder %s", notification.id)
            return None
        return fire_at


__all__ = [
    "NotificationBackend",
    "PendingNotification",
    "ReminderScheduler",
    "notification_id_for",
    "item_id_from_notification",
    "reminder_fire_time",
    "reminder_title",
    "reminder_body",
]
