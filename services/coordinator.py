# wrangle/services/coordinator.py
"""Keep planner items, their calendar events and their reminders consistent.

The local write happens immediately; calendar and reminder work is handed to a
dispatcher and is best effort. A failing bridge or scheduler is logged and
never rolls back or blocks the record change.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Set

from core.logging_setup import get_logger
from core.priorities import DEFAULT_PRIORITY, Priority, normalize_priority
from core.settings import CALENDAR, REMINDERS
from models.planner_item import PlannerItem
from services.calendar_bridge import CalendarBridge
from services.dispatch import BackgroundDispatcher, Dispatcher
from services.planner_items import PlannerItemRepository
from services.reminders import PendingNotification, ReminderScheduler, notification_id_for
from utils.datetime_utils import next_full_hour


class InvalidItemError(ValueError):
    """The editor values cannot be saved."""


class ItemNotFoundError(LookupError):
    pass


@dataclass
class ItemDraft:
    """Editor values for a new or existing item."""

    title: str
    start_time: datetime
    end_time: datetime
    notes: str = ""
    priority: Priority = DEFAULT_PRIORITY
    reminder_minutes_before: Optional[int] = REMINDERS.default_minutes_before

    def validated(self) -> "ItemDraft":
        title = (self.title or "").strip()
        if not title:
            raise InvalidItemError("Title must not be empty")
        if self.end_time <= self.start_time:
            raise InvalidItemError("End time must be after start time")
        minutes = self.reminder_minutes_before
        if minutes is not None and minutes < 0:
            raise InvalidItemError("Reminder offset must not be negative")
        return ItemDraft(
            title=title,
            start_time=self.start_time,
            end_time=self.end_time,
            notes=self.notes or "",
            priority=normalize_priority(self.priority),
            reminder_minutes_before=minutes,
        )

    @classmethod
    def from_item(cls, item: PlannerItem) -> "ItemDraft":
        return cls(
            title=item.title,
            start_time=item.start_time,
            end_time=item.end_time,
            notes=item.notes,
            priority=item.priority,
            reminder_minutes_before=item.reminder_minutes_before,
        )


@dataclass
class CoordinatorOptions:
    unlink_when_sync_disabled: bool = CALENDAR.unlink_when_sync_disabled
    calendar_enabled: bool = CALENDAR.enabled
    snooze_minutes: int = REMINDERS.snooze_minutes
    quick_add_duration: timedelta = field(default_factory=lambda: timedelta(hours=1))


class PlannerCoordinator:
    _events = ("after_create", "after_update", "after_delete")

    def __init__(
        self,
        repo: PlannerItemRepository,
        calendar: CalendarBridge,
        reminders: ReminderScheduler,
        dispatcher: Optional[Dispatcher] = None,
        *,
        options: Optional[CoordinatorOptions] = None,
    ):
        self.repo = repo
        self.calendar = calendar
        self.reminders = reminders
        self.dispatcher = dispatcher or BackgroundDispatcher()
        self.options = options or CoordinatorOptions()
        self.logger = get_logger("coordinator")
        self._listeners: Dict[str, Set[Callable[[str], None]]] = {name: set() for name in self._events}

    # ---------- change listeners ----------
    def subscribe(self, event: str, callback: Callable[[str], None]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unsupported event: {event}")
        self._listeners[event].add(callback)

    def unsubscribe(self, event: str, callback: Callable[[str], None]) -> None:
        self._listeners.get(event, set()).discard(callback)

    def _emit(self, event: str, item_id: str) -> None:
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(item_id)
            except Exception:
                self.logger.exception("Listener for %s failed", event)

    # ---------- intents ----------
    def create_item(self, draft: ItemDraft, *, sync_to_calendar: bool = False) -> PlannerItem:
        values = draft.validated()
        item = self.repo.add(
            PlannerItem(
                title=values.title,
                notes=values.notes,
                start_time=values.start_time,
                end_time=values.end_time,
                priority=values.priority,
                reminder_minutes_before=values.reminder_minutes_before,
            )
        )
        self.logger.info("Created item %s", item.id)

        if sync_to_calendar:
            self._dispatch_calendar_create(item)
        if item.reminder_minutes_before is not None:
            self.dispatcher.submit(f"reminder:{item.id}", self.reminders.schedule_notification, item)

        self._emit("after_create", item.id)
        return item

    def update_item(self, item_id: str, draft: ItemDraft, *, sync_to_calendar: bool) -> PlannerItem:
        values = draft.validated()
        item = self.repo.update(
            item_id,
            title=values.title,
            notes=values.notes,
            start_time=values.start_time,
            end_time=values.end_time,
            priority=values.priority,
            reminder_minutes_before=values.reminder_minutes_before,
        )
        if item is None:
            raise ItemNotFoundError(item_id)
        self.logger.info("Updated item %s", item.id)

        if item.calendar_event_id is None:
            if sync_to_calendar:
                self._dispatch_calendar_create(item)
        elif sync_to_calendar:
            self.dispatcher.submit(f"calendar-update:{item.id}", self._push_calendar_update, item)
        elif self.options.unlink_when_sync_disabled:
            self.dispatcher.submit(f"calendar-unlink:{item.id}", self._unlink_calendar_event, item)

        self._dispatch_reminder_refresh(item)
        self._emit("after_update", item.id)
        return item

    def toggle_completed(self, item_id: str) -> PlannerItem:
        item = self.repo.toggle_completed(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        self._emit("after_update", item.id)
        return item

    def delete_item(self, item_id: str) -> bool:
        item = self.repo.get(item_id)
        if item is None:
            return False

        if item.calendar_event_id:
            self.dispatcher.submit(f"calendar-delete:{item.id}", self.calendar.delete_event, item.calendar_event_id)
        self.dispatcher.submit(f"reminder-cancel:{item.id}", self.reminders.cancel_notification, item)

        deleted = self.repo.delete(item_id)
        self.logger.info("Deleted item %s", item_id)
        self._emit("after_delete", item_id)
        return deleted

    def quick_add(self, title: str, *, now: Optional[datetime] = None) -> PlannerItem:
        start = next_full_hour(now or datetime.now())
        draft = ItemDraft(title=title, start_time=start, end_time=start + self.options.quick_add_duration)
        return self.create_item(draft)

    def snooze_reminder(self, notification: PendingNotification, minutes: Optional[int] = None) -> None:
        self.dispatcher.submit(
            f"reminder-snooze:{notification.id}",
            self.reminders.snooze,
            notification,
            minutes or self.options.snooze_minutes,
        )

    def reconcile_reminders(self, *, now: Optional[datetime] = None) -> int:
        """Reschedule reminders for upcoming items that have none pending."""
        pending = {n.id for n in self.reminders.get_pending_notifications()}
        count = 0
        for item in self.repo.list_with_reminders_after(now or self.reminders.clock()):
            if notification_id_for(item.id) in pending:
                continue
            self.dispatcher.submit(f"reminder:{item.id}", self.reminders.schedule_notification, item)
            count += 1
        return count

    # ---------- background work ----------
    def _dispatch_calendar_create(self, item: PlannerItem) -> None:
        if not self.options.calendar_enabled:
            self.logger.debug("Calendar sync disabled; item %s stays unsynced", item.id)
            return
        self.dispatcher.submit(f"calendar-create:{item.id}", self._link_calendar_event, item)

    def _dispatch_reminder_refresh(self, item: PlannerItem) -> None:
        if item.reminder_minutes_before is None:
            self.dispatcher.submit(f"reminder-cancel:{item.id}", self.reminders.cancel_notification, item)
        else:
            self.dispatcher.submit(f"reminder:{item.id}", self.reminders.schedule_notification, item)

    def _link_calendar_event(self, item: PlannerItem) -> Optional[str]:
        event_id = self.calendar.create_event(item)
        if not event_id:
            self.logger.info("Item %s stays unsynced", item.id)
            return None
        if self.repo.set_calendar_event_id(item.id, event_id) is None:
            # the item was deleted while the event was being created
            self.logger.info("Item %s vanished; removing orphan event %s", item.id, event_id)
            self.calendar.delete_event(event_id)
            return None
        return event_id

    def _push_calendar_update(self, item: PlannerItem) -> bool:
        updated = self.calendar.update_event(item)
        if not updated:
            self.logger.info("Calendar event %s for item %s was not updated", item.calendar_event_id, item.id)
        return updated

    def _unlink_calendar_event(self, item: PlannerItem) -> bool:
        event_id = item.calendar_event_id
        if not self.calendar.delete_event(event_id):
            # a gone event still clears the link; an unreachable backend keeps it
            if self.calendar.event_exists(event_id) is not False:
                return False
            self.logger.info("Calendar event %s no longer exists", event_id)
        self.repo.set_calendar_event_id(item.id, None)
        self.logger.info("Unlinked item %s from calendar", item.id)
        return True


__all__ = [
    "PlannerCoordinator",
    "CoordinatorOptions",
    "ItemDraft",
    "InvalidItemError",
    "ItemNotFoundError",
]
