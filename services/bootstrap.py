"""Wire the default services for the desktop app and the CLI."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.logging_setup import configure_logging, get_logger
from services.calendar_bridge import CalendarBridge
from services.coordinator import PlannerCoordinator
from services.dispatch import BackgroundDispatcher, Dispatcher, InlineDispatcher
from services.google_auth import GoogleAuth
from services.google_calendar import GoogleCalendar
from services.notification_center import SchedulerNotificationCenter
from services.planner_items import PlannerItemRepository
from services.reminders import ReminderScheduler
from services.time_blocks import TimeBlockRepository, ensure_default_blocks
from storage.db import init_db

logger = get_logger("bootstrap")


@dataclass
class AppServices:
    items: PlannerItemRepository
    blocks: TimeBlockRepository
    calendar: CalendarBridge
    reminders: ReminderScheduler
    notification_center: SchedulerNotificationCenter
    dispatcher: Dispatcher
    coordinator: PlannerCoordinator

    def shutdown(self) -> None:
        shutdown = getattr(self.dispatcher, "shutdown", None)
        if shutdown:
            shutdown()
        self.notification_center.shutdown()


def create_notification_center(jobstore=None, *, background: bool = True) -> SchedulerNotificationCenter:
    """Only the desktop app delivers reminders; headless runs keep the scheduler paused
    so due jobs stay in the shared store until the app picks them up."""
    return SchedulerNotificationCenter(jobstore, start_paused=not background)


def build_services(*, background: bool = True, dispatcher: Optional[Dispatcher] = None) -> AppServices:
    configure_logging()
    init_db()

    items = PlannerItemRepository()
    blocks = TimeBlockRepository()
    ensure_default_blocks(blocks)

    calendar = CalendarBridge(GoogleCalendar(GoogleAuth()))
    center = create_notification_center(background=background)
    reminders = ReminderScheduler(center)
    dispatcher = dispatcher or (BackgroundDispatcher() if background else InlineDispatcher())
    coordinator = PlannerCoordinator(items, calendar, reminders, dispatcher)

    if reminders.request_permission():
        rescheduled = coordinator.reconcile_reminders()
        if rescheduled:
            logger.info("Rescheduled %d missing reminders", rescheduled)

    return AppServices(
        items=items,
        blocks=blocks,
        calendar=calendar,
        reminders=reminders,
        notification_center=center,
        dispatcher=dispatcher,
        coordinator=coordinator,
    )


__all__ = ["AppServices", "build_services", "create_notification_center"]
