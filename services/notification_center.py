"""
Local notification delivery backed by APScheduler.

Pending reminders are stored as one-shot ``date`` jobs in the application
database, so a reminder scheduled before a restart is still found (and can be
replaced or cancelled) by its id afterwards. When a job fires,
:func:`deliver_notification` hands the notification to every subscribed
delivery listener; the desktop shell subscribes to show a banner.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Set

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED, JobExecutionEvent
from apscheduler.jobstores.base import BaseJobStore, JobLookupError
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler

from core.logging_setup import get_logger
from core.settings import REMINDERS
from services.reminders import PendingNotification
from utils.datetime_utils import to_local_naive

logger = get_logger("notifications")

DELIVER_FUNC_REF = "services.notification_center:deliver_notification"

DeliveryListener = Callable[[PendingNotification], None]
_listeners: Set[DeliveryListener] = set()


def subscribe(listener: DeliveryListener) -> None:
    _listeners.add(listener)


def unsubscribe(listener: DeliveryListener) -> None:
    _listeners.discard(listener)


def deliver_notification(notification_id: str, title: str, body: str) -> None:
    """Job entry point: runs on the scheduler thread when a reminder is due."""
    notification = PendingNotification(
        id=notification_id,
        title=title,
        body=body,
        fire_at=datetime.now().replace(second=0, microsecond=0),
    )
    logger.info("Delivering %s: %s (%s)", notification_id, title, body)
    for listener in list(_listeners):
        try:
            listener(notification)
        except Exception:
            logger.exception("Notification listener failed for %s", notification_id)


def _job_event_listener(event: JobExecutionEvent) -> None:
    if event.code == EVENT_JOB_MISSED:
        logger.warning("Reminder %s missed its fire time", event.job_id)
    else:
        logger.error("Reminder %s failed: %s", event.job_id, event.exception)


def create_jobstore(engine=None) -> SQLAlchemyJobStore:
    if engine is None:
        from storage.db import get_engine

        engine = get_engine()
    return SQLAlchemyJobStore(engine=engine, tablename=REMINDERS.jobs_table)


class SchedulerNotificationCenter:
    """:class:`NotificationBackend` implementation on a background APScheduler."""

    def __init__(
        self,
        jobstore: Optional[BaseJobStore] = None,
        *,
        enabled: bool = REMINDERS.enabled,
        clock: Optional[Callable[[], datetime]] = None,
        start_paused: bool = False,
    ):
        self.enabled = enabled
        self.clock = clock or datetime.now
        self.start_paused = start_paused
        self.scheduler = BackgroundScheduler(
            jobstores={"default": jobstore or create_jobstore()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": REMINDERS.misfire_grace_time_sec,
            },
        )
        self.scheduler.add_listener(_job_event_listener, EVENT_JOB_ERROR | EVENT_JOB_MISSED)

    # ----- lifecycle -----
    def request_permission(self) -> bool:
        if not self.enabled:
            logger.info("Reminders are disabled in settings")
            return False
        if not self.scheduler.running:
            self.scheduler.start(paused=self.start_paused)
            logger.info("Reminder scheduler started")
        return True

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Reminder scheduler stopped")

    # ----- NotificationBackend -----
    def schedule(self, notification_id: str, title: str, body: str, fire_at: datetime) -> None:
        if fire_at <= self.clock():
            return
        self.scheduler.add_job(
            DELIVER_FUNC_REF,
            trigger="date",
            run_date=fire_at,
            args=[notification_id, title, body],
            id=notification_id,
            name=title,
            replace_existing=True,
        )

    def cancel(self, notification_id: str) -> None:
        try:
            self.scheduler.remove_job(notification_id)
        except JobLookupError:
            pass

    def cancel_all(self) -> None:
        for job in self.scheduler.get_jobs():
            if job.id.startswith(REMINDERS.id_prefix):
                self.cancel(job.id)

    def list_pending(self) -> List[PendingNotification]:
        pending: List[PendingNotification] = []
        for job in self.scheduler.get_jobs():
            if not job.id.startswith(REMINDERS.id_prefix):
                continue
            _, title, body = job.args
            pending.append(
                PendingNotification(
                    id=job.id,
                    title=title,
                    body=body,
                    fire_at=to_local_naive(job.trigger.run_date),
                )
            )
        return pending


__all__ = [
    "SchedulerNotificationCenter",
    "deliver_notification",
    "subscribe",
    "unsubscribe",
    "create_jobstore",
]
