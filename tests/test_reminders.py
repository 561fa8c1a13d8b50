from datetime import datetime, timedelta
import time

import pytest
from apscheduler.jobstores.memory import MemoryJobStore
from sqlalchemy import create_engine

from fakes import FakeNotificationBackend
from models import PlannerItem
from services import notification_center
from services.access import AuthorizationState
from services.bootstrap import create_notification_center
from services.notification_center import SchedulerNotificationCenter, create_jobstore
from services.reminders import (
    PendingNotification,
    ReminderScheduler,
    item_id_from_notification,
    notification_id_for,
    reminder_fire_time,
)


def _item(start=datetime(2030, 5, 6, 10, 0, 40), minutes_before=15, **kwargs):
    return PlannerItem(
        title="Dentist",
        start_time=start,
        end_time=start + timedelta(hours=1),
        reminder_minutes_before=minutes_before,
        **kwargs,
    )


def test_ids_round_trip():
    assert notification_id_for("abc") == "wrangle-item-abc"
    assert item_id_from_notification("wrangle-item-abc") == "abc"
    assert item_id_from_notification("other-abc") is None
    assert item_id_from_notification("wrangle-item-") is None


def test_fire_time_is_truncated_to_minute():
    assert reminder_fire_time(_item()) == datetime(2030, 5, 6, 9, 45)
    assert reminder_fire_time(_item(minutes_before=None)) is None


def test_schedule_replaces_previous(clock):
    backend = FakeNotificationBackend()
    scheduler = ReminderScheduler(backend, clock=clock)
    item = _item()

    assert scheduler.schedule_notification(item) == datetime(2030, 5, 6, 9, 45)
    assert scheduler.schedule_notification(item) == datetime(2030, 5, 6, 9, 45)

    pending = scheduler.get_pending_notifications()
    assert [p.id for p in pending] == [notification_id_for(item.id)]
    assert pending[0].body == "Starts in 15 minutes"
    assert scheduler.permission_status() is AuthorizationState.GRANTED


def test_trigger_equal_to_now_is_skipped(clock):
    backend = FakeNotificationBackend()
    scheduler = ReminderScheduler(backend, clock=clock)
    item = _item(start=clock.now + timedelta(minutes=15))
    assert scheduler.schedule_notification(item) is None
    assert backend.pending == {}


def test_past_trigger_still_clears_old_reminder(clock):
    backend = FakeNotificationBackend()
    scheduler = ReminderScheduler(backend, clock=clock)
    item = _item()
    scheduler.schedule_notification(item)

    item.start_time = clock.now - timedelta(hours=1)
    assert scheduler.schedule_notification(item) is None
    assert backend.pending == {}


def test_denied_permission_is_soft(clock):
    backend = FakeNotificationBackend(grant=False)
    scheduler = ReminderScheduler(backend, clock=clock)
    assert scheduler.schedule_notification(_item()) is None
    assert scheduler.permission_status() is AuthorizationState.DENIED

    backend.grant = True
    assert scheduler.schedule_notification(_item()) is not None


def test_backend_failure_is_logged_not_raised(clock):
    backend = FakeNotificationBackend()
    backend.fail = True
    scheduler = ReminderScheduler(backend, clock=clock)
    assert scheduler.schedule_notification(_item()) is None
    scheduler.cancel_notification(_item())


def test_pending_sorted_by_fire_time(clock):
    backend = FakeNotificationBackend()
    scheduler = ReminderScheduler(backend, clock=clock)
    late = _item(start=datetime(2030, 5, 6, 18, 0))
    early = _item(start=datetime(2030, 5, 6, 11, 0))
    scheduler.schedule_notification(late)
    scheduler.schedule_notification(early)
    assert [p.id for p in scheduler.get_pending_notifications()] == [
        notification_id_for(early.id),
        notification_id_for(late.id),
    ]
    scheduler.cancel_all_notifications()
    assert scheduler.get_pending_notifications() == []


# ---------- APScheduler backend ----------
@pytest.fixture()
def center():
    center = SchedulerNotificationCenter(MemoryJobStore(), start_paused=True)
    yield center
    center.shutdown()


def test_center_stores_one_job_per_item(center):
    assert center.request_permission() is True
    fire_at = datetime(2030, 5, 6, 9, 45)
    center.schedule("wrangle-item-1", "Upcoming: A", "Starts in 15 minutes", fire_at)
    center.schedule("wrangle-item-1", "Upcoming: A", "Starts in 15 minutes", fire_at + timedelta(hours=2))

    pending = center.list_pending()
    assert len(pending) == 1
    assert pending[0].fire_at == fire_at + timedelta(hours=2)
    assert pending[0].title == "Upcoming: A"


def test_center_ignores_past_and_unknown(center):
    center.request_permission()
    center.schedule("wrangle-item-1", "t", "b", datetime.now() - timedelta(minutes=1))
    assert center.list_pending() == []
    center.cancel("wrangle-item-missing")


def test_center_cancel_all_only_touches_reminders(center):
    center.request_permission()
    center.schedule("wrangle-item-1", "t", "b", datetime(2030, 1, 1, 9, 0))
    center.scheduler.add_job(print, trigger="date", run_date=datetime(2030, 1, 1), id="housekeeping")

    center.cancel_all()

    assert center.list_pending() == []
    assert center.scheduler.get_job("housekeeping") is not None


def test_center_disabled_denies_permission():
    center = SchedulerNotificationCenter(MemoryJobStore(), enabled=False)
    assert center.request_permission() is False
    assert not center.scheduler.running


def test_reminders_survive_restart(tmp_path):
    # the job store disposes its engine on shutdown, so use a file database
    engine = create_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    first = SchedulerNotificationCenter(create_jobstore(engine), start_paused=True)
    first.request_permission()
    first.schedule("wrangle-item-9", "Upcoming: B", "Starts in 5 minutes", datetime(2030, 5, 6, 9, 55))
    first.shutdown()

    second = SchedulerNotificationCenter(create_jobstore(engine), start_paused=True)
    try:
        second.request_permission()
        assert [(p.id, p.fire_at) for p in second.list_pending()] == [
            ("wrangle-item-9", datetime(2030, 5, 6, 9, 55))
        ]
    finally:
        second.shutdown()


def test_headless_center_leaves_due_reminders_for_the_app(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    due = datetime.now() - timedelta(seconds=5)
    app = SchedulerNotificationCenter(
        create_jobstore(engine), clock=lambda: due - timedelta(minutes=1), start_paused=True
    )
    app.request_permission()
    app.schedule("wrangle-item-x", "Upcoming: X", "Starts in 0 minutes", due)
    app.shutdown()

    received = []
    notification_center.subscribe(received.append)
    headless = create_notification_center(create_jobstore(engine), background=False)
    try:
        headless.request_permission()
        time.sleep(0.5)
    finally:
        headless.shutdown()
        notification_center.unsubscribe(received.append)

    assert received == []
    reopened = SchedulerNotificationCenter(create_jobstore(engine), start_paused=True)
    try:
        reopened.request_permission()
        assert [p.id for p in reopened.list_pending()] == ["wrangle-item-x"]
    finally:
        reopened.shutdown()


def test_delivery_reaches_listeners():
    received = []
    notification_center.subscribe(received.append)
    try:
        notification_center.deliver_notification("wrangle-item-7", "Upcoming: C", "Starts in 0 minutes")
    finally:
        notification_center.unsubscribe(received.append)

    assert len(received) == 1
    assert isinstance(received[0], PendingNotification)
    assert received[0].id == "wrangle-item-7"
