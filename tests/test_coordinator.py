from datetime import datetime, timedelta

import pytest

from core.priorities import Priority
from fakes import FakeCalendarBackend, FakeNotificationBackend, revoked
from services.calendar_bridge import CalendarBridge
from services.coordinator import (
    CoordinatorOptions,
    InvalidItemError,
    ItemDraft,
    ItemNotFoundError,
    PlannerCoordinator,
)
from services.dispatch import InlineDispatcher
from services.planner_items import PlannerItemRepository
from services.reminders import ReminderScheduler, notification_id_for

START = datetime(2030, 5, 6, 13, 45)


@pytest.fixture()
def calendar_backend():
    return FakeCalendarBackend()


@pytest.fixture()
def notifications():
    return FakeNotificationBackend()


@pytest.fixture()
def repo(session_factory):
    return PlannerItemRepository(session_factory)


@pytest.fixture()
def coordinator(repo, calendar_backend, notifications, clock):
    return PlannerCoordinator(
        repo,
        CalendarBridge(calendar_backend),
        ReminderScheduler(notifications, clock=clock),
        InlineDispatcher(),
    )


def _draft(title="Design review", start=START, minutes=60, **kwargs) -> ItemDraft:
    return ItemDraft(title=title, start_time=start, end_time=start + timedelta(minutes=minutes), **kwargs)


def _pending_for(notifications, item_id):
    return notifications.pending.get(notification_id_for(item_id))


# ---------- create ----------
def test_create_with_sync_links_event_and_schedules_reminder(coordinator, repo, calendar_backend, notifications):
    item = coordinator.create_item(_draft(notes="agenda"), sync_to_calendar=True)

    stored = repo.get(item.id)
    assert stored.calendar_event_id == "evt-1"
    event = calendar_backend.events["evt-1"]
    assert (event.title, event.notes, event.start, event.end) == ("Design review", "agenda", START, START + timedelta(hours=1))

    pending = _pending_for(notifications, item.id)
    assert pending.fire_at == datetime(2030, 5, 6, 13, 30)
    assert pending.title == "Upcoming: Design review"
    assert pending.body == "Starts in 15 minutes"


def test_create_without_sync_never_touches_calendar(coordinator, repo, calendar_backend):
    item = coordinator.create_item(_draft())
    assert repo.get(item.id).calendar_event_id is None
    assert calendar_backend.access_requests == 0


def test_create_survives_denied_calendar(repo, notifications, clock):
    backend = FakeCalendarBackend(grant=False)
    coordinator = PlannerCoordinator(
        repo, CalendarBridge(backend), ReminderScheduler(notifications, clock=clock), InlineDispatcher()
    )
    item = coordinator.create_item(_draft(), sync_to_calendar=True)

    assert repo.get(item.id).calendar_event_id is None
    assert backend.created == []
    assert _pending_for(notifications, item.id) is not None


def test_create_survives_failing_calendar(coordinator, repo, calendar_backend):
    calendar_backend.fail_with = RuntimeError("boom")
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    assert repo.get(item.id) is not None
    assert repo.get(item.id).calendar_event_id is None


def test_revoked_access_is_requested_again(coordinator, calendar_backend):
    coordinator.create_item(_draft(), sync_to_calendar=True)
    assert calendar_backend.access_requests == 1

    calendar_backend.fail_with = revoked()
    coordinator.create_item(_draft("second"), sync_to_calendar=True)
    calendar_backend.fail_with = None
    coordinator.create_item(_draft("third"), sync_to_calendar=True)

    assert calendar_backend.access_requests == 2


def test_calendar_disabled_by_option(repo, calendar_backend, notifications, clock):
    coordinator = PlannerCoordinator(
        repo,
        CalendarBridge(calendar_backend),
        ReminderScheduler(notifications, clock=clock),
        InlineDispatcher(),
        options=CoordinatorOptions(calendar_enabled=False),
    )
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    assert repo.get(item.id).calendar_event_id is None
    assert calendar_backend.access_requests == 0


def test_event_created_for_vanished_item_is_removed(coordinator, repo, calendar_backend):
    def _delete_item_mid_flight(event_id):
        for item in repo.list_all():
            repo.delete(item.id)

    calendar_backend.on_create = _delete_item_mid_flight
    coordinator.create_item(_draft(), sync_to_calendar=True)

    assert repo.list_all() == []
    assert calendar_backend.events == {}


# ---------- validation ----------
@pytest.mark.parametrize(
    "draft",
    [
        _draft(title="   "),
        _draft(minutes=0),
        _draft(minutes=-30),
        _draft(reminder_minutes_before=-5),
    ],
)
def test_invalid_drafts_are_rejected(coordinator, repo, draft):
    with pytest.raises(InvalidItemError):
        coordinator.create_item(draft)
    assert repo.list_all() == []


def test_title_is_trimmed(coordinator):
    assert coordinator.create_item(_draft(title="  Gym  ")).title == "Gym"


# ---------- update ----------
def test_enabling_sync_on_update_links_event(coordinator, repo, calendar_backend):
    item = coordinator.create_item(_draft())
    coordinator.update_item(item.id, _draft(), sync_to_calendar=True)
    assert repo.get(item.id).calendar_event_id == "evt-1"


def test_update_pushes_changes_to_linked_event(coordinator, repo, calendar_backend):
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    later = START + timedelta(hours=2)

    coordinator.update_item(item.id, _draft("Moved", start=later, minutes=30), sync_to_calendar=True)

    event = calendar_backend.events["evt-1"]
    assert (event.title, event.start, event.end) == ("Moved", later, later + timedelta(minutes=30))
    assert calendar_backend.created == ["evt-1"]
    assert repo.get(item.id).calendar_event_id == "evt-1"


def test_update_does_not_recreate_externally_deleted_event(coordinator, repo, calendar_backend):
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    calendar_backend.events.clear()

    coordinator.update_item(item.id, _draft("Edited"), sync_to_calendar=True)

    assert calendar_backend.created == ["evt-1"]
    assert calendar_backend.updated == []
    assert repo.get(item.id).title == "Edited"


def test_disabling_sync_unlinks_event(coordinator, repo, calendar_backend):
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    coordinator.update_item(item.id, _draft(), sync_to_calendar=False)

    assert repo.get(item.id).calendar_event_id is None
    assert calendar_backend.events == {}


def test_disabling_sync_keeps_link_when_option_off(repo, calendar_backend, notifications, clock):
    coordinator = PlannerCoordinator(
        repo,
        CalendarBridge(calendar_backend),
        ReminderScheduler(notifications, clock=clock),
        InlineDispatcher(),
        options=CoordinatorOptions(unlink_when_sync_disabled=False),
    )
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    coordinator.update_item(item.id, _draft("Local only"), sync_to_calendar=False)

    assert repo.get(item.id).calendar_event_id == "evt-1"
    assert calendar_backend.events["evt-1"].title == "Design review"


def test_failed_unlink_keeps_link(coordinator, repo, calendar_backend):
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    calendar_backend.fail_with = RuntimeError("offline")
    coordinator.update_item(item.id, _draft(), sync_to_calendar=False)
    assert repo.get(item.id).calendar_event_id == "evt-1"


def test_disabling_sync_clears_link_to_externally_deleted_event(coordinator, repo, calendar_backend):
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    calendar_backend.events.clear()

    coordinator.update_item(item.id, _draft(), sync_to_calendar=False)

    assert repo.get(item.id).calendar_event_id is None
    assert calendar_backend.deleted == []


def test_edit_retargets_reminder(coordinator, notifications):
    item = coordinator.create_item(_draft())
    assert _pending_for(notifications, item.id).fire_at == datetime(2030, 5, 6, 13, 30)

    coordinator.update_item(item.id, _draft(start=datetime(2030, 5, 6, 15, 45)), sync_to_calendar=False)

    assert len(notifications.pending) == 1
    assert _pending_for(notifications, item.id).fire_at == datetime(2030, 5, 6, 15, 30)


def test_removing_reminder_cancels_it(coordinator, notifications):
    item = coordinator.create_item(_draft())
    coordinator.update_item(item.id, _draft(reminder_minutes_before=None), sync_to_calendar=False)
    assert notifications.pending == {}


def test_update_missing_item(coordinator):
    with pytest.raises(ItemNotFoundError):
        coordinator.update_item("missing", _draft(), sync_to_calendar=False)


def test_update_keeps_priority(coordinator, repo):
    item = coordinator.create_item(_draft(priority=Priority.HIGH))
    coordinator.update_item(item.id, _draft(priority=Priority.LOW), sync_to_calendar=False)
    assert repo.get(item.id).priority is Priority.LOW


# ---------- toggle ----------
def test_toggle_leaves_link_and_reminder_alone(coordinator, repo, calendar_backend, notifications):
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    calls = notifications.schedule_calls

    toggled = coordinator.toggle_completed(item.id)

    assert toggled.is_completed is True
    assert repo.get(item.id).calendar_event_id == "evt-1"
    assert calendar_backend.updated == []
    assert notifications.schedule_calls == calls
    assert _pending_for(notifications, item.id) is not None


def test_toggle_missing_item(coordinator):
    with pytest.raises(ItemNotFoundError):
        coordinator.toggle_completed("missing")


# ---------- delete ----------
def test_delete_removes_event_and_reminder(coordinator, repo, calendar_backend, notifications):
    item = coordinator.create_item(_draft(), sync_to_calendar=True)

    assert coordinator.delete_item(item.id) is True

    assert repo.get(item.id) is None
    assert calendar_backend.events == {}
    assert notifications.pending == {}


def test_delete_is_authoritative_when_side_effects_fail(coordinator, repo, calendar_backend, notifications):
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    calendar_backend.fail_with = RuntimeError("offline")
    notifications.fail = True

    assert coordinator.delete_item(item.id) is True
    assert repo.get(item.id) is None


def test_delete_of_externally_removed_event(coordinator, repo, calendar_backend):
    item = coordinator.create_item(_draft(), sync_to_calendar=True)
    calendar_backend.events.clear()

    assert coordinator.delete_item(item.id) is True
    assert calendar_backend.deleted == []


def test_delete_missing_item_is_noop(coordinator):
    assert coordinator.delete_item("missing") is False


# ---------- reminders ----------
def test_zero_minute_reminder_fires_at_start(coordinator, notifications):
    item = coordinator.create_item(_draft(reminder_minutes_before=0))
    assert _pending_for(notifications, item.id).fire_at == START


def test_past_trigger_schedules_nothing(coordinator, notifications, clock):
    start = clock.now + timedelta(minutes=10)
    item = coordinator.create_item(_draft(start=start, reminder_minutes_before=15))
    assert _pending_for(notifications, item.id) is None


def test_denied_notifications_schedule_nothing(repo, calendar_backend, clock):
    notifications = FakeNotificationBackend(grant=False)
    coordinator = PlannerCoordinator(
        repo, CalendarBridge(calendar_backend), ReminderScheduler(notifications, clock=clock), InlineDispatcher()
    )
    item = coordinator.create_item(_draft())
    assert repo.get(item.id) is not None
    assert notifications.pending == {}


def test_reconcile_restores_missing_reminders(coordinator, notifications, clock):
    kept = coordinator.create_item(_draft("kept"))
    lost = coordinator.create_item(_draft("lost", start=START + timedelta(hours=1)))
    notifications.pending.pop(notification_id_for(lost.id))

    assert coordinator.reconcile_reminders() == 1
    assert set(notifications.pending) == {notification_id_for(kept.id), notification_id_for(lost.id)}


def test_snooze_reschedules_from_now(coordinator, notifications, clock):
    item = coordinator.create_item(_draft())
    delivered = _pending_for(notifications, item.id)

    coordinator.snooze_reminder(delivered)

    assert _pending_for(notifications, item.id).fire_at == clock.now + timedelta(minutes=10)


# ---------- quick add / listeners ----------
def test_quick_add_uses_next_full_hour(coordinator, repo):
    item = coordinator.quick_add("Call mom", now=datetime(2030, 5, 6, 13, 20))
    assert (item.start_time, item.end_time) == (datetime(2030, 5, 6, 14, 0), datetime(2030, 5, 6, 15, 0))
    assert repo.get(item.id).calendar_event_id is None


def test_listeners_receive_item_ids(coordinator):
    seen = []
    for event in ("after_create", "after_update", "after_delete"):
        coordinator.subscribe(event, lambda item_id, event=event: seen.append((event, item_id)))

    item = coordinator.create_item(_draft())
    coordinator.toggle_completed(item.id)
    coordinator.delete_item(item.id)

    assert seen == [("after_create", item.id), ("after_update", item.id), ("after_delete", item.id)]
    with pytest.raises(ValueError):
        coordinator.subscribe("after_nothing", print)


def test_failing_listener_does_not_break_intent(coordinator, repo):
    def broken(item_id):
        raise RuntimeError("ui gone")

    coordinator.subscribe("after_create", broken)
    item = coordinator.create_item(_draft())
    assert repo.get(item.id) is not None
