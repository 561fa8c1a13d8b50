from datetime import date, datetime

import pytest

import cli
from fakes import FakeCalendarBackend, FakeNotificationBackend
from services.bootstrap import AppServices
from services.calendar_bridge import CalendarBridge
from services.coordinator import PlannerCoordinator
from services.dispatch import InlineDispatcher
from services.planner_items import PlannerItemRepository
from services.reminders import ReminderScheduler
from services.time_blocks import TimeBlockRepository


class FakeCenter(FakeNotificationBackend):
    def shutdown(self):
        pass


@pytest.fixture()
def services(session_factory, clock):
    items = PlannerItemRepository(session_factory)
    blocks = TimeBlockRepository(session_factory)
    blocks.seed_defaults()
    calendar = CalendarBridge(FakeCalendarBackend())
    center = FakeCenter()
    reminders = ReminderScheduler(center, clock=clock)
    dispatcher = InlineDispatcher()
    return AppServices(
        items=items,
        blocks=blocks,
        calendar=calendar,
        reminders=reminders,
        notification_center=center,
        dispatcher=dispatcher,
        coordinator=PlannerCoordinator(items, calendar, reminders, dispatcher),
    )


def test_add_and_list(services, capsys):
    code = cli.main(
        ["add", "Team sync", "--date", "2030-05-06", "--start", "10:30", "--minutes", "45",
         "--priority", "high", "--sync"],
        services=services,
    )
    assert code == 0
    item = services.items.list_all()[0]
    assert (item.start_time, item.end_time) == (datetime(2030, 5, 6, 10, 30), datetime(2030, 5, 6, 11, 15))
    assert item.calendar_event_id == "evt-1"
    assert "[cal]" in capsys.readouterr().out

    assert cli.main(["list", "--date", "2030-05-06"], services=services) == 0
    out = capsys.readouterr().out
    assert "1 item, 0 done" in out
    assert "Team sync (High)" in out


def test_week_listing_prints_seven_days(services, capsys):
    assert cli.main(["list", "--date", "2030-05-08", "--week"], services=services) == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if not line.startswith("  ")]
    assert len(lines) == 7


def test_done_and_delete_by_prefix(services, capsys):
    cli.main(["add", "Gym", "--date", "2030-05-06", "--start", "18:00"], services=services)
    item = services.items.list_all()[0]

    assert cli.main(["done", item.id[:6]], services=services) == 0
    assert services.items.get(item.id).is_completed is True

    assert cli.main(["delete", item.id[:6]], services=services) == 0
    assert services.items.get(item.id) is None
    assert cli.main(["delete", item.id[:6]], services=services) == 1


def test_reminders_listing(services, capsys):
    cli.main(["add", "Dentist", "--date", "2030-05-06", "--start", "14:00", "--remind", "30"], services=services)
    capsys.readouterr()
    assert cli.main(["reminders"], services=services) == 0
    out = capsys.readouterr().out
    assert "2030-05-06 13:30  Upcoming: Dentist - Starts in 30 minutes" in out


def test_no_reminder_flag(services, capsys):
    cli.main(["add", "Quiet", "--date", "2030-05-06", "--start", "14:00", "--no-reminder"], services=services)
    assert services.items.list_all()[0].reminder_minutes_before is None
    assert services.reminders.get_pending_notifications() == []


def test_invalid_item_exits_with_two(services, capsys):
    assert cli.main(["add", "Zero", "--date", "2030-05-06", "--minutes", "0"], services=services) == 2
    assert "End time must be after start time" in capsys.readouterr().err
    assert services.items.list_all() == []


def test_blocks_listing(services, capsys):
    assert cli.main(["blocks"], services=services) == 0
    out = capsys.readouterr().out
    assert "Deep Work [purple]" in out


def test_bad_time_is_rejected_by_parser(services):
    with pytest.raises(SystemExit):
        cli.main(["add", "x", "--start", "25:99"], services=services)
