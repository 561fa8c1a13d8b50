"""Read models for the day, week and today views."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from core.settings import UI
from models.planner_item import PlannerItem
from models.time_block import TimeBlock
from services.planner_items import PlannerItemRepository
from utils.datetime_utils import as_date, at_time, format_week_range, week_days


@dataclass
class DayAgenda:
    day: date
    items: List[PlannerItem]

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def count_label(self) -> str:
        return f"{self.count} {'item' if self.count == 1 else 'items'}"

    @property
    def completed(self) -> int:
        return sum(1 for item in self.items if item.is_completed)

    @property
    def progress(self) -> float:
        return self.completed / self.count if self.items else 0.0

    def items_starting_in_hour(self, hour: int) -> List[PlannerItem]:
        return [item for item in self.items if item.start_time.hour == hour]


@dataclass
class WeekAgenda:
    days: List[DayAgenda]

    @property
    def total(self) -> int:
        return sum(day.count for day in self.days)

    @property
    def completed(self) -> int:
        return sum(day.completed for day in self.days)

    @property
    def range_label(self) -> str:
        return format_week_range([d.day for d in self.days])

    @property
    def week_number(self) -> int:
        return self.days[0].day.isocalendar()[1] if self.days else 0


@dataclass(frozen=True)
class BlockSegment:
    block: TimeBlock
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


def day_agenda(repo: PlannerItemRepository, day: date | datetime) -> DayAgenda:
    return DayAgenda(day=as_date(day), items=repo.list_for_day(day))


def week_agenda(
    repo: PlannerItemRepository,
    day: date | datetime,
    *,
    first_weekday: int = UI.week.first_weekday,
) -> WeekAgenda:
    days = week_days(day, first_weekday=first_weekday)
    items = repo.list_for_week(day, first_weekday=first_weekday)
    by_day = {d: [] for d in days}
    for item in items:
        key = item.start_time.date()
        if key in by_day:
            by_day[key].append(item)
    return WeekAgenda(days=[DayAgenda(day=d, items=by_day[d]) for d in days])


def next_up(agenda: DayAgenda, now: datetime) -> Optional[PlannerItem]:
    """First unfinished item that has not ended yet."""
    for item in agenda.items:
        if not item.is_completed and item.end_time > now:
            return item
    return None


def block_segments(blocks: List[TimeBlock], day: date | datetime) -> List[BlockSegment]:
    segments = [
        BlockSegment(
            block=block,
            start=at_time(day, block.start_hour, block.start_minute),
            end=at_time(day, block.end_hour, block.end_minute),
        )
        for block in blocks
        if block.is_active
    ]
    return sorted(segments, key=lambda s: s.start)


def block_for(segments: List[BlockSegment], moment: datetime) -> Optional[BlockSegment]:
    for segment in segments:
        if segment.contains(moment):
            return segment
    return None


__all__ = [
    "DayAgenda",
    "WeekAgenda",
    "BlockSegment",
    "day_agenda",
    "week_agenda",
    "next_up",
    "block_segments",
    "block_for",
]
