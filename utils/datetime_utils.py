"""Local wall-clock date helpers used by the planner and its views.

Planner items store naive local datetimes; the helpers here never attach a
timezone except :func:`to_local_aware`, which is used at the external calendar
boundary.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union

DateLike = Union[date, datetime]


def as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def start_of_day(value: DateLike) -> datetime:
    return datetime.combine(as_date(value), time.min)


def end_of_day(value: DateLike) -> datetime:
    """Exclusive upper bound: midnight of the following day."""
    return start_of_day(value) + timedelta(days=1)


def start_of_week(value: DateLike, *, first_weekday: int = 0) -> date:
    d = as_date(value)
    offset = (d.weekday() - first_weekday) % 7
    return d - timedelta(days=offset)


def week_days(value: DateLike, *, first_weekday: int = 0) -> List[date]:
    first = start_of_week(value, first_weekday=first_weekday)
    return [first + timedelta(days=i) for i in range(7)]


def truncate_to_minute(dt: datetime) -> datetime:
    return dt.replace(second=0, microsecond=0)


def at_time(day: DateLike, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(as_date(day), time(hour, minute))


def next_full_hour(now: datetime, *, earliest_hour: int = 8) -> datetime:
    """Next whole hour after ``now`` on the same day, never before ``earliest_hour``."""
    hour = max(now.hour + 1, earliest_hour)
    if hour > 23:
        return at_time(now.date() + timedelta(days=1), earliest_hour)
    return at_time(now, hour)


def to_local_aware(dt: datetime) -> datetime:
    """Attach the local UTC offset to a naive wall-clock datetime."""
    if dt.tzinfo is None:
        return dt.astimezone()
    return dt


def to_local_naive(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def format_duration(delta: timedelta) -> str:
    total = int(delta.total_seconds())
    hours = total // 3600
    minutes = (total % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_duration_label(minutes: int) -> str:
    """Editor duration label; non-positive spans read as ``Invalid``."""
    if minutes <= 0:
        return "Invalid"
    if minutes < 60:
        return f"{minutes} min"
    if minutes % 60 == 0:
        return f"{minutes // 60} hr"
    return f"{minutes // 60} hr {minutes % 60} min"


def format_hour(hour: int) -> str:
    h = 12 if hour % 12 == 0 else hour % 12
    period = "AM" if hour < 12 else "PM"
    return f"{h} {period}"


def format_clock(dt: datetime) -> str:
    h = 12 if dt.hour % 12 == 0 else dt.hour % 12
    period = "AM" if dt.hour < 12 else "PM"
    return f"{h}:{dt.minute:02d} {period}"


def format_time_range(start: datetime, end: datetime) -> str:
    return f"{format_clock(start)} - {format_clock(end)}"


def format_week_range(days: List[date]) -> str:
    if not days:
        return ""
    return f"{days[0].strftime('%b')} {days[0].day} - {days[-1].strftime('%b')} {days[-1].day}"


__all__ = [
    "as_date",
    "start_of_day",
    "end_of_day",
    "start_of_week",
    "week_days",
    "truncate_to_minute",
    "at_time",
    "next_full_hour",
    "to_local_aware",
    "to_local_naive",
    "format_duration",
    "format_duration_label",
    "format_hour",
    "format_clock",
    "format_time_range",
    "format_week_range",
]
