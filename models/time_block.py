"""SQLModel table for display-only day segment templates."""
from __future__ import annotations

import uuid

from sqlmodel import Field, SQLModel


class TimeBlock(SQLModel, table=True):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    name: str
    start_hour: int
    start_minute: int = 0
    end_hour: int
    end_minute: int = 0
    color: str = "blue"
    is_active: bool = True
    position: int = Field(default=0, index=True)

    @property
    def start_time_formatted(self) -> str:
        return f"{self.start_hour}:{self.start_minute:02d}"

    @property
    def end_time_formatted(self) -> str:
        return f"{self.end_hour}:{self.end_minute:02d}"

    @property
    def time_range(self) -> str:
        return f"{self.start_time_formatted} - {self.end_time_formatted}"

    @property
    def start_total_minutes(self) -> int:
        return self.start_hour * 60 + self.start_minute

    @property
    def end_total_minutes(self) -> int:
        return self.end_hour * 60 + self.end_minute


# (name, start_hour, end_hour, color)
DEFAULT_TIME_BLOCKS: tuple[tuple[str, int, int, str], ...] = (
    ("Morning Routine", 6, 8, "yellow"),
    ("Deep Work", 8, 12, "purple"),
    ("Lunch", 12, 13, "green"),
    ("Meetings", 13, 15, "orange"),
    ("Afternoon Work", 15, 17, "blue"),
    ("Evening", 17, 21, "indigo"),
)


def default_time_blocks() -> list[TimeBlock]:
    return [
        TimeBlock(name=name, start_hour=start, end_hour=end, color=color, position=idx)
        for idx, (name, start, end, color) in enumerate(DEFAULT_TIME_BLOCKS)
    ]


__all__ = ["TimeBlock", "DEFAULT_TIME_BLOCKS", "default_time_blocks"]
