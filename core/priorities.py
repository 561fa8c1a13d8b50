"""Planner item priority levels."""
from __future__ import annotations

from enum import IntEnum
from typing import Dict

from core.settings import PALETTE


class Priority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2

    @property
    def label(self) -> str:
        return PRIORITY_META[self]["label"]

    @property
    def color(self) -> str:
        """Symbolic palette name."""
        return PRIORITY_META[self]["color"]

    @property
    def hex_color(self) -> str:
        return PALETTE[self.color]


PRIORITY_META: Dict[int, Dict[str, str]] = {
    Priority.LOW: {"label": "Low", "color": "blue"},
    Priority.MEDIUM: {"label": "Medium", "color": "orange"},
    Priority.HIGH: {"label": "High", "color": "red"},
}

DEFAULT_PRIORITY = Priority.MEDIUM


def normalize_priority(value: int | str | Priority | None) -> Priority:
    """Clamp external values (ints, numeric strings, names) to a priority."""
    if value is None:
        return DEFAULT_PRIORITY
    if isinstance(value, Priority):
        return value
    if isinstance(value, str) and value.strip().upper() in Priority.__members__:
        return Priority[value.strip().upper()]
    try:
        ivalue = int(value)
    except (TypeError, ValueError):
        return DEFAULT_PRIORITY
    return Priority(max(Priority.LOW, min(Priority.HIGH, ivalue)))


def priority_options() -> Dict[str, str]:
    """Return mapping of dropdown values -> labels."""
    return {str(int(level)): level.label for level in Priority}


__all__ = [
    "Priority",
    "PRIORITY_META",
    "DEFAULT_PRIORITY",
    "normalize_priority",
    "priority_options",
]
