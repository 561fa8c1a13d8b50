"""ORM models exposed by the Wrangle application."""
from .planner_item import PlannerItem
from .time_block import TimeBlock

__all__ = ["PlannerItem", "TimeBlock"]
