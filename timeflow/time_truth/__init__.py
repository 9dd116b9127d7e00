"""
Time Truth Module

The scheduling core of the planner. Everything else reads from it.

Objects:
- Task (flexible tasks and non-negotiables share one shape)
- TimeBlock (derived occupancy of one entry on one day)
- DaySchedule (the blocks for one date)

Invariants:
- Every scheduled, incomplete entry maps to exactly one time block
- Block end = start + duration, wrapping at midnight on the same day key
- The schedule is rebuilt from the collections, never patched
"""

from .block_builder import Conflict, build_schedule, find_conflicts, sort_schedule
from .clock import (
    add_duration,
    current_slot,
    format_duration,
    minutes_between,
    time_slots,
    to_minutes,
    to_time_string,
)
from .models import (
    DaySchedule,
    FreeWindow,
    PlannerState,
    Priority,
    ScheduledSlot,
    Task,
    TimeBlock,
)
from .scheduler import ScheduleResult, auto_schedule, candidate_windows, plan_unscheduled

__all__ = [
    "Conflict",
    "DaySchedule",
    "FreeWindow",
    "PlannerState",
    "Priority",
    "ScheduleResult",
    "ScheduledSlot",
    "Task",
    "TimeBlock",
    "add_duration",
    "auto_schedule",
    "build_schedule",
    "candidate_windows",
    "current_slot",
    "find_conflicts",
    "format_duration",
    "minutes_between",
    "plan_unscheduled",
    "sort_schedule",
    "time_slots",
    "to_minutes",
    "to_time_string",
]
