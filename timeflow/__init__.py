"""
TimeFlow - single-user daily task planner core.

Usage:
    from timeflow import init_planner

    planner = init_planner()
    task = planner.add_task("Write report", 60)
    planner.schedule_task(task.id, "09:00", planner.state.current_date)
    planner.get_current_task()
"""

from .errors import NotFoundError, ParseError, PlannerError, ValidationError
from .planner_store import PlannerStore, apply, init_planner, recompute_schedule
from .time_truth import DaySchedule, PlannerState, Priority, ScheduledSlot, Task, TimeBlock

__version__ = "0.1.0"

__all__ = [
    "DaySchedule",
    "NotFoundError",
    "ParseError",
    "PlannerError",
    "PlannerState",
    "PlannerStore",
    "Priority",
    "ScheduledSlot",
    "Task",
    "TimeBlock",
    "ValidationError",
    "apply",
    "init_planner",
    "recompute_schedule",
]
