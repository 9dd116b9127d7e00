"""
Planner entities.

Task and non-negotiable entries share one shape; TimeBlock and DaySchedule
are derived from them and never edited directly.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from enum import StrEnum
from typing import Any

from timeflow.time_truth.clock import (
    MINUTES_PER_DAY,
    add_duration,
    format_duration,
    to_minutes,
    to_time_string,
)


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def new_id(prefix: str = "task") -> str:
    """Fresh process-unique id, e.g. task-3f9c0a1b2d4e."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def today_iso() -> str:
    return date.today().isoformat()


@dataclass(frozen=True)
class ScheduledSlot:
    day: str  # YYYY-MM-DD
    start_time: str  # HH:MM

    @classmethod
    def at(cls, day: str, start_time: str) -> "ScheduledSlot":
        """Build a slot with a canonical zero-padded start time."""
        return cls(day=day, start_time=to_time_string(to_minutes(start_time)))

    @property
    def start_minute(self) -> int:
        return to_minutes(self.start_time)


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    duration: int  # minutes
    due_date: str = field(default_factory=today_iso)
    description: str | None = None
    scheduled: ScheduledSlot | None = None
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    category: str | None = None
    is_non_negotiable: bool = False

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled is not None

    def with_slot(self, day: str, start_time: str) -> "Task":
        return replace(self, scheduled=ScheduledSlot.at(day, start_time))

    def summary(self) -> str:
        """One-line summary for logs and listings."""
        when = (
            f"{self.scheduled.day} {self.scheduled.start_time}" if self.scheduled else "unscheduled"
        )
        return f"{self.title} ({format_duration(self.duration)}, {self.priority}, {when})"

    def to_record(self) -> dict[str, Any]:
        """Flat record, one row per task."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "duration": self.duration,
            "due_date": self.due_date,
            "scheduled_day": self.scheduled.day if self.scheduled else None,
            "scheduled_start_time": self.scheduled.start_time if self.scheduled else None,
            "completed": self.completed,
            "priority": str(self.priority),
            "category": self.category,
            "is_non_negotiable": self.is_non_negotiable,
        }

    @classmethod
    def from_record(cls, row: dict[str, Any]) -> "Task":
        scheduled = None
        if row.get("scheduled_day") and row.get("scheduled_start_time"):
            scheduled = ScheduledSlot.at(row["scheduled_day"], row["scheduled_start_time"])
        return cls(
            id=row["id"],
            title=row["title"],
            description=row.get("description"),
            duration=int(row["duration"]),
            due_date=row.get("due_date") or today_iso(),
            scheduled=scheduled,
            completed=bool(row.get("completed", False)),
            priority=Priority(row.get("priority", Priority.MEDIUM)),
            category=row.get("category"),
            is_non_negotiable=bool(row.get("is_non_negotiable", False)),
        )


@dataclass(frozen=True)
class TimeBlock:
    id: str
    task: Task
    start_time: str
    end_time: str
    day: str

    @classmethod
    def for_task(cls, task: Task) -> "TimeBlock":
        """Project a scheduled task onto its block."""
        slot = task.scheduled
        return cls(
            id=f"block-{task.id}",
            task=task,
            start_time=slot.start_time,
            end_time=add_duration(slot.start_time, task.duration),
            day=slot.day,
        )

    @property
    def start_minute(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minute(self) -> int:
        return to_minutes(self.end_time)

    @property
    def wraps_midnight(self) -> bool:
        """Block reaches 24:00 or later but stays keyed to its start day."""
        return self.start_minute + self.task.duration >= MINUTES_PER_DAY

    def covers(self, minute: int) -> bool:
        """Whether minute-of-day falls in [start, end) on this block's day."""
        if self.wraps_midnight:
            return minute >= self.start_minute
        return self.start_minute <= minute < self.end_minute

    def progress(self, minute: int) -> float:
        """Fraction of the block elapsed at minute-of-day, clamped to [0, 1]."""
        if self.task.duration <= 0:
            return 1.0
        elapsed = minute - self.start_minute
        return max(0.0, min(1.0, elapsed / self.task.duration))


@dataclass(frozen=True)
class DaySchedule:
    date: str
    time_blocks: tuple[TimeBlock, ...] = ()

    def block_at(self, minute: int) -> TimeBlock | None:
        for block in self.time_blocks:
            if block.covers(minute):
                return block
        return None


@dataclass(frozen=True)
class FreeWindow:
    """Candidate window for auto-scheduling."""

    start_time: str
    duration: int


@dataclass(frozen=True)
class PlannerState:
    tasks: tuple[Task, ...] = ()
    non_negotiables: tuple[Task, ...] = ()
    current_date: str = field(default_factory=today_iso)
    schedule: tuple[DaySchedule, ...] = ()

    def day_schedule(self, day: str) -> DaySchedule | None:
        for entry in self.schedule:
            if entry.date == day:
                return entry
        return None

    def find(self, task_id: str) -> Task | None:
        """Look up an id in tasks, then non-negotiables."""
        for task in self.tasks + self.non_negotiables:
            if task.id == task_id:
                return task
        return None
