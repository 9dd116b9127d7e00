"""
Planner commands.

The closed set of transitions the store accepts. Each command validates its
own payload; PlannerStore.dispatch calls validate() before the state is
touched, so a rejected command leaves no trace.
"""

from dataclasses import dataclass
from datetime import date

from timeflow.errors import ValidationError
from timeflow.time_truth.clock import to_minutes
from timeflow.time_truth.models import Priority, Task


def validate_day(day: str) -> None:
    """Reject anything that is not an ISO YYYY-MM-DD date."""
    try:
        date.fromisoformat(day)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid date (use YYYY-MM-DD): {day!r}") from e


def validate_task(task: Task) -> None:
    if not isinstance(task.title, str) or not task.title.strip():
        raise ValidationError("Task title must not be empty")
    if isinstance(task.duration, bool) or not isinstance(task.duration, int):
        raise ValidationError(f"Task duration must be an integer, got {task.duration!r}")
    if task.duration <= 0:
        raise ValidationError(f"Task duration must be positive, got {task.duration}")
    if task.priority not in tuple(Priority):
        raise ValidationError(f"Unknown priority: {task.priority!r}")
    validate_day(task.due_date)
    if task.scheduled is not None:
        validate_day(task.scheduled.day)
        to_minutes(task.scheduled.start_time)


class Command:
    """Base class for planner commands."""

    def validate(self) -> None:
        pass


@dataclass(frozen=True)
class AddTask(Command):
    task: Task

    def validate(self) -> None:
        validate_task(self.task)


@dataclass(frozen=True)
class UpdateTask(Command):
    task: Task

    def validate(self) -> None:
        validate_task(self.task)


@dataclass(frozen=True)
class DeleteTask(Command):
    task_id: str


@dataclass(frozen=True)
class CompleteTask(Command):
    task_id: str


@dataclass(frozen=True)
class SetCurrentDate(Command):
    date: str

    def validate(self) -> None:
        validate_day(self.date)


@dataclass(frozen=True)
class ScheduleTask(Command):
    task_id: str
    start_time: str
    day: str

    def validate(self) -> None:
        to_minutes(self.start_time)
        validate_day(self.day)


@dataclass(frozen=True)
class MoveTask(ScheduleTask):
    """Drop target of a drag: applies to tasks and non-negotiables."""

    pass


@dataclass(frozen=True)
class AutoScheduleTasks(Command):
    pass


@dataclass(frozen=True)
class AddNonNegotiable(AddTask):
    pass


@dataclass(frozen=True)
class UpdateNonNegotiable(UpdateTask):
    pass


@dataclass(frozen=True)
class DeleteNonNegotiable(DeleteTask):
    pass


@dataclass(frozen=True)
class RegenerateSchedule(Command):
    pass
