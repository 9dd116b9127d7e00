"""
Planner Store - the single owner of tasks, non-negotiables and the schedule.

State transitions are pure: apply(state, command) returns a new
PlannerState and never mutates the old one. PlannerStore wraps that
function with validation, logging and change notification.

Policies:
- Unknown ids are a no-op (state unchanged), never an error
- Completion is monotonic; an update cannot un-complete a task
- The schedule is rebuilt in one place after every mutation
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime

from timeflow.commands import (
    AddNonNegotiable,
    AddTask,
    AutoScheduleTasks,
    Command,
    CompleteTask,
    DeleteNonNegotiable,
    DeleteTask,
    MoveTask,
    RegenerateSchedule,
    ScheduleTask,
    SetCurrentDate,
    UpdateNonNegotiable,
    UpdateTask,
)
from timeflow.config import SLEEP_ID, PlannerConfig, load_planner_config
from timeflow.errors import NotFoundError, ValidationError
from timeflow.observability import CommandContext
from timeflow.time_truth.block_builder import Conflict, build_schedule, find_conflicts
from timeflow.time_truth.clock import current_slot, time_slots, to_minutes
from timeflow.time_truth.models import (
    FreeWindow,
    PlannerState,
    Priority,
    ScheduledSlot,
    Task,
    TimeBlock,
    new_id,
)
from timeflow.time_truth.scheduler import auto_schedule

logger = logging.getLogger(__name__)

Listener = Callable[[PlannerState], None]


# ==================== Transitions ====================


def recompute_schedule(state: PlannerState) -> PlannerState:
    """Rebuild the derived schedule from the source collections."""
    return replace(state, schedule=tuple(build_schedule(state.tasks, state.non_negotiables)))


def _map_by_id(
    entries: tuple[Task, ...], task_id: str, fn: Callable[[Task], Task]
) -> tuple[Task, ...]:
    if not any(t.id == task_id for t in entries):
        logger.debug("No entry with id %s; leaving collection unchanged", task_id)
        return entries
    return tuple(fn(t) if t.id == task_id else t for t in entries)


def _without_id(entries: tuple[Task, ...], task_id: str) -> tuple[Task, ...]:
    remaining = tuple(t for t in entries if t.id != task_id)
    if len(remaining) == len(entries):
        logger.debug("No entry with id %s to delete", task_id)
    return remaining


def _merge_update(current: Task, incoming: Task) -> Task:
    if current.completed and not incoming.completed:
        logger.debug("Ignoring un-complete of %s", current.id)
        return replace(incoming, completed=True)
    return incoming


def _scheduled(command: ScheduleTask) -> Callable[[Task], Task]:
    return lambda t: t.with_slot(command.day, command.start_time)


def _add_task(state: PlannerState, command: AddTask) -> PlannerState:
    return replace(state, tasks=state.tasks + (command.task,))


def _update_task(state: PlannerState, command: UpdateTask) -> PlannerState:
    new = command.task
    return replace(state, tasks=_map_by_id(state.tasks, new.id, lambda t: _merge_update(t, new)))


def _delete_task(state: PlannerState, command: DeleteTask) -> PlannerState:
    return replace(state, tasks=_without_id(state.tasks, command.task_id))


def _complete_task(state: PlannerState, command: CompleteTask) -> PlannerState:
    return replace(
        state, tasks=_map_by_id(state.tasks, command.task_id, lambda t: replace(t, completed=True))
    )


def _set_current_date(state: PlannerState, command: SetCurrentDate) -> PlannerState:
    return replace(state, current_date=command.date)


def _schedule_task(state: PlannerState, command: ScheduleTask) -> PlannerState:
    return replace(state, tasks=_map_by_id(state.tasks, command.task_id, _scheduled(command)))


def _move_task(state: PlannerState, command: MoveTask) -> PlannerState:
    in_tasks = any(t.id == command.task_id for t in state.tasks)
    in_fixed = any(t.id == command.task_id for t in state.non_negotiables)
    if not (in_tasks or in_fixed):
        logger.debug("No task or non-negotiable with id %s to move", command.task_id)
        return state

    move = _scheduled(command)
    return replace(
        state,
        tasks=tuple(move(t) if t.id == command.task_id else t for t in state.tasks),
        non_negotiables=tuple(
            move(t) if t.id == command.task_id else t for t in state.non_negotiables
        ),
    )


def _add_non_negotiable(state: PlannerState, command: AddNonNegotiable) -> PlannerState:
    return replace(state, non_negotiables=state.non_negotiables + (command.task,))


def _update_non_negotiable(state: PlannerState, command: UpdateNonNegotiable) -> PlannerState:
    new = command.task
    return replace(
        state,
        non_negotiables=_map_by_id(
            state.non_negotiables, new.id, lambda t: _merge_update(t, new)
        ),
    )


def _delete_non_negotiable(state: PlannerState, command: DeleteNonNegotiable) -> PlannerState:
    return replace(state, non_negotiables=_without_id(state.non_negotiables, command.task_id))


_HANDLERS: dict[type, Callable[[PlannerState, Command], PlannerState]] = {
    AddTask: _add_task,
    UpdateTask: _update_task,
    DeleteTask: _delete_task,
    CompleteTask: _complete_task,
    SetCurrentDate: _set_current_date,
    ScheduleTask: _schedule_task,
    MoveTask: _move_task,
    AddNonNegotiable: _add_non_negotiable,
    UpdateNonNegotiable: _update_non_negotiable,
    DeleteNonNegotiable: _delete_non_negotiable,
    RegenerateSchedule: lambda state, command: state,
}

# Commands that leave the schedule alone or rebuild it themselves
_NO_RECOMPUTE = (SetCurrentDate, AutoScheduleTasks)


def apply(
    state: PlannerState,
    command: Command,
    windows: Iterable[FreeWindow] | None = None,
) -> PlannerState:
    """
    Pure transition: old state + command -> new state.

    The command is assumed valid; PlannerStore.dispatch validates first.
    """
    if isinstance(command, AutoScheduleTasks):
        return auto_schedule(state, None if windows is None else list(windows))

    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"Unknown planner command: {type(command).__name__}")

    new_state = handler(state, command)
    if isinstance(command, _NO_RECOMPUTE):
        return new_state
    return recompute_schedule(new_state)


# ==================== Store ====================


class PlannerStore:
    """
    Owner of planner state.

    Commands go through dispatch() one at a time; queries read the current
    immutable snapshot. Not thread-safe: callers sharing a store across
    threads must serialize commands.
    """

    def __init__(
        self,
        state: PlannerState | None = None,
        config: PlannerConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or PlannerConfig()
        self._clock = clock
        self._state = state or PlannerState(current_date=clock().date().isoformat())
        self._listeners: list[Listener] = []

    @property
    def state(self) -> PlannerState:
        return self._state

    def now(self) -> datetime:
        return self._clock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with the new state after every command. Returns unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, command: Command) -> PlannerState:
        """Validate and apply a command. Raises before any change if invalid."""
        name = type(command).__name__
        with CommandContext(name=name):
            try:
                command.validate()
            except ValueError as e:
                logger.warning("Rejected %s: %s", name, e)
                raise

            self._state = apply(self._state, command, self.config.auto_schedule_windows)
            logger.debug("Applied %s", name)

            for listener in list(self._listeners):
                listener(self._state)

        return self._state

    # ==================== Commands ====================

    def _new_entry(
        self,
        prefix: str,
        title: str,
        duration: int,
        due_date: str | None,
        description: str | None,
        priority: Priority | str,
        category: str | None,
        scheduled: ScheduledSlot | None,
        is_non_negotiable: bool,
    ) -> Task:
        try:
            priority = Priority(priority)
        except ValueError as e:
            raise ValidationError(f"Unknown priority: {priority!r}") from e
        return Task(
            id=new_id(prefix),
            title=title,
            duration=duration,
            due_date=due_date or self._state.current_date,
            description=description,
            scheduled=scheduled,
            priority=priority,
            category=category,
            is_non_negotiable=is_non_negotiable,
        )

    def add_task(
        self,
        title: str,
        duration: int,
        *,
        due_date: str | None = None,
        description: str | None = None,
        priority: Priority | str = Priority.MEDIUM,
        category: str | None = None,
        scheduled: ScheduledSlot | None = None,
    ) -> Task:
        """Create a task with a fresh id. Returns the stored task."""
        task = self._new_entry(
            "task", title, duration, due_date, description, priority, category, scheduled, False
        )
        self.dispatch(AddTask(task))
        logger.info("Added task %s: %s", task.id, task.summary())
        return task

    def update_task(self, task: Task) -> None:
        self.dispatch(UpdateTask(task))

    def delete_task(self, task_id: str) -> None:
        self.dispatch(DeleteTask(task_id))

    def complete_task(self, task_id: str) -> None:
        self.dispatch(CompleteTask(task_id))

    def set_current_date(self, day: str) -> None:
        self.dispatch(SetCurrentDate(day))

    def schedule_task(self, task_id: str, start_time: str, day: str) -> None:
        self.dispatch(ScheduleTask(task_id, start_time, day))

    def move_task(self, task_id: str, start_time: str, day: str) -> None:
        self.dispatch(MoveTask(task_id, start_time, day))

    def auto_schedule_tasks(self) -> None:
        self.dispatch(AutoScheduleTasks())

    def add_non_negotiable(
        self,
        title: str,
        duration: int,
        *,
        due_date: str | None = None,
        description: str | None = None,
        priority: Priority | str = Priority.HIGH,
        category: str | None = None,
        scheduled: ScheduledSlot | None = None,
    ) -> Task:
        """Create a fixed commitment with a fresh id. Returns the stored entry."""
        task = self._new_entry(
            "non", title, duration, due_date, description, priority, category, scheduled, True
        )
        self.dispatch(AddNonNegotiable(task))
        logger.info("Added non-negotiable %s: %s", task.id, task.summary())
        return task

    def update_non_negotiable(self, task: Task) -> None:
        self.dispatch(UpdateNonNegotiable(task))

    def delete_non_negotiable(self, task_id: str) -> None:
        self.dispatch(DeleteNonNegotiable(task_id))

    def regenerate_schedule(self) -> None:
        self.dispatch(RegenerateSchedule())

    # ==================== Queries ====================

    def get_task(self, task_id: str) -> Task:
        """Look up a task or non-negotiable by id."""
        task = self._state.find(task_id)
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}")
        return task

    def current_block(self, now: datetime | None = None) -> TimeBlock | None:
        """Block on the current date covering the current slot, if any."""
        now = now or self.now()
        slot = current_slot(now, self.config.slot_minutes)
        today = self._state.day_schedule(self._state.current_date)
        if today is None:
            return None
        return today.block_at(to_minutes(slot))

    def get_current_task(self, now: datetime | None = None) -> Task | None:
        block = self.current_block(now)
        return block.task if block else None

    def unscheduled_tasks(self) -> list[Task]:
        return [t for t in self._state.tasks if not t.is_scheduled and not t.completed]

    def upcoming_tasks(self) -> list[Task]:
        """Scheduled, incomplete tasks ordered by day, then start time."""
        pending = [t for t in self._state.tasks if t.is_scheduled and not t.completed]
        return sorted(pending, key=lambda t: (t.scheduled.day, t.scheduled.start_minute))

    def upcoming_by_day(self) -> list[tuple[str, list[Task]]]:
        groups: dict[str, list[Task]] = {}
        for task in self.upcoming_tasks():
            groups.setdefault(task.scheduled.day, []).append(task)
        return sorted(groups.items())

    def completed_tasks(self) -> list[Task]:
        return [t for t in self._state.tasks if t.completed]

    def conflicts(self, day: str | None = None) -> list[Conflict]:
        """Overlapping blocks on a day (defaults to the current date)."""
        entry = self._state.day_schedule(day or self._state.current_date)
        return find_conflicts(entry) if entry else []

    def timeline(self) -> list[str]:
        """Slot labels for the day grid."""
        return time_slots(
            self.config.timeline_start_hour,
            self.config.timeline_end_hour,
            self.config.slot_minutes,
        )


def init_planner(
    today: str | None = None,
    config: PlannerConfig | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> PlannerStore:
    """
    Create a ready-to-use store.

    Seeds the sleep non-negotiable on today at the configured start time,
    then runs one auto-schedule pass.
    """
    config = config or load_planner_config()
    today = today or clock().date().isoformat()

    store = PlannerStore(PlannerState(current_date=today), config=config, clock=clock)
    sleep = Task(
        id=SLEEP_ID,
        title=config.sleep.title,
        duration=config.sleep.duration,
        due_date=today,
        scheduled=ScheduledSlot.at(today, config.sleep.start_time),
        priority=Priority.HIGH,
        is_non_negotiable=True,
    )
    store.dispatch(AddNonNegotiable(sleep))
    store.auto_schedule_tasks()

    logger.info("Planner initialized for %s", today)
    return store
