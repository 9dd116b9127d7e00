"""
Scheduler - Auto-schedule unscheduled tasks into free windows.

The window policy is a placeholder: a small fixed list of candidate windows
(by default a single 14:00 window of 180 minutes) handed out round-robin.
Nothing checks what else already occupies the day, so several tasks can
land on the same start time. Tasks that are already scheduled or completed
are left untouched.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace

from timeflow.config import DEFAULT_WINDOWS, SLEEP_ID
from timeflow.time_truth.block_builder import build_schedule
from timeflow.time_truth.models import FreeWindow, PlannerState, Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleResult:
    task_id: str
    task_title: str
    day: str
    start_time: str
    window_index: int


def candidate_windows(
    non_negotiables: Sequence[Task],
    day: str,
    windows: Sequence[FreeWindow] | None = None,
) -> list[FreeWindow]:
    """
    Candidate windows for a day.

    The sleep non-negotiable is only checked for presence; the same windows
    are offered either way.
    """
    windows = list(windows if windows is not None else DEFAULT_WINDOWS)

    sleep = next(
        (
            t
            for t in non_negotiables
            if t.id == SLEEP_ID and t.scheduled is not None and t.scheduled.day == day
        ),
        None,
    )
    if sleep is None:
        logger.debug("No sleep block on %s, using default windows", day)

    return windows


def plan_unscheduled(
    tasks: Sequence[Task], day: str, windows: Sequence[FreeWindow]
) -> list[ScheduleResult]:
    """
    Assign each unscheduled, incomplete task the next window in turn.

    Returns one ScheduleResult per assigned task, in task order.
    """
    if not windows:
        return []

    results = []
    index = 0
    for task in tasks:
        if task.is_scheduled or task.completed:
            continue

        window = windows[index % len(windows)]
        results.append(
            ScheduleResult(
                task_id=task.id,
                task_title=task.title[:50],
                day=day,
                start_time=window.start_time,
                window_index=index % len(windows),
            )
        )
        index += 1

    return results


def auto_schedule(state: PlannerState, windows: Sequence[FreeWindow] | None = None) -> PlannerState:
    """
    Schedule every unscheduled, incomplete task onto the active day.

    Returns a new state with the schedule regenerated.
    """
    day = state.current_date
    results = plan_unscheduled(
        state.tasks, day, candidate_windows(state.non_negotiables, day, windows)
    )
    assigned = {r.task_id: r for r in results}

    tasks = tuple(
        task.with_slot(assigned[task.id].day, assigned[task.id].start_time)
        if task.id in assigned
        else task
        for task in state.tasks
    )

    for result in results:
        logger.info(
            "Auto-scheduled %s (%s) at %s %s", result.task_id, result.task_title, day, result.start_time
        )
    if not results:
        logger.debug("Auto-schedule: nothing to place on %s", day)

    schedule = build_schedule(tasks, state.non_negotiables)
    return replace(state, tasks=tasks, schedule=tuple(schedule))
