"""
Block Builder - Project scheduled entries onto per-day time blocks.

The schedule is a pure projection of the task and non-negotiable
collections:
- Only entries with a scheduled slot that are not completed get a block
- Days appear in order of first occurrence
- Blocks are not reordered and overlaps are not rejected
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from timeflow.time_truth.clock import MINUTES_PER_DAY, to_time_string
from timeflow.time_truth.models import DaySchedule, Task, TimeBlock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    block_a_id: str
    block_b_id: str
    overlap_start: str
    overlap_end: str
    day: str


def build_schedule(tasks: Iterable[Task], non_negotiables: Iterable[Task]) -> list[DaySchedule]:
    """
    Build one DaySchedule per day that has scheduled, incomplete entries.

    Non-negotiables are placed before tasks within a day. Calling this twice
    on the same input yields equal output.
    """
    by_day: dict[str, list[TimeBlock]] = {}

    for task in [*non_negotiables, *tasks]:
        if not task.is_scheduled or task.completed:
            continue
        by_day.setdefault(task.scheduled.day, []).append(TimeBlock.for_task(task))

    schedule = [DaySchedule(date=day, time_blocks=tuple(blocks)) for day, blocks in by_day.items()]
    logger.debug(
        "Built schedule: %d days, %d blocks",
        len(schedule),
        sum(len(d.time_blocks) for d in schedule),
    )
    return schedule


def sort_schedule(schedule: Iterable[DaySchedule]) -> list[DaySchedule]:
    """Days in calendar order (ISO dates sort lexicographically)."""
    return sorted(schedule, key=lambda d: d.date)


def _interval(block: TimeBlock) -> tuple[int, int]:
    # Wrapping blocks are clipped at midnight, matching TimeBlock.covers
    start = block.start_minute
    if block.wraps_midnight:
        return start, MINUTES_PER_DAY
    return start, start + block.task.duration


def find_conflicts(day_schedule: DaySchedule) -> list[Conflict]:
    """
    Detect overlapping blocks within a day.

    Overlaps are allowed in state (manual moves and auto-scheduling can both
    produce them); this only reports them.
    """
    blocks = day_schedule.time_blocks
    conflicts = []

    for i, a in enumerate(blocks):
        a_start, a_end = _interval(a)
        for b in blocks[i + 1 :]:
            b_start, b_end = _interval(b)

            # Overlap exists if one starts before the other ends
            if a_start < b_end and b_start < a_end:
                conflicts.append(
                    Conflict(
                        block_a_id=a.id,
                        block_b_id=b.id,
                        overlap_start=to_time_string(max(a_start, b_start)),
                        overlap_end=to_time_string(min(a_end, b_end)),
                        day=day_schedule.date,
                    )
                )

    return conflicts
