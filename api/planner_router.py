"""
Planner API Router — REST endpoints over the planner store.

Endpoints:
- GET /planner/state — full snapshot (tasks, non-negotiables, schedule, current date)
- GET /planner/current — task covering the current slot
- GET /planner/timeline — slot labels for the day grid
- GET /planner/conflicts — overlapping blocks on a day
- GET /planner/tasks/{task_id} — one task or non-negotiable
- POST /planner/tasks — add task
- PUT /planner/tasks/{task_id} — replace task
- DELETE /planner/tasks/{task_id} — delete task
- POST /planner/tasks/{task_id}/complete — mark complete
- POST /planner/tasks/{task_id}/schedule — schedule task
- POST /planner/tasks/{task_id}/move — move task or non-negotiable (drop target)
- POST /planner/auto-schedule — place unscheduled tasks
- PUT /planner/current-date — navigate to a day
- POST/PUT/DELETE /planner/non-negotiables[/{task_id}] — fixed commitments

Unknown ids on mutations are a no-op, matching the store. Commands are
serialized through one lock per planner.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from timeflow.errors import NotFoundError, ParseError, ValidationError
from timeflow.planner_store import PlannerStore, init_planner
from timeflow.time_truth.block_builder import Conflict
from timeflow.time_truth.clock import current_slot
from timeflow.time_truth.models import (
    DaySchedule,
    PlannerState,
    Priority,
    ScheduledSlot,
    Task,
    TimeBlock,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/planner", tags=["planner"])

# Global planner instance
_planner: PlannerStore | None = None
_lock = threading.Lock()
_init_lock = threading.Lock()


def get_planner() -> PlannerStore:
    """Get or create the global planner."""
    global _planner
    if _planner is None:
        with _init_lock:
            if _planner is None:
                _planner = init_planner()
    return _planner


def set_planner(planner: PlannerStore | None) -> None:
    """Swap the global planner (None resets to lazy init)."""
    global _planner
    _planner = planner


# Pydantic models for API
class SlotModel(BaseModel):
    day: str = Field(..., description="YYYY-MM-DD")
    start_time: str = Field(..., description="HH:MM")


class TaskCreateRequest(BaseModel):
    """Request to add a task or non-negotiable."""

    title: str = Field(..., min_length=1)
    duration: int = Field(..., gt=0, description="Minutes")
    due_date: str | None = Field(default=None, description="YYYY-MM-DD, defaults to current date")
    description: str | None = None
    priority: Priority | None = Field(
        default=None, description="Defaults to medium for tasks, high for non-negotiables"
    )
    category: str | None = None
    scheduled: SlotModel | None = None


class TaskUpdateRequest(TaskCreateRequest):
    """Full replacement of an existing entry."""

    due_date: str = Field(..., description="YYYY-MM-DD")
    completed: bool = False


class SlotRequest(BaseModel):
    """Target slot for schedule/move."""

    start_time: str = Field(..., description="HH:MM")
    day: str = Field(..., description="YYYY-MM-DD")


class CurrentDateRequest(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")


class TaskResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    duration: int
    due_date: str
    scheduled: SlotModel | None = None
    completed: bool
    priority: Priority
    category: str | None = None
    is_non_negotiable: bool


class TimeBlockResponse(BaseModel):
    id: str
    task: TaskResponse
    start_time: str
    end_time: str
    day: str


class DayScheduleResponse(BaseModel):
    date: str
    time_blocks: list[TimeBlockResponse] = Field(default_factory=list)


class StateResponse(BaseModel):
    """Full planner snapshot."""

    tasks: list[TaskResponse]
    non_negotiables: list[TaskResponse]
    schedule: list[DayScheduleResponse]
    current_date: str


class CurrentTaskResponse(BaseModel):
    current_slot: str
    task: TaskResponse | None = None
    block_id: str | None = None
    progress: float | None = Field(default=None, description="Fraction of the block elapsed")


class ConflictResponse(BaseModel):
    block_a_id: str
    block_b_id: str
    overlap_start: str
    overlap_end: str
    day: str


class ConflictListResponse(BaseModel):
    count: int
    conflicts: list[ConflictResponse] = Field(default_factory=list)


# Serialization


def _task_out(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "duration": task.duration,
        "due_date": task.due_date,
        "scheduled": (
            {"day": task.scheduled.day, "start_time": task.scheduled.start_time}
            if task.scheduled
            else None
        ),
        "completed": task.completed,
        "priority": task.priority,
        "category": task.category,
        "is_non_negotiable": task.is_non_negotiable,
    }


def _block_out(block: TimeBlock) -> dict[str, Any]:
    return {
        "id": block.id,
        "task": _task_out(block.task),
        "start_time": block.start_time,
        "end_time": block.end_time,
        "day": block.day,
    }


def _day_out(day: DaySchedule) -> dict[str, Any]:
    return {"date": day.date, "time_blocks": [_block_out(b) for b in day.time_blocks]}


def _state_out(state: PlannerState) -> dict[str, Any]:
    return {
        "tasks": [_task_out(t) for t in state.tasks],
        "non_negotiables": [_task_out(t) for t in state.non_negotiables],
        "schedule": [_day_out(d) for d in state.schedule],
        "current_date": state.current_date,
    }


def _conflict_out(conflict: Conflict) -> dict[str, Any]:
    return {
        "block_a_id": conflict.block_a_id,
        "block_b_id": conflict.block_b_id,
        "overlap_start": conflict.overlap_start,
        "overlap_end": conflict.overlap_end,
        "day": conflict.day,
    }


def _slot(model: SlotModel | None) -> ScheduledSlot | None:
    return ScheduledSlot.at(model.day, model.start_time) if model else None


def _run(action: Callable[[PlannerStore], Any]) -> Any:
    """Apply an action under the planner lock, mapping planner errors to HTTP."""
    with _lock:
        planner = get_planner()
        try:
            return action(planner)
        except (ValidationError, ParseError) as e:
            logger.warning("Rejected request: %s", e)
            raise HTTPException(status_code=422, detail=str(e)) from e
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e


def _create(request: TaskCreateRequest, non_negotiable: bool) -> dict[str, Any]:
    def action(planner: PlannerStore) -> Task:
        add = planner.add_non_negotiable if non_negotiable else planner.add_task
        fields = {
            "due_date": request.due_date,
            "description": request.description,
            "category": request.category,
            "scheduled": _slot(request.scheduled),
        }
        # Unset priority keeps the store default for the kind of entry
        if request.priority is not None:
            fields["priority"] = request.priority
        return add(request.title, request.duration, **fields)

    return _task_out(_run(action))


def _default_priority(non_negotiable: bool) -> Priority:
    return Priority.HIGH if non_negotiable else Priority.MEDIUM


def _replacement(task_id: str, request: TaskUpdateRequest, non_negotiable: bool) -> Task:
    return Task(
        id=task_id,
        title=request.title,
        duration=request.duration,
        due_date=request.due_date,
        description=request.description,
        scheduled=_slot(request.scheduled),
        completed=request.completed,
        priority=request.priority or _default_priority(non_negotiable),
        category=request.category,
        is_non_negotiable=non_negotiable,
    )


# Queries


@router.get("/state", response_model=StateResponse)
async def get_state():
    """Full planner snapshot."""
    return _state_out(get_planner().state)


@router.get("/current", response_model=CurrentTaskResponse)
async def get_current():
    """Task covering the current 30-minute slot on the current date."""

    def action(planner: PlannerStore) -> dict[str, Any]:
        now = planner.now()
        slot = current_slot(now, planner.config.slot_minutes)
        block = planner.current_block(now)
        if block is None:
            return {"current_slot": slot}
        return {
            "current_slot": slot,
            "task": _task_out(block.task),
            "block_id": block.id,
            "progress": block.progress(now.hour * 60 + now.minute),
        }

    return _run(action)


@router.get("/timeline", response_model=list[str])
async def get_timeline():
    """Slot labels for the day grid."""
    return get_planner().timeline()


@router.get("/conflicts", response_model=ConflictListResponse)
async def get_conflicts(day: str | None = None):
    """Overlapping blocks for a day (defaults to the current date)."""
    conflicts = _run(lambda planner: planner.conflicts(day))
    return {"count": len(conflicts), "conflicts": [_conflict_out(c) for c in conflicts]}


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str):
    return _task_out(_run(lambda planner: planner.get_task(task_id)))


# Task commands


@router.post("/tasks", response_model=TaskResponse, status_code=201)
async def add_task(request: TaskCreateRequest):
    return _create(request, non_negotiable=False)


@router.put("/tasks/{task_id}", response_model=StateResponse)
async def update_task(task_id: str, request: TaskUpdateRequest):
    def action(planner: PlannerStore) -> PlannerState:
        planner.update_task(_replacement(task_id, request, non_negotiable=False))
        return planner.state

    return _state_out(_run(action))


@router.delete("/tasks/{task_id}", response_model=StateResponse)
async def delete_task(task_id: str):
    def action(planner: PlannerStore) -> PlannerState:
        planner.delete_task(task_id)
        return planner.state

    return _state_out(_run(action))


@router.post("/tasks/{task_id}/complete", response_model=StateResponse)
async def complete_task(task_id: str):
    def action(planner: PlannerStore) -> PlannerState:
        planner.complete_task(task_id)
        return planner.state

    return _state_out(_run(action))


@router.post("/tasks/{task_id}/schedule", response_model=StateResponse)
async def schedule_task(task_id: str, request: SlotRequest):
    def action(planner: PlannerStore) -> PlannerState:
        planner.schedule_task(task_id, request.start_time, request.day)
        return planner.state

    return _state_out(_run(action))


@router.post("/tasks/{task_id}/move", response_model=StateResponse)
async def move_task(task_id: str, request: SlotRequest):
    """Drop a task or non-negotiable onto a new slot."""

    def action(planner: PlannerStore) -> PlannerState:
        planner.move_task(task_id, request.start_time, request.day)
        return planner.state

    return _state_out(_run(action))


@router.post("/auto-schedule", response_model=StateResponse)
async def auto_schedule_tasks():
    def action(planner: PlannerStore) -> PlannerState:
        planner.auto_schedule_tasks()
        return planner.state

    return _state_out(_run(action))


@router.put("/current-date", response_model=StateResponse)
async def set_current_date(request: CurrentDateRequest):
    def action(planner: PlannerStore) -> PlannerState:
        planner.set_current_date(request.date)
        return planner.state

    return _state_out(_run(action))


# Non-negotiable commands


@router.post("/non-negotiables", response_model=TaskResponse, status_code=201)
async def add_non_negotiable(request: TaskCreateRequest):
    return _create(request, non_negotiable=True)


@router.put("/non-negotiables/{task_id}", response_model=StateResponse)
async def update_non_negotiable(task_id: str, request: TaskUpdateRequest):
    def action(planner: PlannerStore) -> PlannerState:
        planner.update_non_negotiable(_replacement(task_id, request, non_negotiable=True))
        return planner.state

    return _state_out(_run(action))


@router.delete("/non-negotiables/{task_id}", response_model=StateResponse)
async def delete_non_negotiable(task_id: str):
    def action(planner: PlannerStore) -> PlannerState:
        planner.delete_non_negotiable(task_id)
        return planner.state

    return _state_out(_run(action))
