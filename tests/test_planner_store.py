"""
Tests for the planner store.

Covers:
- Every command in the transition table
- Tolerant handling of unknown ids
- Validation before state changes
- Current-task lookup against the frozen clock
- Initialization, views, subscriptions
"""

import logging
from dataclasses import dataclass, replace

import pytest

from tests.fixtures import DAY, NEXT_DAY, make_task
from timeflow.commands import AddTask, Command
from timeflow.config import PlannerConfig
from timeflow.errors import NotFoundError, ParseError, ValidationError
from timeflow.planner_store import apply, recompute_schedule
from timeflow.time_truth.models import FreeWindow, PlannerState, Priority, ScheduledSlot


def blocks_on(planner, day=DAY):
    entry = planner.state.day_schedule(day)
    return [] if entry is None else list(entry.time_blocks)


# =============================================================================
# TASK COMMANDS
# =============================================================================


class TestTaskCommands:
    """add/update/delete/complete on the tasks collection."""

    def test_add_task_assigns_id(self, planner):
        task = planner.add_task("Write report", 60)

        assert task.id.startswith("task-")
        assert planner.state.tasks == (task,)
        assert task.due_date == DAY
        assert task.priority == Priority.MEDIUM
        assert task.scheduled is None
        assert task.is_non_negotiable is False

    def test_ids_are_unique(self, planner):
        ids = {planner.add_task(f"Task {i}", 15).id for i in range(200)}

        assert len(ids) == 200

    def test_add_accepts_priority_string(self, planner):
        task = planner.add_task("Gym", 45, priority="high", category="health")

        assert task.priority is Priority.HIGH
        assert task.category == "health"

    def test_add_scheduled_task_appears_in_schedule(self, planner):
        planner.add_task("Standup", 15, scheduled=ScheduledSlot.at(DAY, "9:30"))

        [block] = blocks_on(planner)
        assert (block.start_time, block.end_time) == ("09:30", "09:45")

    @pytest.mark.parametrize(
        "title,duration,kwargs",
        [
            ("", 30, {}),
            ("   ", 30, {}),
            ("Report", 0, {}),
            ("Report", -10, {}),
            ("Report", 30, {"priority": "urgent"}),
            ("Report", 30, {"due_date": "someday"}),
        ],
    )
    def test_invalid_add_rejected_without_change(self, planner, title, duration, kwargs):
        before = planner.state

        with pytest.raises(ValidationError):
            planner.add_task(title, duration, **kwargs)

        assert planner.state is before

    def test_update_replaces_matching_entry(self, planner):
        task = planner.add_task("Draft", 30)

        planner.update_task(replace(task, title="Final draft", duration=45))

        assert planner.get_task(task.id).title == "Final draft"
        assert planner.get_task(task.id).duration == 45

    def test_update_unknown_id_is_noop(self, planner):
        planner.add_task("Draft", 30)
        before = planner.state

        planner.update_task(make_task("missing"))

        assert planner.state == before

    def test_update_cannot_uncomplete(self, planner):
        task = planner.add_task("Draft", 30)
        planner.complete_task(task.id)

        planner.update_task(replace(task, title="Renamed", completed=False))

        updated = planner.get_task(task.id)
        assert updated.title == "Renamed"
        assert updated.completed is True

    def test_invalid_update_rejected(self, planner):
        task = planner.add_task("Draft", 30)

        with pytest.raises(ValidationError):
            planner.update_task(replace(task, title=""))

        assert planner.get_task(task.id).title == "Draft"

    def test_delete_removes_task_and_block(self, planner):
        task = planner.add_task("Draft", 30, scheduled=ScheduledSlot.at(DAY, "10:00"))

        planner.delete_task(task.id)

        assert planner.state.tasks == ()
        assert blocks_on(planner) == []

    def test_delete_unknown_id_keeps_length(self, planner):
        planner.add_task("Draft", 30)

        planner.delete_task("nonexistent")

        assert len(planner.state.tasks) == 1

    def test_complete_is_idempotent(self, planner):
        task = planner.add_task("Draft", 30, scheduled=ScheduledSlot.at(DAY, "10:00"))

        planner.complete_task(task.id)
        planner.complete_task(task.id)

        assert planner.get_task(task.id).completed is True
        assert blocks_on(planner) == []

    def test_complete_unknown_id_is_noop(self, planner):
        planner.add_task("Draft", 30)
        before = planner.state

        planner.complete_task("nonexistent")

        assert planner.state == before


# =============================================================================
# SCHEDULING COMMANDS
# =============================================================================


class TestScheduling:
    """schedule/move/auto-schedule/current date."""

    def test_sleep_and_report_scenario(self, planner):
        planner.add_non_negotiable("Sleep", 480, scheduled=ScheduledSlot.at(DAY, "22:00"))
        task = planner.add_task("Write report", 60)

        planner.schedule_task(task.id, "09:00", DAY)

        spans = {(b.task.title, b.start_time, b.end_time) for b in blocks_on(planner)}
        assert spans == {("Sleep", "22:00", "06:00"), ("Write report", "09:00", "10:00")}

    def test_block_reflects_latest_task(self, planner):
        task = planner.add_task("Draft", 30)
        planner.schedule_task(task.id, "09:00", DAY)

        planner.update_task(replace(planner.get_task(task.id), title="Final"))

        assert blocks_on(planner)[0].task.title == "Final"

    def test_schedule_allows_overlap(self, planner):
        a = planner.add_task("A", 60)
        b = planner.add_task("B", 60)

        planner.schedule_task(a.id, "09:00", DAY)
        planner.schedule_task(b.id, "09:30", DAY)

        assert len(blocks_on(planner)) == 2
        assert len(planner.conflicts()) == 1

    def test_schedule_bad_time_raises_parse_error(self, planner):
        task = planner.add_task("Draft", 30)
        before = planner.state

        with pytest.raises(ParseError):
            planner.schedule_task(task.id, "9am", DAY)

        assert planner.state is before

    def test_schedule_ignores_non_negotiables(self, seeded_planner):
        seeded_planner.schedule_task("sleep", "23:00", DAY)

        assert seeded_planner.get_task("sleep").scheduled.start_time == "22:00"

    def test_move_non_negotiable(self, seeded_planner):
        seeded_planner.move_task("sleep", "23:00", DAY)

        sleep = seeded_planner.get_task("sleep")
        assert sleep.scheduled == ScheduledSlot(DAY, "23:00")
        assert blocks_on(seeded_planner)[0].end_time == "07:00"

    def test_move_task_to_other_day(self, planner):
        task = planner.add_task("Draft", 30, scheduled=ScheduledSlot.at(DAY, "10:00"))

        planner.move_task(task.id, "11:00", NEXT_DAY)

        assert blocks_on(planner) == []
        assert blocks_on(planner, NEXT_DAY)[0].start_time == "11:00"

    def test_move_unknown_id_is_noop(self, seeded_planner):
        before = seeded_planner.state

        seeded_planner.move_task("nonexistent", "10:00", DAY)

        assert seeded_planner.state == before

    def test_auto_schedule_twice(self, seeded_planner):
        tasks = [seeded_planner.add_task(name, 30) for name in ("One", "Two", "Three")]

        seeded_planner.auto_schedule_tasks()
        first = seeded_planner.state
        seeded_planner.auto_schedule_tasks()

        for task in tasks:
            assert seeded_planner.get_task(task.id).scheduled == ScheduledSlot(DAY, "14:00")
        assert seeded_planner.state == first

    def test_auto_schedule_uses_config_windows(self, planner):
        planner.config = PlannerConfig(auto_schedule_windows=(FreeWindow("08:00", 60),))
        task = planner.add_task("Draft", 30)

        planner.auto_schedule_tasks()

        assert planner.get_task(task.id).scheduled.start_time == "08:00"

    def test_set_current_date_keeps_schedule(self, seeded_planner):
        before = seeded_planner.state

        seeded_planner.set_current_date(NEXT_DAY)

        assert seeded_planner.state.current_date == NEXT_DAY
        assert seeded_planner.state.schedule is before.schedule

    def test_set_current_date_rejects_garbage(self, seeded_planner):
        with pytest.raises(ValidationError):
            seeded_planner.set_current_date("next tuesday")

        assert seeded_planner.state.current_date == DAY

    def test_regenerate_schedule(self, seeded_planner):
        before = seeded_planner.state.schedule

        seeded_planner.regenerate_schedule()

        assert seeded_planner.state.schedule == before


# =============================================================================
# NON-NEGOTIABLES
# =============================================================================


class TestNonNegotiables:
    def test_add_marks_entry(self, planner):
        entry = planner.add_non_negotiable("Lunch", 60, scheduled=ScheduledSlot.at(DAY, "12:00"))

        assert entry.id.startswith("non-")
        assert entry.is_non_negotiable is True
        assert entry.priority == Priority.HIGH
        assert planner.state.non_negotiables == (entry,)
        assert planner.state.tasks == ()

    def test_update(self, seeded_planner):
        sleep = seeded_planner.get_task("sleep")

        seeded_planner.update_non_negotiable(replace(sleep, duration=420))

        assert blocks_on(seeded_planner)[0].end_time == "05:00"

    def test_delete(self, seeded_planner):
        seeded_planner.delete_non_negotiable("sleep")

        assert seeded_planner.state.non_negotiables == ()
        assert seeded_planner.state.schedule == ()

    def test_delete_task_does_not_touch_non_negotiables(self, seeded_planner):
        seeded_planner.delete_task("sleep")

        assert len(seeded_planner.state.non_negotiables) == 1


# =============================================================================
# QUERIES
# =============================================================================


class TestCurrentTask:
    """get_current_task() against the FakeClock (09:17 on DAY)."""

    def test_returns_covering_task(self, seeded_planner):
        task = seeded_planner.add_task("Write report", 60)
        seeded_planner.schedule_task(task.id, "09:00", DAY)

        current = seeded_planner.get_current_task()

        assert current.id == task.id

    def test_end_is_exclusive(self, seeded_planner, clock):
        task = seeded_planner.add_task("Write report", 60)
        seeded_planner.schedule_task(task.id, "09:00", DAY)
        clock.set(10, 5)

        assert seeded_planner.get_current_task() is None

    def test_none_when_nothing_covers_slot(self, seeded_planner):
        assert seeded_planner.get_current_task() is None

    def test_none_without_schedule(self, planner):
        assert planner.get_current_task() is None

    def test_sleep_covers_late_evening(self, seeded_planner, clock):
        clock.set(23, 10)

        assert seeded_planner.get_current_task().id == "sleep"

    def test_sleep_not_carried_into_next_morning(self, seeded_planner, clock):
        clock.set(5, 0)

        assert seeded_planner.get_current_task() is None

    def test_uses_current_date_schedule(self, seeded_planner):
        task = seeded_planner.add_task("Write report", 60)
        seeded_planner.schedule_task(task.id, "09:00", DAY)

        seeded_planner.set_current_date(NEXT_DAY)

        assert seeded_planner.get_current_task() is None

    def test_explicit_now(self, seeded_planner, clock):
        task = seeded_planner.add_task("Write report", 60)
        seeded_planner.schedule_task(task.id, "14:00", DAY)

        assert seeded_planner.get_current_task(clock.now.replace(hour=14, minute=45)).id == task.id

    def test_does_not_mutate(self, seeded_planner):
        before = seeded_planner.state

        seeded_planner.get_current_task()

        assert seeded_planner.state is before


class TestViews:
    def test_task_lists(self, planner):
        loose = planner.add_task("Loose", 30)
        later = planner.add_task("Later", 30, scheduled=ScheduledSlot.at(NEXT_DAY, "08:00"))
        afternoon = planner.add_task("Afternoon", 30, scheduled=ScheduledSlot.at(DAY, "15:00"))
        morning = planner.add_task("Morning", 30, scheduled=ScheduledSlot.at(DAY, "09:00"))
        done = planner.add_task("Done", 30)
        planner.complete_task(done.id)

        assert [t.id for t in planner.unscheduled_tasks()] == [loose.id]
        assert [t.id for t in planner.upcoming_tasks()] == [morning.id, afternoon.id, later.id]
        assert [t.id for t in planner.completed_tasks()] == [done.id]

        grouped = planner.upcoming_by_day()
        assert [day for day, _ in grouped] == [DAY, NEXT_DAY]
        assert [t.id for t in grouped[0][1]] == [morning.id, afternoon.id]

    def test_get_task_unknown(self, planner):
        with pytest.raises(NotFoundError):
            planner.get_task("nonexistent")

    def test_timeline(self, planner):
        slots = planner.timeline()

        assert slots[0] == "06:00"
        assert len(slots) == 36

    def test_conflicts_default_to_current_date(self, seeded_planner):
        for name in ("One", "Two"):
            seeded_planner.add_task(name, 30)
        seeded_planner.auto_schedule_tasks()

        assert len(seeded_planner.conflicts()) == 1
        assert seeded_planner.conflicts(NEXT_DAY) == []


# =============================================================================
# STORE MECHANICS
# =============================================================================


class TestStoreMechanics:
    def test_init_seeds_sleep(self, seeded_planner):
        state = seeded_planner.state

        assert state.current_date == DAY
        [sleep] = state.non_negotiables
        assert sleep.id == "sleep"
        assert sleep.title == "Sleep"
        assert sleep.duration == 480
        assert sleep.priority == Priority.HIGH
        assert sleep.is_non_negotiable is True
        assert sleep.scheduled == ScheduledSlot(DAY, "22:00")
        [block] = state.day_schedule(DAY).time_blocks
        assert (block.start_time, block.end_time) == ("22:00", "06:00")

    def test_subscribe_and_unsubscribe(self, planner):
        seen = []
        unsubscribe = planner.subscribe(seen.append)

        planner.add_task("One", 30)
        unsubscribe()
        planner.add_task("Two", 30)

        assert len(seen) == 1
        assert [t.title for t in seen[0].tasks] == ["One"]

    def test_rejected_command_logged(self, planner, caplog):
        with caplog.at_level(logging.WARNING, logger="timeflow.planner_store"):
            with pytest.raises(ValidationError):
                planner.add_task("", 30)

        assert "Rejected AddTask" in caplog.text

    def test_apply_is_pure(self):
        state = PlannerState(current_date=DAY)
        task = make_task("t1", scheduled=ScheduledSlot.at(DAY, "09:00"))

        new_state = apply(state, AddTask(task))

        assert state.tasks == ()
        assert new_state.tasks == (task,)
        assert new_state.day_schedule(DAY).time_blocks[0].id == "block-t1"

    def test_apply_rejects_unknown_command(self):
        @dataclass(frozen=True)
        class Bogus(Command):
            pass

        with pytest.raises(TypeError):
            apply(PlannerState(current_date=DAY), Bogus())

    def test_recompute_matches_builder(self, seeded_planner):
        state = seeded_planner.state

        assert recompute_schedule(replace(state, schedule=())) == state
