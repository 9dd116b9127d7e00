"""
Test fixtures for deterministic testing.

This module provides:
- DAY / NEXT_DAY: the pinned planner dates
- FakeClock: settable wall clock (defaults to FROZEN_NOW, 09:17 on DAY)
- make_task: Task factory
"""

from .planner_fixtures import DAY, FROZEN_NOW, NEXT_DAY, FakeClock, make_task

__all__ = ["DAY", "FROZEN_NOW", "NEXT_DAY", "FakeClock", "make_task"]
