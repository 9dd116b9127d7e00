"""
Test configuration — ensures repo root is in sys.path + deterministic clocks.

Every planner built through these fixtures reads time from a FakeClock, so
"current slot" and "today" never depend on when the suite runs.
"""

import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import timeflow.*, api.*, tests.fixtures
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tests.fixtures import DAY, FakeClock  # noqa: E402
from timeflow.config import PlannerConfig  # noqa: E402
from timeflow.planner_store import PlannerStore, init_planner  # noqa: E402
from timeflow.time_truth.models import PlannerState  # noqa: E402


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def planner(clock):
    """Empty planner on DAY with default config."""
    return PlannerStore(PlannerState(current_date=DAY), config=PlannerConfig(), clock=clock)


@pytest.fixture
def seeded_planner(clock):
    """Planner after init: Sleep at 22:00 on DAY, one auto-schedule pass."""
    return init_planner(today=DAY, config=PlannerConfig(), clock=clock)


@pytest.fixture(autouse=True)
def reset_api_planner():
    """Drop the API's global planner between tests."""
    yield
    from api.planner_router import set_planner

    set_planner(None)
