"""
Centralized configuration for the TimeFlow planner.

Values that vary by deployment come from environment variables; planner
tuning (timeline hours, sleep seed, auto-schedule windows) comes from
config/planner.yaml.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from timeflow.errors import ParseError
from timeflow.time_truth.clock import SLOT_MINUTES, to_minutes
from timeflow.time_truth.models import FreeWindow

logger = logging.getLogger(__name__)

# ============================================================
# Environment
# ============================================================

LOG_LEVEL: str = os.environ.get("TIMEFLOW_LOG_LEVEL", "INFO")
"""Root log level passed to configure_logging()."""

CONFIG_PATH: Path = Path(
    os.environ.get("TIMEFLOW_CONFIG", Path(__file__).parent.parent / "config" / "planner.yaml")
)
"""Planner YAML config location."""

# ============================================================
# Planner defaults
# ============================================================

SLEEP_ID = "sleep"
"""Fixed id of the seeded sleep non-negotiable; the auto-scheduler keys on it."""

DEFAULT_WINDOWS = (FreeWindow(start_time="14:00", duration=180),)


@dataclass(frozen=True)
class SleepSeed:
    title: str = "Sleep"
    duration: int = 480
    start_time: str = "22:00"


@dataclass(frozen=True)
class PlannerConfig:
    slot_minutes: int = SLOT_MINUTES
    timeline_start_hour: int = 6
    timeline_end_hour: int = 23
    sleep: SleepSeed = field(default_factory=SleepSeed)
    auto_schedule_windows: tuple[FreeWindow, ...] = DEFAULT_WINDOWS

    def __post_init__(self):
        if self.slot_minutes <= 0 or 60 % self.slot_minutes:
            raise ValueError(f"slot_minutes must divide an hour: {self.slot_minutes}")
        if not 0 <= self.timeline_start_hour <= self.timeline_end_hour <= 23:
            raise ValueError(
                f"timeline hours out of range: "
                f"{self.timeline_start_hour}-{self.timeline_end_hour}"
            )


def _int(section: dict, key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"'{key}' must be an integer, got {value!r}") from e


def _parse_window(raw: dict) -> FreeWindow:
    if not isinstance(raw, dict) or "start_time" not in raw:
        raise ValueError(f"auto_schedule window needs start_time: {raw!r}")
    start_time = str(raw["start_time"])
    try:
        to_minutes(start_time)
    except ParseError as e:
        raise ValueError(f"auto_schedule window: {e}") from e
    duration = _int(raw, "duration", 60)
    if duration <= 0:
        raise ValueError(f"auto_schedule window duration must be positive: {duration}")
    return FreeWindow(start_time=start_time, duration=duration)


def _section(data: dict, key: str) -> dict:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ValueError(f"planner.yaml section '{key}' must be a mapping")
    return section


def load_planner_config(path: Optional[str] = None) -> PlannerConfig:
    """
    Load planner config from YAML.

    A missing file yields the built-in defaults.

    Raises:
        yaml.YAMLError if the file is invalid YAML.
        ValueError if a section has the wrong shape.
    """
    config_path = Path(path) if path else CONFIG_PATH
    if not config_path.exists():
        logger.info("No planner config at %s, using defaults", config_path)
        return PlannerConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError("planner.yaml must be a mapping")

    timeline = _section(data, "timeline")
    sleep = _section(data, "sleep")
    windows = _section(data, "auto_schedule").get("windows")
    if windows is not None and not isinstance(windows, list):
        raise ValueError("auto_schedule.windows must be a list")

    seed = SleepSeed(
        title=str(sleep.get("title", SleepSeed.title)),
        duration=_int(sleep, "duration", SleepSeed.duration),
        start_time=str(sleep.get("start_time", SleepSeed.start_time)),
    )
    if seed.duration <= 0:
        raise ValueError(f"sleep duration must be positive: {seed.duration}")
    try:
        to_minutes(seed.start_time)
    except ParseError as e:
        # Unquoted 22:00 is read by YAML as a base-60 integer
        raise ValueError(f"sleep start_time: {e}") from e

    # PlannerConfig validates slot size and timeline hours
    config = PlannerConfig(
        slot_minutes=_int(timeline, "slot_minutes", SLOT_MINUTES),
        timeline_start_hour=_int(timeline, "start_hour", 6),
        timeline_end_hour=_int(timeline, "end_hour", 23),
        sleep=seed,
        auto_schedule_windows=(
            tuple(_parse_window(w) for w in windows) if windows is not None else DEFAULT_WINDOWS
        ),
    )
    logger.debug("Loaded planner config from %s: %s", config_path, config)
    return config
