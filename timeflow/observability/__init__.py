"""
Observability module: structured logging and command ids.

Usage:
    import logging

    from timeflow.observability import CommandContext, configure_logging

    configure_logging("DEBUG")
    logger = logging.getLogger(__name__)

    with CommandContext(name="MoveTask"):
        logger.info("Moving task", extra={"task_id": "task-1"})
"""

from .context import CommandContext, generate_command_id, get_command_id, get_command_name
from .logging import HumanFormatter, JSONFormatter, configure_logging

__all__ = [
    # Logging
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    # Context
    "CommandContext",
    "get_command_id",
    "get_command_name",
    "generate_command_id",
]
