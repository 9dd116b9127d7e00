"""
Command context management with context-local storage.

Every log line emitted while the store applies a command can be traced
back to that command by its id and name.
"""

import contextvars
import uuid
from typing import Optional

_command_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "command_id", default=None
)
_command_name_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "command_name", default=None
)


def get_command_id() -> Optional[str]:
    """Get the id of the command being applied, if any."""
    return _command_id_var.get()


def get_command_name() -> Optional[str]:
    """Get the type name of the command being applied (e.g. "MoveTask"), if any."""
    return _command_name_var.get()


def generate_command_id() -> str:
    return f"cmd-{uuid.uuid4().hex[:16]}"


class CommandContext:
    """
    Context manager tagging logs emitted while a command is applied.

    Usage:
        with CommandContext(name="AddTask"):
            logger.info("Applying")  # carries command_id and command
    """

    def __init__(self, name: str = "", command_id: Optional[str] = None):
        self.name = name
        self.command_id = command_id or generate_command_id()
        self._tokens: list[contextvars.Token] = []

    def __enter__(self) -> "CommandContext":
        self._tokens = [
            _command_id_var.set(self.command_id),
            _command_name_var.set(self.name or None),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._tokens:
            id_token, name_token = self._tokens
            _command_name_var.reset(name_token)
            _command_id_var.reset(id_token)
            self._tokens = []
