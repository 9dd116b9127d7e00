"""
Planner error taxonomy.

- ParseError: malformed "HH:MM" time string. Propagates to the caller.
- ValidationError: a command carries invalid fields (empty title,
  non-positive duration, bad date). Raised before the state changes.
- NotFoundError: an explicit lookup named an unknown id. Commands never
  raise it; unknown ids are a no-op there.
"""


class PlannerError(Exception):
    """Base class for planner errors."""

    pass


class ParseError(PlannerError, ValueError):
    """Raised when a time string cannot be parsed."""

    pass


class ValidationError(PlannerError, ValueError):
    """Raised when a command is rejected before entering the store."""

    pass


class NotFoundError(PlannerError, LookupError):
    """Raised by lookups that reference an unknown task id."""

    pass
