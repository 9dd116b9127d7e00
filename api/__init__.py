"""HTTP adapter for the TimeFlow planner."""
