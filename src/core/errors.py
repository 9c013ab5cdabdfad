"""
Error taxonomy for schedule operations.
Every error is scoped to the action that triggered it.
"""


class ScheduleError(Exception):
    """Base exception for schedule operations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ScheduleError):
    """A required field is missing or holds a value outside its enumeration."""
    pass


class StoreError(ScheduleError):
    """The backing store reported a failure."""
    pass


class NotFoundError(ScheduleError):
    """No entry matches the requested id."""
    pass
