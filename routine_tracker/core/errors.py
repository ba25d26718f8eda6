"""Error taxonomy shared by services and the web layer."""

from __future__ import annotations


class RoutineTrackerError(Exception):
    """Base class for all domain errors."""


class ValidationError(RoutineTrackerError, ValueError):
    """Malformed input rejected before any state mutation."""


class NotFoundError(RoutineTrackerError, LookupError):
    """A referenced user, routine, template task or progress row is absent."""


class GatingViolation(RoutineTrackerError):
    """A backward transition was attempted outside the task's time window."""

    def __init__(self, message: str, *, current_status: str | None = None, target_status: str | None = None):
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status


class TransientStorageError(RoutineTrackerError):
    """Storage failure while processing one user inside a sweep."""

    def __init__(self, message: str, *, user_id: int | None = None):
        super().__init__(message)
        self.user_id = user_id


__all__ = [
    "RoutineTrackerError",
    "ValidationError",
    "NotFoundError",
    "GatingViolation",
    "TransientStorageError",
]
