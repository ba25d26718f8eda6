"""Core package exports."""

from .clock import FixedClock, NowFn, system_now
from .config import (
    BASE_DIR,
    DAILY_TASK_CRON,
    DATABASE_URL,
    EXPIRED_TASK_CRON,
    PROXY_PREFIX,
    get_status_grace_minutes,
    get_sweep_max_workers,
    is_scheduler_enabled,
)
from .errors import (
    GatingViolation,
    NotFoundError,
    RoutineTrackerError,
    TransientStorageError,
    ValidationError,
)

__all__ = [
    "BASE_DIR",
    "DATABASE_URL",
    "PROXY_PREFIX",
    "DAILY_TASK_CRON",
    "EXPIRED_TASK_CRON",
    "get_status_grace_minutes",
    "get_sweep_max_workers",
    "is_scheduler_enabled",
    "FixedClock",
    "NowFn",
    "system_now",
    "RoutineTrackerError",
    "ValidationError",
    "NotFoundError",
    "GatingViolation",
    "TransientStorageError",
]
