"""SQLModel exports for Routine Tracker."""

from .routine_models import (
    CLIENT_STATUSES,
    OPEN_STATUSES,
    Routine,
    RoutineTemplateTask,
    TaskPriority,
    TaskProgress,
    TaskStatus,
    parse_task_priority,
    parse_task_status,
)
from .summary_models import (
    DailyStats,
    DailySummary,
    GeneralUserStats,
    RoutineStats,
    WeeklyStats,
    calculate_progress_percent,
)
from .user_models import Category, User

__all__ = [
    "User",
    "Category",
    "Routine",
    "RoutineTemplateTask",
    "TaskProgress",
    "TaskPriority",
    "TaskStatus",
    "OPEN_STATUSES",
    "CLIENT_STATUSES",
    "parse_task_status",
    "parse_task_priority",
    "DailySummary",
    "DailyStats",
    "WeeklyStats",
    "RoutineStats",
    "GeneralUserStats",
    "calculate_progress_percent",
]
