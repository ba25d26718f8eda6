"""Service-layer exports."""

from .progress_update_service import update_task_notes, update_task_status
from .routine_service import (
    add_task_to_routine,
    add_tasks_to_routine,
    create_routine,
    create_user,
    delete_routine,
    delete_template_task,
    list_user_routines,
    serialize_routine,
    serialize_template_task,
    update_routine,
    update_template_task,
)
from .schedule_parser_service import _parse_date_local
from .stats_service import (
    get_general_user_stats,
    get_user_routine_stats,
    refresh_daily_summary,
    serialize_daily_summary,
)
from .task_scheduler_service import (
    TaskSchedulerService,
    get_task_scheduler_service,
    initialize_task_scheduler,
)
from .task_status_service import TaskStatusService, build_sweep_strategy
from .timeline_service import _get_timeline_data

__all__ = [
    "update_task_status",
    "update_task_notes",
    "create_user",
    "create_routine",
    "add_tasks_to_routine",
    "add_task_to_routine",
    "list_user_routines",
    "update_routine",
    "delete_routine",
    "update_template_task",
    "delete_template_task",
    "serialize_routine",
    "serialize_template_task",
    "_parse_date_local",
    "get_user_routine_stats",
    "get_general_user_stats",
    "refresh_daily_summary",
    "serialize_daily_summary",
    "TaskSchedulerService",
    "initialize_task_scheduler",
    "get_task_scheduler_service",
    "TaskStatusService",
    "build_sweep_strategy",
    "_get_timeline_data",
]
