"""FastAPI dependency providers for service objects."""

from __future__ import annotations

from routine_tracker.services.task_scheduler_service import TaskSchedulerService, initialize_task_scheduler
from routine_tracker.services.task_status_service import TaskStatusService


def get_task_scheduler() -> TaskSchedulerService:
    return initialize_task_scheduler()


def get_task_status_service() -> TaskStatusService:
    # 日本語: スケジューラと同じサービスを共有 / English: Share the scheduler's status service
    return initialize_task_scheduler().status_service


__all__ = ["get_task_scheduler", "get_task_status_service"]
