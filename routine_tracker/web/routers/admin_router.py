"""Admin/debug routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from routine_tracker.services.task_scheduler_service import TaskSchedulerService
from routine_tracker.web import handlers as web_handlers
from routine_tracker.web.dependencies import get_task_scheduler

router = APIRouter()


@router.post("/api/admin/scheduler/run", name="run_scheduler_now")
def run_scheduler_now(scheduler: TaskSchedulerService = Depends(get_task_scheduler)):
    return web_handlers.run_scheduler_now(scheduler)
