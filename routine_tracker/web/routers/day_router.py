"""Day view and progress update routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from routine_tracker.core.db import get_db
from routine_tracker.services.task_status_service import TaskStatusService
from routine_tracker.services.timeline_service import _get_timeline_data
from routine_tracker.web import handlers as web_handlers
from routine_tracker.web.dependencies import get_task_status_service

router = APIRouter()


@router.get("/api/users/{user_id}/day/{date_str}", name="api_day_view")
def api_day_view(
    user_id: int,
    date_str: str,
    db: Session = Depends(get_db),
    status_service: TaskStatusService = Depends(get_task_status_service),
):
    return web_handlers.api_day_view(
        user_id, date_str, db, status_service, get_timeline_data_fn=_get_timeline_data
    )


@router.put("/api/users/{user_id}/progress/{progress_id}/status", name="update_progress_status")
async def update_progress_status(
    request: Request,
    user_id: int,
    progress_id: int,
    db: Session = Depends(get_db),
    status_service: TaskStatusService = Depends(get_task_status_service),
):
    return await web_handlers.update_progress_status(request, user_id, progress_id, db, status_service)


@router.put("/api/users/{user_id}/progress/{progress_id}/notes", name="update_progress_notes")
async def update_progress_notes(
    request: Request,
    user_id: int,
    progress_id: int,
    db: Session = Depends(get_db),
    status_service: TaskStatusService = Depends(get_task_status_service),
):
    return await web_handlers.update_progress_notes(request, user_id, progress_id, db, status_service)
