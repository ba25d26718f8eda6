"""Statistics and daily summary routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel import Session

from routine_tracker.core.db import get_db
from routine_tracker.services.task_status_service import TaskStatusService
from routine_tracker.web import handlers as web_handlers
from routine_tracker.web.dependencies import get_task_status_service

router = APIRouter()


@router.get("/api/users/{user_id}/stats", name="api_routine_stats")
def api_routine_stats(
    user_id: int,
    db: Session = Depends(get_db),
    status_service: TaskStatusService = Depends(get_task_status_service),
):
    return web_handlers.api_routine_stats(user_id, db, status_service)


@router.get("/api/users/{user_id}/stats/general", name="api_general_stats")
def api_general_stats(
    user_id: int,
    db: Session = Depends(get_db),
    status_service: TaskStatusService = Depends(get_task_status_service),
):
    return web_handlers.api_general_stats(user_id, db, status_service)


@router.post("/api/users/{user_id}/summary/{date_str}", name="refresh_summary")
def refresh_summary(
    user_id: int,
    date_str: str,
    db: Session = Depends(get_db),
    status_service: TaskStatusService = Depends(get_task_status_service),
):
    return web_handlers.refresh_summary(user_id, date_str, db, status_service)
