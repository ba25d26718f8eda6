"""User, routine and template task CRUD routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from routine_tracker.core.db import get_db
from routine_tracker.services.task_status_service import TaskStatusService
from routine_tracker.web import handlers as web_handlers
from routine_tracker.web.dependencies import get_task_status_service

router = APIRouter()


@router.post("/api/users", name="create_user", status_code=201)
async def create_user(request: Request, db: Session = Depends(get_db)):
    return await web_handlers.create_user(request, db)


@router.get("/api/users/{user_id}/routines", name="api_routines")
def api_routines(user_id: int, db: Session = Depends(get_db)):
    return web_handlers.api_routines(user_id, db)


@router.post("/api/users/{user_id}/routines", name="add_routine", status_code=201)
async def add_routine(
    request: Request,
    user_id: int,
    db: Session = Depends(get_db),
    status_service: TaskStatusService = Depends(get_task_status_service),
):
    return await web_handlers.add_routine(request, user_id, db, status_service)


@router.patch("/api/users/{user_id}/routines/{routine_id}", name="update_routine")
async def update_routine(request: Request, user_id: int, routine_id: int, db: Session = Depends(get_db)):
    return await web_handlers.update_routine(request, user_id, routine_id, db)


@router.delete("/api/users/{user_id}/routines/{routine_id}", name="delete_routine")
def delete_routine(user_id: int, routine_id: int, db: Session = Depends(get_db)):
    return web_handlers.delete_routine(user_id, routine_id, db)


@router.post("/api/users/{user_id}/routines/{routine_id}/tasks", name="add_tasks", status_code=201)
async def add_tasks(
    request: Request,
    user_id: int,
    routine_id: int,
    db: Session = Depends(get_db),
    status_service: TaskStatusService = Depends(get_task_status_service),
):
    return await web_handlers.add_tasks(request, user_id, routine_id, db, status_service)


@router.patch("/api/users/{user_id}/tasks/{task_id}", name="update_template_task")
async def update_template_task(
    request: Request,
    user_id: int,
    task_id: int,
    db: Session = Depends(get_db),
    status_service: TaskStatusService = Depends(get_task_status_service),
):
    return await web_handlers.update_template_task(request, user_id, task_id, db, status_service)


@router.delete("/api/users/{user_id}/tasks/{task_id}", name="delete_template_task")
def delete_template_task(user_id: int, task_id: int, db: Session = Depends(get_db)):
    return web_handlers.delete_template_task(user_id, task_id, db)
