"""HTTP handler implementations used by the routers."""

from __future__ import annotations

import datetime
from typing import Any, Dict

from fastapi import Request
from sqlmodel import Session

from routine_tracker.core.errors import ValidationError
from routine_tracker.services import progress_store, progress_update_service, routine_service, stats_service
from routine_tracker.services.schedule_parser_service import _parse_date_local
from routine_tracker.services.task_scheduler_service import TaskSchedulerService
from routine_tracker.services.task_status_service import TaskStatusService
from routine_tracker.services.timeline_service import _serialize_progress


async def _read_json_object(request: Request) -> Dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON") from None
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _serialize_user(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "display_name": user.display_name,
        "is_active": user.is_active,
    }


async def create_user(request: Request, db: Session):
    payload = await _read_json_object(request)
    user = routine_service.create_user(db, payload.get("display_name"))
    return _serialize_user(user)


def api_routines(user_id: int, db: Session):
    routines = routine_service.list_user_routines(db, user_id)
    return {"routines": [routine_service.serialize_routine(routine) for routine in routines]}


async def add_routine(request: Request, user_id: int, db: Session, status_service: TaskStatusService):
    payload = await _read_json_object(request)
    routine = routine_service.create_routine(db, user_id, payload, now=status_service.now())
    return routine_service.serialize_routine(routine)


async def update_routine(request: Request, user_id: int, routine_id: int, db: Session):
    payload = await _read_json_object(request)
    routine = routine_service.update_routine(db, routine_id, user_id, payload)
    return routine_service.serialize_routine(routine)


def delete_routine(user_id: int, routine_id: int, db: Session):
    routine_service.delete_routine(db, routine_id, user_id)
    return {"status": "ok"}


async def add_tasks(
    request: Request,
    user_id: int,
    routine_id: int,
    db: Session,
    status_service: TaskStatusService,
):
    payload = await _read_json_object(request)
    # 日本語: {"tasks": [...]} で複数、単体オブジェクトで1件 / English: Accept a "tasks" list or a single task object
    task_payloads = payload["tasks"] if "tasks" in payload else [payload]
    if not isinstance(task_payloads, list) or not task_payloads:
        raise ValidationError("Tasks must be a non-empty list")
    tasks = routine_service.add_tasks_to_routine(
        db, routine_id, user_id, task_payloads, now=status_service.now()
    )
    return {"tasks": [routine_service.serialize_template_task(task) for task in tasks]}


async def update_template_task(
    request: Request,
    user_id: int,
    task_id: int,
    db: Session,
    status_service: TaskStatusService,
):
    payload = await _read_json_object(request)
    task = routine_service.update_template_task(db, task_id, user_id, payload, now=status_service.now())
    return routine_service.serialize_template_task(task)


def delete_template_task(user_id: int, task_id: int, db: Session):
    routine_service.delete_template_task(db, task_id, user_id)
    return {"status": "ok"}


def api_day_view(
    user_id: int,
    date_str: str,
    db: Session,
    status_service: TaskStatusService,
    *,
    get_timeline_data_fn,
):
    date_obj = _parse_date_local(date_str)
    if date_obj == status_service.now().date():
        # 日本語: 読み出し前に当日分を追いつかせる / English: Catch today's rows up before reading them
        status_service.catch_up(user_id)
    else:
        progress_store.get_user(db, user_id)

    timeline_items, completion_rate = get_timeline_data_fn(db, user_id, date_obj)
    return {
        "date": date_obj.isoformat(),
        "weekday": date_obj.isoweekday(),
        "day_name": date_obj.strftime("%A"),
        "timeline_items": timeline_items,
        "completion_rate": completion_rate,
    }


async def update_progress_status(
    request: Request,
    user_id: int,
    progress_id: int,
    db: Session,
    status_service: TaskStatusService,
):
    payload = await _read_json_object(request)
    if "status" not in payload:
        raise ValidationError("Status is required")

    extra: Dict[str, Any] = {}
    if "notes" in payload:
        extra["notes"] = payload["notes"]
    progress = progress_update_service.update_task_status(
        db,
        progress_id,
        user_id,
        payload["status"],
        now=status_service.now(),
        started_at=payload.get("started_at"),
        completed_at=payload.get("completed_at"),
        grace_minutes=status_service.grace_minutes,
        **extra,
    )
    return _serialize_progress(progress)


async def update_progress_notes(
    request: Request,
    user_id: int,
    progress_id: int,
    db: Session,
    status_service: TaskStatusService,
):
    payload = await _read_json_object(request)
    progress = progress_update_service.update_task_notes(
        db, progress_id, user_id, payload.get("notes"), now=status_service.now()
    )
    return _serialize_progress(progress)


def api_routine_stats(user_id: int, db: Session, status_service: TaskStatusService):
    status_service.catch_up(user_id)
    today = status_service.now().date()
    return stats_service.get_user_routine_stats(db, user_id, today).model_dump()


def api_general_stats(user_id: int, db: Session, status_service: TaskStatusService):
    status_service.catch_up(user_id)
    today = status_service.now().date()
    return stats_service.get_general_user_stats(db, user_id, today).model_dump()


def refresh_summary(user_id: int, date_str: str, db: Session, status_service: TaskStatusService):
    date_obj = _parse_date_local(date_str)
    now = status_service.now()
    if date_obj == now.date():
        status_service.catch_up(user_id)
    summary = stats_service.refresh_daily_summary(db, user_id, date_obj, now=now)
    return stats_service.serialize_daily_summary(summary)


def run_scheduler_now(scheduler: TaskSchedulerService):
    started = datetime.datetime.now()
    scheduler.run_manual_update()
    return {
        "status": "ok",
        "elapsed_seconds": round((datetime.datetime.now() - started).total_seconds(), 3),
    }
