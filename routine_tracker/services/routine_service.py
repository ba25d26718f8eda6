"""Routine, template task and user CRUD."""

from __future__ import annotations

import datetime
from typing import Any, Dict, List, Mapping

from sqlmodel import Session, select

from routine_tracker.core.errors import NotFoundError, ValidationError
from routine_tracker.models import Category, Routine, RoutineTemplateTask, User, parse_task_priority
from routine_tracker.services import progress_store
from routine_tracker.services.schedule_parser_service import (
    _bool_from_value,
    _format_repeat_days,
    _normalize_time_of_day,
    _validate_duration,
    _validate_repeat_days,
)

MAX_DESCRIPTION_LENGTH = 500


def _clean_title(value: Any, *, label: str = "Title") -> str:
    if not isinstance(value, str) or len(value.strip()) < 2:
        raise ValidationError(f"{label} must be at least 2 characters")
    title = value.strip()
    if len(title) > 120:
        raise ValidationError(f"{label} cannot exceed 120 characters")
    return title


def _clean_description(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Description must be a string")
    if len(value) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters")
    return value or None


def _clean_sort_order(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("Sort order must be a non-negative integer")
    return value


def _clean_category_id(db: Session, value: Any) -> int | None:
    if value is None:
        return None
    if db.get(Category, value) is None:
        raise NotFoundError(f"Category {value} not found")
    return value


def create_user(db: Session, display_name: Any) -> User:
    user = User(display_name=_clean_title(display_name, label="Display name"))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_owned_routine(db: Session, routine_id: int, user_id: int) -> Routine:
    routine = db.get(Routine, routine_id)
    # 日本語: 他ユーザーのルーチンは存在しない扱い / English: Another user's routine is reported as missing
    if routine is None or routine.user_id != user_id:
        raise NotFoundError(f"Routine {routine_id} not found")
    return routine


def list_user_routines(db: Session, user_id: int) -> List[Routine]:
    progress_store.get_user(db, user_id)
    return list(db.exec(select(Routine).where(Routine.user_id == user_id).order_by(Routine.id)).all())


def _build_template_task(
    db: Session,
    routine: Routine,
    payload: Mapping[str, Any],
    sort_order: int,
    now: datetime.datetime,
) -> RoutineTemplateTask:
    if not isinstance(payload, Mapping):
        raise ValidationError("Each task must be an object")
    if "sort_order" in payload and payload["sort_order"] is not None:
        sort_order = _clean_sort_order(payload["sort_order"])
    return RoutineTemplateTask(
        routine_id=routine.id,
        title=_clean_title(payload.get("title")),
        time_of_day=_normalize_time_of_day(payload.get("time_of_day")),
        duration_minutes=_validate_duration(payload.get("duration_minutes")),
        category_id=_clean_category_id(db, payload.get("category_id")),
        priority=parse_task_priority(payload.get("priority")).value,
        description=_clean_description(payload.get("description")),
        sort_order=sort_order,
        created_at=now,
        updated_at=now,
    )


def create_routine(
    db: Session,
    user_id: int,
    payload: Mapping[str, Any],
    *,
    now: datetime.datetime,
) -> Routine:
    """Create a routine together with its template tasks."""
    progress_store.get_user(db, user_id)
    task_payloads = payload.get("tasks") or []
    if not isinstance(task_payloads, list):
        raise ValidationError("Tasks must be a list")

    routine = Routine(
        user_id=user_id,
        title=_clean_title(payload.get("title")),
        default_time_of_day=_normalize_time_of_day(payload.get("default_time_of_day")),
        repeat_days=_format_repeat_days(_validate_repeat_days(payload.get("repeat_days"))),
        active=_bool_from_value(payload.get("active"), True),
        created_at=now,
    )
    db.add(routine)
    db.flush()

    try:
        for index, task_payload in enumerate(task_payloads):
            db.add(_build_template_task(db, routine, task_payload, index, now))
    except Exception:
        # 日本語: タスク検証に失敗したらルーチンごと破棄 / English: Drop the routine when any task is invalid
        db.rollback()
        raise

    db.commit()
    db.refresh(routine)
    return routine


def add_tasks_to_routine(
    db: Session,
    routine_id: int,
    user_id: int,
    task_payloads: List[Mapping[str, Any]],
    *,
    now: datetime.datetime,
) -> List[RoutineTemplateTask]:
    routine = get_owned_routine(db, routine_id, user_id)
    # 日本語: 並び順は既存の最大値から連番 / English: Continue sort order after the current maximum
    existing_orders = [task.sort_order for task in routine.tasks]
    next_order = max(existing_orders) + 1 if existing_orders else 0

    created = [
        _build_template_task(db, routine, task_payload, next_order + index, now)
        for index, task_payload in enumerate(task_payloads)
    ]
    for task in created:
        db.add(task)
    db.commit()
    for task in created:
        db.refresh(task)
    return created


def add_task_to_routine(
    db: Session,
    routine_id: int,
    user_id: int,
    task_payload: Mapping[str, Any],
    *,
    now: datetime.datetime,
) -> RoutineTemplateTask:
    return add_tasks_to_routine(db, routine_id, user_id, [task_payload], now=now)[0]


def update_routine(
    db: Session,
    routine_id: int,
    user_id: int,
    changes: Mapping[str, Any],
) -> Routine:
    routine = get_owned_routine(db, routine_id, user_id)
    if "title" in changes:
        routine.title = _clean_title(changes["title"])
    if "default_time_of_day" in changes:
        routine.default_time_of_day = _normalize_time_of_day(changes["default_time_of_day"])
    if "repeat_days" in changes:
        routine.repeat_days = _format_repeat_days(_validate_repeat_days(changes["repeat_days"]))
    if "active" in changes:
        routine.active = _bool_from_value(changes["active"], routine.active)
    db.add(routine)
    db.commit()
    db.refresh(routine)
    return routine


def delete_routine(db: Session, routine_id: int, user_id: int) -> None:
    routine = get_owned_routine(db, routine_id, user_id)
    db.delete(routine)
    db.commit()


def _get_owned_template_task(db: Session, task_id: int, user_id: int) -> RoutineTemplateTask:
    task = progress_store.get_template_task(db, task_id)
    if task.routine is None or task.routine.user_id != user_id:
        raise NotFoundError(f"Template task {task_id} not found")
    return task


def update_template_task(
    db: Session,
    task_id: int,
    user_id: int,
    changes: Mapping[str, Any],
    *,
    now: datetime.datetime,
) -> RoutineTemplateTask:
    task = _get_owned_template_task(db, task_id, user_id)
    if "title" in changes:
        task.title = _clean_title(changes["title"])
    if "time_of_day" in changes:
        task.time_of_day = _normalize_time_of_day(changes["time_of_day"])
    if "duration_minutes" in changes:
        task.duration_minutes = _validate_duration(changes["duration_minutes"])
    if "category_id" in changes:
        task.category_id = _clean_category_id(db, changes["category_id"])
    if "priority" in changes:
        task.priority = parse_task_priority(changes["priority"]).value
    if "description" in changes:
        task.description = _clean_description(changes["description"])
    if "sort_order" in changes:
        task.sort_order = _clean_sort_order(changes["sort_order"])
    task.updated_at = now
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def delete_template_task(db: Session, task_id: int, user_id: int) -> None:
    task = _get_owned_template_task(db, task_id, user_id)
    db.delete(task)
    db.commit()


def serialize_template_task(task: RoutineTemplateTask) -> Dict[str, Any]:
    return {
        "id": task.id,
        "routine_id": task.routine_id,
        "title": task.title,
        "time_of_day": task.time_of_day,
        "effective_time_of_day": task.effective_time_of_day,
        "duration_minutes": task.duration_minutes,
        "category_id": task.category_id,
        "priority": task.priority,
        "description": task.description,
        "sort_order": task.sort_order,
    }


def serialize_routine(routine: Routine) -> Dict[str, Any]:
    tasks = sorted(routine.tasks, key=lambda item: (item.sort_order, item.id or 0))
    return {
        "id": routine.id,
        "user_id": routine.user_id,
        "title": routine.title,
        "default_time_of_day": routine.default_time_of_day,
        "repeat_days": routine.repeat_day_list,
        "active": routine.active,
        "created_at": routine.created_at.isoformat() if routine.created_at else None,
        "tasks": [serialize_template_task(task) for task in tasks],
    }


__all__ = [
    "create_user",
    "get_owned_routine",
    "list_user_routines",
    "create_routine",
    "add_tasks_to_routine",
    "add_task_to_routine",
    "update_routine",
    "delete_routine",
    "update_template_task",
    "delete_template_task",
    "serialize_routine",
    "serialize_template_task",
]
