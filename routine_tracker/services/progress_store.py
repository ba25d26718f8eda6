"""Storage boundary for users, routines, template tasks and progress rows.

Progress rows are created through ``INSERT ... ON CONFLICT DO NOTHING`` on
``(template_task_id, date_local)`` so concurrent sweeps and read paths can
materialize the same day without duplicates or client-side locking.
"""

from __future__ import annotations

import datetime
from typing import Iterable, List, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from routine_tracker.core.errors import NotFoundError
from routine_tracker.models import (
    OPEN_STATUSES,
    Routine,
    RoutineTemplateTask,
    TaskProgress,
    TaskStatus,
    User,
)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def list_active_user_ids(db: Session) -> List[int]:
    return list(db.exec(select(User.id).where(User.is_active == True).order_by(User.id)).all())  # noqa: E712


def get_active_routines_for_weekday(db: Session, user_id: int, iso_weekday: int) -> List[Routine]:
    routines = db.exec(
        select(Routine).where(Routine.user_id == user_id, Routine.active == True)  # noqa: E712
    ).all()
    return [routine for routine in routines if routine.runs_on(iso_weekday)]


def get_template_tasks_for_routines(db: Session, routine_ids: Sequence[int]) -> List[RoutineTemplateTask]:
    if not routine_ids:
        return []
    return list(
        db.exec(
            select(RoutineTemplateTask)
            .where(RoutineTemplateTask.routine_id.in_(routine_ids))
            .order_by(RoutineTemplateTask.routine_id, RoutineTemplateTask.sort_order, RoutineTemplateTask.id)
        ).all()
    )


def get_template_task(db: Session, template_task_id: int) -> RoutineTemplateTask:
    task = db.get(RoutineTemplateTask, template_task_id)
    if task is None:
        raise NotFoundError(f"Template task {template_task_id} not found")
    return task


def get_progress(db: Session, progress_id: int) -> TaskProgress:
    progress = db.get(TaskProgress, progress_id)
    if progress is None:
        raise NotFoundError(f"Task progress {progress_id} not found")
    return progress


def find_progress(db: Session, template_task_id: int, date_local: datetime.date) -> TaskProgress | None:
    return db.exec(
        select(TaskProgress).where(
            TaskProgress.template_task_id == template_task_id,
            TaskProgress.date_local == date_local,
        )
    ).first()


def find_progress_for_user(
    db: Session,
    user_id: int,
    date_local: datetime.date,
    statuses: Iterable[TaskStatus] | None = None,
) -> List[TaskProgress]:
    statement = (
        select(TaskProgress)
        .where(TaskProgress.user_id == user_id, TaskProgress.date_local == date_local)
        .options(selectinload(TaskProgress.template_task).selectinload(RoutineTemplateTask.routine))
    )
    if statuses is not None:
        statement = statement.where(TaskProgress.status.in_([status.value for status in statuses]))
    return list(db.exec(statement.order_by(TaskProgress.id)).all())


def find_open_progress_until(db: Session, user_id: int, date_local: datetime.date) -> List[TaskProgress]:
    """Pending/in-progress rows dated on or before ``date_local``."""
    return list(
        db.exec(
            select(TaskProgress)
            .where(
                TaskProgress.user_id == user_id,
                TaskProgress.date_local <= date_local,
                TaskProgress.status.in_([status.value for status in OPEN_STATUSES]),
            )
            .options(selectinload(TaskProgress.template_task).selectinload(RoutineTemplateTask.routine))
            .order_by(TaskProgress.date_local, TaskProgress.id)
        ).all()
    )


def list_progress_in_range(
    db: Session,
    user_id: int,
    start_date: datetime.date,
    end_date: datetime.date,
    statuses: Iterable[TaskStatus] | None = None,
) -> List[TaskProgress]:
    statement = select(TaskProgress).where(
        TaskProgress.user_id == user_id,
        TaskProgress.date_local >= start_date,
        TaskProgress.date_local <= end_date,
    )
    if statuses is not None:
        statement = statement.where(TaskProgress.status.in_([status.value for status in statuses]))
    return list(db.exec(statement).all())


def insert_progress_if_absent(
    db: Session,
    *,
    template_task_id: int,
    user_id: int,
    date_local: datetime.date,
    now: datetime.datetime,
) -> bool:
    """Create a pending row unless one already exists; returns whether it inserted."""
    connection = db.connection()
    insert_fn = _INSERT_BY_DIALECT.get(connection.dialect.name)
    if insert_fn is None:
        raise RuntimeError(f"Unsupported database dialect: {connection.dialect.name}")

    statement = (
        insert_fn(TaskProgress)
        .values(
            template_task_id=template_task_id,
            user_id=user_id,
            date_local=date_local,
            status=TaskStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        .on_conflict_do_nothing(index_elements=["template_task_id", "date_local"])
    )
    result = connection.execute(statement)
    return result.rowcount == 1


__all__ = [
    "get_user",
    "list_active_user_ids",
    "get_active_routines_for_weekday",
    "get_template_tasks_for_routines",
    "get_template_task",
    "get_progress",
    "find_progress",
    "find_progress_for_user",
    "find_open_progress_until",
    "list_progress_in_range",
    "insert_progress_if_absent",
]
