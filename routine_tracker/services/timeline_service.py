"""Day timeline built from progress rows."""

from __future__ import annotations

import datetime
from typing import Any, Dict, List

from sqlmodel import Session

from routine_tracker.models import TaskProgress, TaskStatus, calculate_progress_percent
from routine_tracker.services import progress_store


def _timeline_sort_key(progress: TaskProgress):
    task = progress.template_task
    time_of_day = (task.effective_time_of_day if task else None) or "99:99:99"
    return (time_of_day, task.sort_order if task else 0, progress.id or 0)


def _serialize_progress(progress: TaskProgress) -> Dict[str, Any]:
    task = progress.template_task
    routine = task.routine if task else None
    return {
        "id": progress.id,
        "template_task_id": progress.template_task_id,
        "date_local": progress.date_local.isoformat(),
        "status": progress.status,
        "started_at": progress.started_at.isoformat() if progress.started_at else None,
        "completed_at": progress.completed_at.isoformat() if progress.completed_at else None,
        "notes": progress.notes,
        "routine_id": routine.id if routine else None,
        "routine_title": routine.title if routine else None,
        "title": task.title if task else None,
        "time_of_day": task.effective_time_of_day if task else None,
        "duration_minutes": task.duration_minutes if task else None,
        "category_id": task.category_id if task else None,
        "priority": task.priority if task else None,
    }


def _get_timeline_data(db: Session, user_id: int, date_obj: datetime.date):
    rows = progress_store.find_progress_for_user(db, user_id, date_obj)
    rows.sort(key=_timeline_sort_key)

    timeline_items: List[Dict[str, Any]] = [_serialize_progress(row) for row in rows]
    completed_items = sum(1 for row in rows if row.current_status is TaskStatus.COMPLETED)
    completion_rate = calculate_progress_percent(completed_items, len(rows))
    return timeline_items, completion_rate


__all__ = ["_get_timeline_data", "_serialize_progress"]
