"""Client-initiated progress updates (start / complete / skip / reset / notes)."""

from __future__ import annotations

import datetime
from typing import Any

from sqlmodel import Session

from routine_tracker.core.config import DEFAULT_STATUS_GRACE_MINUTES
from routine_tracker.core.errors import NotFoundError, ValidationError
from routine_tracker.models import TaskProgress, parse_task_status
from routine_tracker.models.routine_models import MAX_NOTES_LENGTH
from routine_tracker.services import progress_store
from routine_tracker.services.schedule_parser_service import _parse_timestamp

_UNSET: Any = object()


def _validate_notes(notes: Any) -> None:
    # 日本語: 状態を変更する前に入力を検証 / English: Checked before any state is touched
    if notes is None:
        return
    if not isinstance(notes, str):
        raise ValidationError("Notes must be a string")
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")


def _get_owned_progress(db: Session, progress_id: int, user_id: int) -> TaskProgress:
    progress = progress_store.get_progress(db, progress_id)
    if progress.user_id != user_id:
        raise NotFoundError(f"Task progress {progress_id} not found")
    return progress


def update_task_status(
    db: Session,
    progress_id: int,
    user_id: int,
    status: Any,
    *,
    now: datetime.datetime,
    notes: Any = _UNSET,
    started_at: Any = None,
    completed_at: Any = None,
    grace_minutes: int = DEFAULT_STATUS_GRACE_MINUTES,
) -> TaskProgress:
    target_status = parse_task_status(status)
    started_override = _parse_timestamp(started_at)
    completed_override = _parse_timestamp(completed_at)
    if started_override and completed_override and started_override > completed_override:
        raise ValidationError("Started date cannot be after completed date")
    if notes is not _UNSET:
        _validate_notes(notes)

    progress = _get_owned_progress(db, progress_id, user_id)
    task = progress.template_task
    progress.apply_status(
        target_status,
        now,
        time_of_day=task.effective_time_of_day if task else None,
        duration_minutes=task.duration_minutes if task else None,
        grace_minutes=grace_minutes,
    )

    # 日本語: 明示指定された日時で上書き / English: Explicit timestamps override the transition defaults
    if started_override is not None or completed_override is not None:
        progress.override_timestamps(now, started_at=started_override, completed_at=completed_override)
    if notes is not _UNSET:
        progress.update_notes(notes, now)

    db.add(progress)
    db.commit()
    db.refresh(progress)
    return progress


def update_task_notes(
    db: Session,
    progress_id: int,
    user_id: int,
    notes: Any,
    *,
    now: datetime.datetime,
) -> TaskProgress:
    _validate_notes(notes)
    progress = _get_owned_progress(db, progress_id, user_id)
    progress.update_notes(notes, now)
    db.add(progress)
    db.commit()
    db.refresh(progress)
    return progress


__all__ = ["update_task_status", "update_task_notes"]
