"""Daily/weekly statistics derived from progress rows."""

from __future__ import annotations

import datetime
import logging
from collections import Counter
from typing import Dict, Iterable

from sqlalchemy import func
from sqlmodel import Session, select

from routine_tracker.models import (
    DailyStats,
    DailySummary,
    GeneralUserStats,
    Routine,
    RoutineStats,
    TaskProgress,
    TaskStatus,
    WeeklyStats,
    calculate_progress_percent,
)
from routine_tracker.services import progress_store
from routine_tracker.services.schedule_parser_service import _week_bounds

logger = logging.getLogger(__name__)


def count_statuses(rows: Iterable[TaskProgress]) -> Dict[TaskStatus, int]:
    counter = Counter(row.current_status for row in rows)
    return {status: counter.get(status, 0) for status in TaskStatus}


def calculate_improvement(current: int, previous: int) -> float:
    # 日本語: 前週ゼロなら 0 とする / English: Defined as 0 when the previous week had nothing
    if previous == 0:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def count_active_routines(db: Session, user_id: int) -> int:
    statement = select(func.count(Routine.id)).where(Routine.user_id == user_id, Routine.active == True)  # noqa: E712
    return int(db.exec(statement).one())


def get_daily_task_stats(db: Session, user_id: int, date_local: datetime.date) -> DailyStats:
    counts = count_statuses(progress_store.find_progress_for_user(db, user_id, date_local))
    total = sum(counts.values())
    completed = counts[TaskStatus.COMPLETED]
    return DailyStats(
        completed_tasks=completed,
        total_tasks=total,
        completion_percentage=calculate_progress_percent(completed, total),
        pending_tasks=counts[TaskStatus.PENDING],
        in_progress_tasks=counts[TaskStatus.IN_PROGRESS],
        missed_tasks=counts[TaskStatus.MISSED],
        skipped_tasks=counts[TaskStatus.SKIPPED],
    )


def get_weekly_completion(
    db: Session,
    user_id: int,
    start_date: datetime.date,
    end_date: datetime.date,
) -> int:
    rows = progress_store.list_progress_in_range(
        db, user_id, start_date, end_date, statuses=[TaskStatus.COMPLETED]
    )
    return len(rows)


def get_user_routine_stats(db: Session, user_id: int, today: datetime.date) -> RoutineStats:
    progress_store.get_user(db, user_id)
    current_start, current_end = _week_bounds(today)
    previous_start = current_start - datetime.timedelta(days=7)
    previous_end = current_start - datetime.timedelta(days=1)

    current_week = get_weekly_completion(db, user_id, current_start, current_end)
    previous_week = get_weekly_completion(db, user_id, previous_start, previous_end)

    return RoutineStats(
        daily_stats=get_daily_task_stats(db, user_id, today),
        weekly_stats=WeeklyStats(
            current_week_completion=current_week,
            previous_week_completion=previous_week,
            improvement_percentage=calculate_improvement(current_week, previous_week),
            active_routines=count_active_routines(db, user_id),
        ),
    )


def get_general_user_stats(db: Session, user_id: int, today: datetime.date) -> GeneralUserStats:
    progress_store.get_user(db, user_id)

    def _count(*conditions) -> int:
        statement = select(func.count(TaskProgress.id)).where(TaskProgress.user_id == user_id, *conditions)
        return int(db.exec(statement).one())

    return GeneralUserStats(
        active_routines=count_active_routines(db, user_id),
        total_completed_tasks=_count(TaskProgress.status == TaskStatus.COMPLETED.value),
        tasks_in_progress=_count(
            TaskProgress.status == TaskStatus.IN_PROGRESS.value,
            TaskProgress.date_local == today,
        ),
        pending_tasks=_count(
            TaskProgress.status == TaskStatus.PENDING.value,
            TaskProgress.date_local == today,
        ),
        missed_tasks=_count(
            TaskProgress.status == TaskStatus.MISSED.value,
            TaskProgress.date_local <= today,
        ),
    )


def refresh_daily_summary(
    db: Session,
    user_id: int,
    date_local: datetime.date,
    *,
    now: datetime.datetime,
) -> DailySummary:
    """Recompute the cached summary for one user/day from its progress rows."""
    progress_store.get_user(db, user_id)
    counts = count_statuses(progress_store.find_progress_for_user(db, user_id, date_local))

    summary = db.exec(
        select(DailySummary).where(DailySummary.user_id == user_id, DailySummary.date_local == date_local)
    ).first()
    if summary is None:
        total = sum(counts.values())
        summary = DailySummary(
            user_id=user_id,
            date_local=date_local,
            total_completed=counts[TaskStatus.COMPLETED],
            total_missed=counts[TaskStatus.MISSED],
            total_in_progress=counts[TaskStatus.IN_PROGRESS],
            total_pending=counts[TaskStatus.PENDING],
            total_skipped=counts[TaskStatus.SKIPPED],
            progress_percent=calculate_progress_percent(counts[TaskStatus.COMPLETED], total),
            created_at=now,
            updated_at=now,
        )
    else:
        summary.update_task_counts(
            completed=counts[TaskStatus.COMPLETED],
            missed=counts[TaskStatus.MISSED],
            in_progress=counts[TaskStatus.IN_PROGRESS],
            pending=counts[TaskStatus.PENDING],
            skipped=counts[TaskStatus.SKIPPED],
            now=now,
        )

    db.add(summary)
    db.commit()
    db.refresh(summary)
    logger.debug("Refreshed daily summary for user %s on %s", user_id, date_local)
    return summary


def serialize_daily_summary(summary: DailySummary) -> Dict[str, object]:
    return {
        "user_id": summary.user_id,
        "date_local": summary.date_local.isoformat(),
        "total_tasks": summary.total_tasks,
        "total_completed": summary.total_completed,
        "total_missed": summary.total_missed,
        "total_in_progress": summary.total_in_progress,
        "total_pending": summary.total_pending,
        "total_skipped": summary.total_skipped,
        "progress_percent": summary.progress_percent,
        "completion_rate": summary.completion_rate(),
        "missed_rate": summary.missed_rate(),
        "is_fully_completed": summary.is_fully_completed(),
        "has_active_tasks": summary.has_active_tasks(),
    }


__all__ = [
    "count_statuses",
    "calculate_improvement",
    "count_active_routines",
    "get_daily_task_stats",
    "get_weekly_completion",
    "get_user_routine_stats",
    "get_general_user_stats",
    "refresh_daily_summary",
    "serialize_daily_summary",
]
