"""Daily task status engine.

Two idempotent passes keep progress rows current:

* materialization creates today's pending rows for every active routine that
  repeats on today's weekday (and reopens a row left ``missed``),
* expiry advances open rows by wall-clock time: pending rows become
  in progress once their window opens, open rows become missed once it
  closes.

Each transition depends only on the stored status, the template fields and
``now``, so the scheduler tick and request-driven calls may overlap freely.
"""

from __future__ import annotations

import datetime
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from routine_tracker.core.clock import NowFn, system_now
from routine_tracker.core.config import get_status_grace_minutes
from routine_tracker.core.errors import TransientStorageError
from routine_tracker.models import TaskProgress, TaskStatus
from routine_tracker.services import progress_store
from routine_tracker.services.schedule_parser_service import (
    _combine,
    _end_of_day,
    _iso_weekday,
    _parse_date_local,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]
UserJob = Callable[[int], None]


class SequentialSweep:
    """Process users one at a time."""

    def run(self, user_ids: Iterable[int], job: UserJob) -> None:
        for user_id in user_ids:
            job(user_id)


class ThreadPoolSweep:
    """Bounded parallel fan-out; each user runs in its own session."""

    def __init__(self, max_workers: int):
        self.max_workers = max(1, max_workers)

    def run(self, user_ids: Iterable[int], job: UserJob) -> None:
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="routine-sweep") as pool:
            list(pool.map(job, user_ids))


def build_sweep_strategy(max_workers: int):
    if max_workers <= 1:
        return SequentialSweep()
    return ThreadPoolSweep(max_workers)


def evaluate_time_window(
    status: TaskStatus,
    date_local: datetime.date,
    time_of_day: str | None,
    duration_minutes: int | None,
    now: datetime.datetime,
    grace_minutes: int,
) -> TaskStatus | None:
    """Return the status an open row should move to, or None to leave it."""
    if not time_of_day:
        # 日本語: 時刻未設定のタスクは日付の終わりで期限切れ / English: Untimed tasks expire at the end of their day
        return TaskStatus.MISSED if now > _end_of_day(date_local) else None

    scheduled_start = _combine(date_local, time_of_day)
    window_minutes = duration_minutes if duration_minutes else grace_minutes
    window_end = scheduled_start + datetime.timedelta(minutes=window_minutes)

    if now < scheduled_start:
        return None
    if now <= window_end:
        return TaskStatus.IN_PROGRESS if status is TaskStatus.PENDING else None
    return TaskStatus.MISSED


class TaskStatusService:
    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        now_fn: NowFn = system_now,
        sweep_strategy=None,
        grace_minutes: int | None = None,
    ):
        self._session_factory = session_factory
        self.now_fn = now_fn
        self.sweep_strategy = sweep_strategy or SequentialSweep()
        self.grace_minutes = grace_minutes if grace_minutes is not None else get_status_grace_minutes()

    def now(self) -> datetime.datetime:
        return self.now_fn()

    def update_daily_task_statuses(self, user_id: int | None = None) -> None:
        """Materialize today's progress rows for one user, or every active user."""
        now = self.now()
        today = now.date()
        self._for_users(
            user_id,
            "daily task statuses",
            lambda db, uid: self._materialize_day(db, uid, today, now),
        )

    def update_expired_tasks(self, user_id: int | None = None) -> None:
        """Advance open rows whose time window has opened or closed."""
        now = self.now()
        self._for_users(
            user_id,
            "expired tasks",
            lambda db, uid: self._expire_open_tasks(db, uid, now),
        )

    def reset_daily_tasks_for_user(self, user_id: int, date_local) -> None:
        date_value = _parse_date_local(date_local)
        now = self.now()
        with self._session_factory() as db:
            progress_store.get_user(db, user_id)
            self._materialize_day(db, user_id, date_value, now)

    def catch_up(self, user_id: int | None = None) -> None:
        # 日本語: 生成 → 期限切れ判定の順で実行 / English: Materialize first, then expire
        self.update_daily_task_statuses(user_id)
        self.update_expired_tasks(user_id)

    def _for_users(self, user_id: int | None, label: str, work: Callable[[Session, int], int]) -> None:
        if user_id is not None:
            with self._session_factory() as db:
                user = progress_store.get_user(db, user_id)
                if not user.is_active:
                    logger.info("Skipping %s for inactive user %s", label, user_id)
                    return
                work(db, user_id)
            return

        with self._session_factory() as db:
            user_ids = progress_store.list_active_user_ids(db)

        failures: list[int] = []

        def _job(uid: int) -> None:
            try:
                self._run_isolated(uid, work)
            except Exception:
                # 日本語: 1ユーザーの失敗で全体を止めない / English: One user's failure must not stop the sweep
                logger.exception("Error processing %s for user %s", label, uid)
                failures.append(uid)

        self.sweep_strategy.run(user_ids, _job)
        logger.info(
            "Processed %s for %d users (%d failed)", label, len(user_ids), len(failures)
        )

    def _run_isolated(self, user_id: int, work: Callable[[Session, int], int]) -> None:
        try:
            with self._session_factory() as db:
                work(db, user_id)
        except SQLAlchemyError as exc:
            raise TransientStorageError(f"Storage failure for user {user_id}", user_id=user_id) from exc

    def _materialize_day(self, db: Session, user_id: int, date_local: datetime.date, now: datetime.datetime) -> int:
        weekday = _iso_weekday(date_local)
        routines = progress_store.get_active_routines_for_weekday(db, user_id, weekday)
        tasks = progress_store.get_template_tasks_for_routines(db, [routine.id for routine in routines])

        created = 0
        reopened = 0
        for task in tasks:
            existing = progress_store.find_progress(db, task.id, date_local)
            if existing is None:
                if progress_store.insert_progress_if_absent(
                    db,
                    template_task_id=task.id,
                    user_id=user_id,
                    date_local=date_local,
                    now=now,
                ):
                    created += 1
            elif existing.current_status is TaskStatus.MISSED:
                existing.reset(now)
                db.add(existing)
                reopened += 1
        db.commit()

        if created or reopened:
            logger.debug(
                "User %s on %s: created %d, reopened %d progress rows", user_id, date_local, created, reopened
            )
        return created + reopened

    def _expire_open_tasks(self, db: Session, user_id: int, now: datetime.datetime) -> int:
        changed = 0
        for progress in progress_store.find_open_progress_until(db, user_id, now.date()):
            next_status = self._next_status(progress, now)
            if next_status is TaskStatus.IN_PROGRESS:
                progress.promote_in_progress(now)
            elif next_status is TaskStatus.MISSED:
                progress.mark_missed(now)
            else:
                continue
            db.add(progress)
            changed += 1
        db.commit()
        return changed

    def _next_status(self, progress: TaskProgress, now: datetime.datetime) -> TaskStatus | None:
        task = progress.template_task
        if task is None:
            return None
        return evaluate_time_window(
            progress.current_status,
            progress.date_local,
            task.effective_time_of_day,
            task.duration_minutes,
            now,
            self.grace_minutes,
        )


__all__ = [
    "TaskStatusService",
    "SequentialSweep",
    "ThreadPoolSweep",
    "build_sweep_strategy",
    "evaluate_time_window",
]
