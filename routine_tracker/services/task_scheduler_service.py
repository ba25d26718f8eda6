"""Periodic driver for the task status engine.

Two asyncio loops sleep until the next cron match and then run a sweep in a
worker thread: materialization (daily) and expiry (hourly by default).
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from typing import Callable, List

from croniter import croniter

from routine_tracker.core.clock import NowFn, system_now
from routine_tracker.core.config import (
    DAILY_TASK_CRON,
    EXPIRED_TASK_CRON,
    get_status_grace_minutes,
    get_sweep_max_workers,
)
from routine_tracker.services.task_status_service import (
    SessionFactory,
    TaskStatusService,
    build_sweep_strategy,
)

logger = logging.getLogger(__name__)


def _next_due(cron_expr: str, after: datetime.datetime) -> datetime.datetime:
    return croniter(cron_expr, after).get_next(datetime.datetime)


def _seconds_until(due: datetime.datetime, now: datetime.datetime) -> float:
    return max((due - now).total_seconds(), 0.0)


def validate_cron_expression(cron_expr: str) -> str:
    if not croniter.is_valid(cron_expr):
        raise ValueError(f"Invalid cron expression: {cron_expr!r}")
    return cron_expr


class TaskSchedulerService:
    def __init__(
        self,
        status_service: TaskStatusService,
        *,
        daily_cron: str = DAILY_TASK_CRON,
        expired_cron: str = EXPIRED_TASK_CRON,
        now_fn: NowFn | None = None,
    ):
        self.status_service = status_service
        self.daily_cron = validate_cron_expression(daily_cron)
        self.expired_cron = validate_cron_expression(expired_cron)
        self.now_fn = now_fn or status_service.now_fn
        self._tasks: List[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start_scheduled_tasks(self) -> None:
        """Register the daily and expiry ticks on the running event loop."""
        if self.is_running:
            logger.info("Task scheduler already running")
            return
        daily_loop = self._run_periodic(
            "daily task status update", self.daily_cron, self.status_service.update_daily_task_statuses
        )
        expired_loop = self._run_periodic(
            "expired task check", self.expired_cron, self.status_service.update_expired_tasks
        )
        self._tasks = [
            asyncio.create_task(daily_loop, name="routine-daily-tick"),
            asyncio.create_task(expired_loop, name="routine-expired-tick"),
        ]
        logger.info(
            "Task scheduler started (daily=%r, expired=%r)", self.daily_cron, self.expired_cron
        )

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Task scheduler stopped")

    async def _sleep_until(self, due: datetime.datetime) -> None:
        # 日本語: 早起きした場合は残りを再度待つ / English: An early wake-up sleeps off the remainder
        while True:
            remaining = _seconds_until(due, self.now_fn())
            if remaining <= 0:
                return
            await asyncio.sleep(remaining)

    async def _run_periodic(self, label: str, cron_expr: str, job: Callable[[], None]) -> None:
        due = _next_due(cron_expr, self.now_fn())
        while True:
            await self._sleep_until(due)
            await self._run_tick(label, job)
            # 日本語: 次回は予定時刻から計算 (tick 後の時刻ではない) / English: The next run follows the due time, not the post-tick clock
            following = _next_due(cron_expr, due)
            now = self.now_fn()
            if following <= now:
                # 日本語: 取りこぼした回は1回にまとめて即実行 / English: Overdue occurrences collapse into one immediate run
                logger.warning("Scheduled %s overran its next slot at %s", label, following.isoformat())
                following = now
            due = following

    async def _run_tick(self, label: str, job: Callable[[], None]) -> bool:
        logger.info("Running scheduled %s", label)
        try:
            await asyncio.to_thread(job)
        except Exception:
            # 日本語: tick の例外は外に出さない / English: Tick failures never escape the loop
            logger.exception("Scheduled %s failed", label)
            return False
        logger.info("Scheduled %s completed", label)
        return True

    def run_manual_update(self) -> None:
        """Run the full catch-up sweep synchronously for every active user."""
        logger.info("Running manual task status update")
        try:
            self.status_service.update_daily_task_statuses()
            self.status_service.update_expired_tasks()
        except Exception:
            logger.exception("Manual task status update failed")
            raise
        logger.info("Manual task status update completed")


_task_scheduler_service: TaskSchedulerService | None = None


def initialize_task_scheduler(session_factory: SessionFactory | None = None) -> TaskSchedulerService:
    global _task_scheduler_service
    if _task_scheduler_service is None:
        if session_factory is None:
            from routine_tracker.core.db import create_session

            session_factory = create_session
        status_service = TaskStatusService(
            session_factory,
            now_fn=system_now,
            sweep_strategy=build_sweep_strategy(get_sweep_max_workers()),
            grace_minutes=get_status_grace_minutes(),
        )
        _task_scheduler_service = TaskSchedulerService(status_service)
    return _task_scheduler_service


def get_task_scheduler_service() -> TaskSchedulerService:
    if _task_scheduler_service is None:
        raise RuntimeError("Task scheduler has not been initialized")
    return _task_scheduler_service


def reset_task_scheduler() -> None:
    global _task_scheduler_service
    _task_scheduler_service = None


__all__ = [
    "TaskSchedulerService",
    "initialize_task_scheduler",
    "get_task_scheduler_service",
    "reset_task_scheduler",
    "validate_cron_expression",
]
