"""Daily summary cache and stats response models."""

import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from routine_tracker.core.errors import ValidationError

PROGRESS_TOLERANCE = 0.01


def calculate_progress_percent(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(completed / total * 100, 2)


# 日本語: 日別の集計キャッシュ (TaskProgress から再計算可能) / English: Per-day aggregate cache, recomputable from TaskProgress
class DailySummary(SQLModel, table=True):
    __tablename__ = "daily_summary"
    __table_args__ = (UniqueConstraint("user_id", "date_local", name="uq_daily_summary_user_date"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="app_user.id", index=True)
    date_local: datetime.date
    total_completed: int = Field(default=0)
    total_missed: int = Field(default=0)
    total_in_progress: int = Field(default=0)
    total_pending: int = Field(default=0)
    total_skipped: int = Field(default=0)
    progress_percent: float = Field(default=0.0)
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.now)

    def __init__(self, **data):
        super().__init__(**data)
        self._validate()

    def _validate(self) -> None:
        counts = (
            self.total_completed,
            self.total_missed,
            self.total_in_progress,
            self.total_pending,
            self.total_skipped,
        )
        if any(count < 0 for count in counts):
            raise ValidationError("Task counts cannot be negative")
        if self.progress_percent < 0 or self.progress_percent > 100:
            raise ValidationError("Progress percent must be between 0 and 100")

        total = self.total_tasks
        if total == 0:
            if self.progress_percent != 0:
                raise ValidationError("Progress percent should be 0 when there are no tasks")
            return
        expected = self.total_completed / total * 100
        if abs(self.progress_percent - expected) > PROGRESS_TOLERANCE:
            raise ValidationError("Progress percent does not match completed tasks")

    @property
    def total_tasks(self) -> int:
        return (
            self.total_completed
            + self.total_missed
            + self.total_in_progress
            + self.total_pending
            + self.total_skipped
        )

    def update_task_counts(
        self,
        *,
        completed: int,
        missed: int,
        in_progress: int,
        pending: int,
        skipped: int,
        now: datetime.datetime,
    ) -> None:
        if min(completed, missed, in_progress, pending, skipped) < 0:
            raise ValidationError("Task counts cannot be negative")
        self.total_completed = completed
        self.total_missed = missed
        self.total_in_progress = in_progress
        self.total_pending = pending
        self.total_skipped = skipped
        self.progress_percent = calculate_progress_percent(completed, self.total_tasks)
        self.updated_at = now

    def completion_rate(self) -> float:
        total = self.total_tasks
        return 0.0 if total == 0 else self.total_completed / total

    def missed_rate(self) -> float:
        total = self.total_tasks
        return 0.0 if total == 0 else self.total_missed / total

    def is_fully_completed(self) -> bool:
        return self.total_tasks > 0 and self.total_completed == self.total_tasks

    def has_active_tasks(self) -> bool:
        return self.total_in_progress > 0 or self.total_pending > 0


class DailyStats(SQLModel):
    completed_tasks: int = 0
    total_tasks: int = 0
    completion_percentage: float = 0.0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    missed_tasks: int = 0
    skipped_tasks: int = 0


class WeeklyStats(SQLModel):
    current_week_completion: int = 0
    previous_week_completion: int = 0
    improvement_percentage: float = 0.0
    active_routines: int = 0


class RoutineStats(SQLModel):
    daily_stats: DailyStats
    weekly_stats: WeeklyStats


class GeneralUserStats(SQLModel):
    active_routines: int = 0
    total_completed_tasks: int = 0
    tasks_in_progress: int = 0
    pending_tasks: int = 0
    missed_tasks: int = 0
