"""Routine domain SQLModel models.

``TaskProgress`` is the only mutable per-day entity. Its transition methods
take ``now`` explicitly so callers decide which clock drives them.
"""

import datetime
import enum
import logging
from typing import Callable

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from routine_tracker.core.config import DEFAULT_STATUS_GRACE_MINUTES
from routine_tracker.core.errors import GatingViolation, ValidationError

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 1000


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    MISSED = "missed"


# 日本語: 時間経過で変化しうる状態 / English: Statuses the expiry sweep may still advance
OPEN_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


def parse_task_status(value) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    if isinstance(value, str):
        try:
            return TaskStatus(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(status.value for status in TaskStatus)
    raise ValidationError(f"Status must be one of: {allowed}")


def parse_task_priority(value) -> TaskPriority:
    if value is None:
        return TaskPriority.MEDIUM
    if isinstance(value, TaskPriority):
        return value
    if isinstance(value, str):
        try:
            return TaskPriority(value.strip().lower())
        except ValueError:
            pass
    raise ValidationError("Priority must be one of: low, medium, high")


def _combine_local(date_local: datetime.date, time_of_day: str) -> datetime.datetime:
    return datetime.datetime.combine(date_local, datetime.time.fromisoformat(time_of_day))


# 日本語: 週次で繰り返す習慣の親エンティティ / English: Parent entity for recurring weekly routines
class Routine(SQLModel, table=True):
    __tablename__ = "routine"

    # 日本語: カンマ区切り曜日(1=月 ... 7=日) / English: Comma-separated ISO weekdays (1=Mon ... 7=Sun)
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="app_user.id", index=True)
    title: str = Field(max_length=120)
    default_time_of_day: str | None = Field(default=None, max_length=8)
    repeat_days: str = Field(default="1,2,3,4,5", max_length=20)
    active: bool = Field(default=True)
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)

    tasks: list["RoutineTemplateTask"] = Relationship(
        back_populates="routine", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )

    @property
    def repeat_day_list(self) -> list[int]:
        return [int(part) for part in (self.repeat_days or "").split(",") if part.strip()]

    def runs_on(self, iso_weekday: int) -> bool:
        return iso_weekday in self.repeat_day_list


# 日本語: ルーチンを構成するタスクのひな形 / English: Template task inside a routine
class RoutineTemplateTask(SQLModel, table=True):
    __tablename__ = "routine_template_task"

    id: int | None = Field(default=None, primary_key=True)
    routine_id: int = Field(foreign_key="routine.id", index=True, ondelete="CASCADE")
    title: str = Field(max_length=120)
    time_of_day: str | None = Field(default=None, max_length=8)
    duration_minutes: int | None = Field(default=None)
    category_id: int | None = Field(default=None, foreign_key="category.id")
    priority: str = Field(default=TaskPriority.MEDIUM.value, max_length=10)
    description: str | None = Field(default=None, max_length=500)
    sort_order: int = Field(default=0)
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.now)

    routine: Routine | None = Relationship(back_populates="tasks")
    progress_records: list["TaskProgress"] = Relationship(
        back_populates="template_task", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )

    @property
    def effective_time_of_day(self) -> str | None:
        # 日本語: 未指定ならルーチンの既定時刻を継承 / English: Fall back to the routine's default time
        if self.time_of_day:
            return self.time_of_day
        if self.routine is not None:
            return self.routine.default_time_of_day
        return None


# 日本語: テンプレートタスクの日別インスタンス / English: Daily instance of a template task
class TaskProgress(SQLModel, table=True):
    __tablename__ = "task_progress"
    __table_args__ = (
        UniqueConstraint("template_task_id", "date_local", name="uq_task_progress_template_date"),
    )

    id: int | None = Field(default=None, primary_key=True)
    template_task_id: int = Field(foreign_key="routine_template_task.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="app_user.id", index=True)
    date_local: datetime.date = Field(index=True)
    status: str = Field(default=TaskStatus.PENDING.value, max_length=20)
    started_at: datetime.datetime | None = Field(default=None)
    completed_at: datetime.datetime | None = Field(default=None)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.now)

    template_task: RoutineTemplateTask | None = Relationship(back_populates="progress_records")

    def __init__(self, **data):
        super().__init__(**data)
        self._clamp_timestamps()

    def _clamp_timestamps(self) -> None:
        # 日本語: 時計ずれ対策として開始時刻を完了時刻に合わせる / English: Clamp started_at to completed_at on clock skew
        if self.started_at and self.completed_at and self.started_at > self.completed_at:
            logger.warning(
                "Inconsistent progress timestamps for template task %s on %s; clamping started_at",
                self.template_task_id,
                self.date_local,
            )
            self.started_at = self.completed_at

    def _touch(self, now: datetime.datetime) -> None:
        self.updated_at = now
        self._clamp_timestamps()

    @property
    def current_status(self) -> TaskStatus:
        return TaskStatus(self.status)

    def start(self, now: datetime.datetime) -> None:
        self.status = TaskStatus.IN_PROGRESS.value
        self.started_at = now
        self.completed_at = None
        self._touch(now)

    def complete(self, now: datetime.datetime) -> None:
        # 日本語: 重複リトライは無視 / English: Completing twice is a no-op
        if self.current_status is TaskStatus.COMPLETED:
            return
        self.status = TaskStatus.COMPLETED.value
        self.completed_at = now
        if self.started_at is None:
            self.started_at = now
        self._touch(now)

    def skip(self, now: datetime.datetime) -> None:
        self.status = TaskStatus.SKIPPED.value
        self.started_at = None
        self.completed_at = None
        self._touch(now)

    def reset(self, now: datetime.datetime) -> None:
        self.status = TaskStatus.PENDING.value
        self.started_at = None
        self.completed_at = None
        self._touch(now)

    def promote_in_progress(self, now: datetime.datetime) -> None:
        """Passive promotion once the task's time arrives; started_at stays untouched."""
        self.status = TaskStatus.IN_PROGRESS.value
        self._touch(now)

    def mark_missed(self, now: datetime.datetime) -> None:
        self.status = TaskStatus.MISSED.value
        self._touch(now)

    def override_timestamps(
        self,
        now: datetime.datetime,
        *,
        started_at: datetime.datetime | None = None,
        completed_at: datetime.datetime | None = None,
    ) -> None:
        if started_at is not None:
            self.started_at = started_at
        if completed_at is not None:
            self.completed_at = completed_at
        self._touch(now)

    def update_notes(self, notes: str | None, now: datetime.datetime) -> None:
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")
        self.notes = notes or None
        self._touch(now)

    def is_within_time_window(
        self,
        time_of_day: str,
        duration_minutes: int | None,
        now: datetime.datetime,
        grace_minutes: int = DEFAULT_STATUS_GRACE_MINUTES,
    ) -> bool:
        # 日本語: 別の日のタスクは変更不可 / English: Only today's instance can be reopened
        if self.date_local != now.date():
            return False
        try:
            scheduled_start = _combine_local(self.date_local, time_of_day)
        except ValueError:
            logger.error("Invalid time of day %r for progress %s", time_of_day, self.id)
            return False

        if now < scheduled_start:
            return True
        if duration_minutes and duration_minutes > 0:
            return now <= scheduled_start + datetime.timedelta(minutes=duration_minutes)
        return now <= scheduled_start + datetime.timedelta(minutes=grace_minutes)

    def can_change_to_status(
        self,
        time_of_day: str | None,
        duration_minutes: int | None,
        target_status: TaskStatus,
        *,
        now: datetime.datetime,
        grace_minutes: int = DEFAULT_STATUS_GRACE_MINUTES,
    ) -> bool:
        """Whether moving to ``target_status`` respects the task's time window.

        Only reopening a completed task (back to pending or in progress) is
        gated; everything else is always allowed.
        """
        if not time_of_day:
            return True
        target_status = parse_task_status(target_status)
        if target_status in (TaskStatus.COMPLETED, TaskStatus.SKIPPED, TaskStatus.MISSED):
            return True
        if self.current_status is TaskStatus.COMPLETED:
            return self.is_within_time_window(time_of_day, duration_minutes, now, grace_minutes)
        return True

    def apply_status(
        self,
        target_status: TaskStatus,
        now: datetime.datetime,
        *,
        time_of_day: str | None = None,
        duration_minutes: int | None = None,
        grace_minutes: int = DEFAULT_STATUS_GRACE_MINUTES,
    ) -> None:
        """Run a client-initiated transition after the time-window gate."""
        target_status = parse_task_status(target_status)
        if target_status not in CLIENT_STATUSES:
            raise ValidationError(f"Status '{target_status.value}' cannot be set directly")
        if not self.can_change_to_status(
            time_of_day, duration_minutes, target_status, now=now, grace_minutes=grace_minutes
        ):
            raise GatingViolation(
                "Task time window has closed; it can no longer be reopened",
                current_status=self.status,
                target_status=target_status.value,
            )
        _CLIENT_TRANSITIONS[target_status](self, now)


_CLIENT_TRANSITIONS: dict[TaskStatus, Callable[[TaskProgress, datetime.datetime], None]] = {
    TaskStatus.PENDING: TaskProgress.reset,
    TaskStatus.IN_PROGRESS: TaskProgress.start,
    TaskStatus.COMPLETED: TaskProgress.complete,
    TaskStatus.SKIPPED: TaskProgress.skip,
}

# 日本語: MISSED は時間経過でのみ到達 / English: MISSED is reached by time only, never by a client
CLIENT_STATUSES = tuple(_CLIENT_TRANSITIONS)
