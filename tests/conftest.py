import datetime
import sys
from pathlib import Path

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from routine_tracker.core.clock import FixedClock  # noqa: E402
from routine_tracker.models import Routine, RoutineTemplateTask, TaskProgress, User  # noqa: E402
from routine_tracker.services.task_status_service import TaskStatusService  # noqa: E402

# 2026-10-19 is a Monday.
MONDAY = datetime.date(2026, 10, 19)
TUESDAY = datetime.date(2026, 10, 20)
WEDNESDAY = datetime.date(2026, 10, 21)


def at(date_value: datetime.date, hour: int, minute: int = 0, second: int = 0) -> datetime.datetime:
    return datetime.datetime.combine(date_value, datetime.time(hour, minute, second))


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    def _factory() -> Session:
        return Session(engine)

    return _factory


@pytest.fixture()
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture()
def clock():
    return FixedClock(at(MONDAY, 8, 0))


@pytest.fixture()
def status_service(session_factory, clock):
    return TaskStatusService(session_factory, now_fn=clock, grace_minutes=120)


def seed_user(session_factory, display_name="Alex", is_active=True) -> int:
    with session_factory() as session:
        user = User(display_name=display_name, is_active=is_active)
        session.add(user)
        session.commit()
        return user.id


def seed_routine(
    session_factory,
    user_id: int,
    *,
    title="Morning Workout",
    repeat_days="1,3,5",
    default_time_of_day=None,
    active=True,
    tasks=None,
):
    """Create a routine; returns (routine_id, [template_task_id, ...])."""
    if tasks is None:
        tasks = [{"title": "Stretch", "time_of_day": "09:00:00", "duration_minutes": 30}]
    with session_factory() as session:
        routine = Routine(
            user_id=user_id,
            title=title,
            repeat_days=repeat_days,
            default_time_of_day=default_time_of_day,
            active=active,
        )
        session.add(routine)
        session.flush()
        created = []
        for index, task in enumerate(tasks):
            template_task = RoutineTemplateTask(routine_id=routine.id, sort_order=index, **task)
            session.add(template_task)
            created.append(template_task)
        session.commit()
        return routine.id, [task.id for task in created]


def seed_progress(session_factory, template_task_id: int, user_id: int, date_local, status="pending", **fields) -> int:
    with session_factory() as session:
        progress = TaskProgress(
            template_task_id=template_task_id,
            user_id=user_id,
            date_local=date_local,
            status=status,
            **fields,
        )
        session.add(progress)
        session.commit()
        return progress.id


def progress_rows(session_factory, user_id: int, date_local=None):
    with session_factory() as session:
        statement = select(TaskProgress).where(TaskProgress.user_id == user_id)
        if date_local is not None:
            statement = statement.where(TaskProgress.date_local == date_local)
        rows = list(session.exec(statement.order_by(TaskProgress.id)).all())
        for row in rows:
            session.expunge(row)
        return rows
