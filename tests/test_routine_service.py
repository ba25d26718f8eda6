import pytest
from sqlmodel import select

from conftest import MONDAY, at, seed_progress, seed_user
from routine_tracker.core.errors import NotFoundError, ValidationError
from routine_tracker.models import Category, Routine, RoutineTemplateTask, TaskProgress
from routine_tracker.services import routine_service

NOW = at(MONDAY, 7, 0)


def _routine_payload(**overrides):
    payload = {
        "title": "Morning Workout",
        "default_time_of_day": "6:30",
        "repeat_days": [5, 1, 3, 3],
        "tasks": [
            {"title": "Stretch", "time_of_day": "7:05", "duration_minutes": 10},
            {"title": "Run", "duration_minutes": "30", "priority": "HIGH"},
        ],
    }
    payload.update(overrides)
    return payload


def test_create_routine_normalizes_fields(db, session_factory):
    user_id = seed_user(session_factory)

    routine = routine_service.create_routine(db, user_id, _routine_payload(), now=NOW)
    serialized = routine_service.serialize_routine(routine)

    assert serialized["repeat_days"] == [1, 3, 5]
    assert serialized["default_time_of_day"] == "06:30:00"
    assert [task["title"] for task in serialized["tasks"]] == ["Stretch", "Run"]
    assert serialized["tasks"][0]["time_of_day"] == "07:05:00"
    assert serialized["tasks"][1]["time_of_day"] is None
    assert serialized["tasks"][1]["effective_time_of_day"] == "06:30:00"
    assert serialized["tasks"][1]["duration_minutes"] == 30
    assert serialized["tasks"][1]["priority"] == "high"
    assert [task["sort_order"] for task in serialized["tasks"]] == [0, 1]


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": "x"},
        {"title": "t" * 121},
        {"repeat_days": []},
        {"repeat_days": [0, 8]},
        {"default_time_of_day": "25:00"},
        {"tasks": "Stretch"},
    ],
)
def test_create_routine_rejects_invalid_input(db, session_factory, overrides):
    user_id = seed_user(session_factory)

    with pytest.raises(ValidationError):
        routine_service.create_routine(db, user_id, _routine_payload(**overrides), now=NOW)


def test_invalid_task_discards_the_whole_routine(db, session_factory):
    user_id = seed_user(session_factory)
    payload = _routine_payload(tasks=[{"title": "Stretch"}, {"title": "Run", "duration_minutes": 0}])

    with pytest.raises(ValidationError):
        routine_service.create_routine(db, user_id, payload, now=NOW)

    with session_factory() as check:
        assert check.exec(select(Routine)).all() == []
        assert check.exec(select(RoutineTemplateTask)).all() == []


def test_create_routine_for_unknown_user(db):
    with pytest.raises(NotFoundError):
        routine_service.create_routine(db, 404, _routine_payload(), now=NOW)


def test_add_tasks_continues_sort_order(db, session_factory):
    user_id = seed_user(session_factory)
    routine = routine_service.create_routine(db, user_id, _routine_payload(), now=NOW)

    added = routine_service.add_tasks_to_routine(
        db,
        routine.id,
        user_id,
        [{"title": "Cool down"}, {"title": "Shower", "sort_order": 10}],
        now=NOW,
    )

    assert [task.sort_order for task in added] == [2, 10]
    single = routine_service.add_task_to_routine(db, routine.id, user_id, {"title": "Breakfast"}, now=NOW)
    assert single.sort_order == 11


def test_add_tasks_rejects_all_when_one_is_invalid(db, session_factory):
    user_id = seed_user(session_factory)
    routine = routine_service.create_routine(db, user_id, _routine_payload(tasks=[]), now=NOW)

    with pytest.raises(ValidationError):
        routine_service.add_tasks_to_routine(
            db, routine.id, user_id, [{"title": "Fine"}, {"title": "Bad", "time_of_day": "9am"}], now=NOW
        )
    db.rollback()

    assert routine_service.serialize_routine(db.get(Routine, routine.id))["tasks"] == []


def test_unknown_category_is_not_found(db, session_factory):
    user_id = seed_user(session_factory)
    routine = routine_service.create_routine(db, user_id, _routine_payload(tasks=[]), now=NOW)

    with pytest.raises(NotFoundError):
        routine_service.add_task_to_routine(db, routine.id, user_id, {"title": "Yoga", "category_id": 77}, now=NOW)

    category = Category(name="Health")
    db.add(category)
    db.commit()
    task = routine_service.add_task_to_routine(
        db, routine.id, user_id, {"title": "Yoga", "category_id": category.id}, now=NOW
    )
    assert task.category_id == category.id


def test_other_users_routine_is_not_found(db, session_factory):
    owner_id = seed_user(session_factory, "Owner")
    stranger_id = seed_user(session_factory, "Stranger")
    routine = routine_service.create_routine(db, owner_id, _routine_payload(), now=NOW)

    with pytest.raises(NotFoundError):
        routine_service.update_routine(db, routine.id, stranger_id, {"title": "Mine now"})
    with pytest.raises(NotFoundError):
        routine_service.delete_routine(db, routine.id, stranger_id)
    with pytest.raises(NotFoundError):
        routine_service.update_template_task(db, routine.tasks[0].id, stranger_id, {"title": "Nope"}, now=NOW)


def test_update_routine_deactivates_and_changes_days(db, session_factory):
    user_id = seed_user(session_factory)
    routine = routine_service.create_routine(db, user_id, _routine_payload(), now=NOW)

    updated = routine_service.update_routine(
        db, routine.id, user_id, {"active": "false", "repeat_days": "6,7", "default_time_of_day": ""}
    )

    assert updated.active is False
    assert updated.repeat_day_list == [6, 7]
    assert updated.default_time_of_day is None


def test_update_template_task_validates_fields(db, session_factory):
    user_id = seed_user(session_factory)
    routine = routine_service.create_routine(db, user_id, _routine_payload(), now=NOW)
    task_id = routine.tasks[0].id

    with pytest.raises(ValidationError):
        routine_service.update_template_task(db, task_id, user_id, {"duration_minutes": 1441}, now=NOW)
    db.rollback()

    later = at(MONDAY, 8, 0)
    task = routine_service.update_template_task(
        db, task_id, user_id, {"duration_minutes": 45, "priority": "low", "time_of_day": None}, now=later
    )
    assert task.duration_minutes == 45
    assert task.priority == "low"
    assert task.time_of_day is None
    assert task.updated_at == later


def test_delete_routine_cascades_to_tasks_and_progress(db, session_factory):
    user_id = seed_user(session_factory)
    routine = routine_service.create_routine(db, user_id, _routine_payload(), now=NOW)
    routine_id = routine.id
    task_id = routine.tasks[0].id
    seed_progress(session_factory, task_id, user_id, MONDAY)

    routine_service.delete_routine(db, routine_id, user_id)

    with session_factory() as check:
        assert check.get(Routine, routine_id) is None
        assert check.exec(select(RoutineTemplateTask)).all() == []
        assert check.exec(select(TaskProgress)).all() == []


def test_delete_template_task_cascades_to_progress(db, session_factory):
    user_id = seed_user(session_factory)
    routine = routine_service.create_routine(db, user_id, _routine_payload(), now=NOW)
    first_id, second_id = sorted(task.id for task in routine.tasks)
    seed_progress(session_factory, first_id, user_id, MONDAY)
    seed_progress(session_factory, second_id, user_id, MONDAY)

    routine_service.delete_template_task(db, first_id, user_id)

    with session_factory() as check:
        remaining = check.exec(select(TaskProgress)).all()
        assert [row.template_task_id for row in remaining] == [second_id]


def test_list_user_routines_only_returns_own(db, session_factory):
    owner_id = seed_user(session_factory, "Owner")
    other_id = seed_user(session_factory, "Other")
    routine_service.create_routine(db, owner_id, _routine_payload(title="Morning"), now=NOW)
    routine_service.create_routine(db, other_id, _routine_payload(title="Evening"), now=NOW)

    titles = [routine.title for routine in routine_service.list_user_routines(db, owner_id)]

    assert titles == ["Morning"]
