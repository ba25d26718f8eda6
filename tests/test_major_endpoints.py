import pytest
from fastapi.testclient import TestClient

from conftest import MONDAY, at
from routine_tracker.core.db import get_db
from routine_tracker.services.task_scheduler_service import TaskSchedulerService
from routine_tracker.web.dependencies import get_task_scheduler, get_task_status_service


@pytest.fixture()
def app_module(monkeypatch):
    monkeypatch.setenv("ROUTINE_SCHEDULER_ENABLED", "false")
    from routine_tracker import application

    return application


@pytest.fixture()
def client(app_module, session_factory, status_service):
    def _override_get_db():
        with session_factory() as db:
            yield db

    app = app_module.app
    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_task_status_service] = lambda: status_service
    app.dependency_overrides[get_task_scheduler] = lambda: TaskSchedulerService(status_service)
    # 日本語: startup (マイグレーション) を走らせないためコンテキスト外で使う / English: Used without the context manager so startup migrations never run
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_user_with_routine(client):
    user = client.post("/api/users", json={"display_name": "Alex"})
    assert user.status_code == 201
    user_id = user.json()["id"]

    routine = client.post(
        f"/api/users/{user_id}/routines",
        json={
            "title": "Morning Workout",
            "repeat_days": [1, 3, 5],
            "tasks": [
                {"title": "Stretch", "time_of_day": "09:00", "duration_minutes": 30},
                {"title": "Journal"},
            ],
        },
    )
    assert routine.status_code == 201
    return user_id, routine.json()


def test_create_routine_endpoint_serializes_tasks(client):
    user_id, routine = _create_user_with_routine(client)

    assert routine["user_id"] == user_id
    assert routine["repeat_days"] == [1, 3, 5]
    assert [task["title"] for task in routine["tasks"]] == ["Stretch", "Journal"]

    listed = client.get(f"/api/users/{user_id}/routines")
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()["routines"]] == [routine["id"]]


def test_day_view_catches_up_today(client, clock):
    user_id, _ = _create_user_with_routine(client)
    clock.set(at(MONDAY, 9, 15))

    response = client.get(f"/api/users/{user_id}/day/2026-10-19")

    assert response.status_code == 200
    payload = response.json()
    assert payload["date"] == "2026-10-19"
    assert payload["weekday"] == 1
    # 日本語: 時刻あり → 時刻なしの順 / English: Timed tasks sort before untimed ones
    assert [item["title"] for item in payload["timeline_items"]] == ["Stretch", "Journal"]
    assert [item["status"] for item in payload["timeline_items"]] == ["in_progress", "pending"]
    assert payload["completion_rate"] == 0


def test_day_view_for_other_dates_does_not_materialize(client):
    user_id, _ = _create_user_with_routine(client)

    response = client.get(f"/api/users/{user_id}/day/2026-10-21")

    assert response.status_code == 200
    assert response.json()["timeline_items"] == []


def test_day_view_rejects_invalid_date(client):
    user_id, _ = _create_user_with_routine(client)

    response = client.get(f"/api/users/{user_id}/day/not-a-date")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid date format. Use YYYY-MM-DD format"


def test_unknown_user_is_404(client):
    response = client.get("/api/users/999/day/2026-10-19")

    assert response.status_code == 404


def test_status_update_and_gating_conflict(client, clock):
    user_id, _ = _create_user_with_routine(client)
    clock.set(at(MONDAY, 9, 10))
    items = client.get(f"/api/users/{user_id}/day/2026-10-19").json()["timeline_items"]
    progress_id = items[0]["id"]

    completed = client.put(
        f"/api/users/{user_id}/progress/{progress_id}/status",
        json={"status": "completed", "notes": "easy"},
    )
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"
    assert completed.json()["notes"] == "easy"
    assert completed.json()["completed_at"] == "2026-10-19T09:10:00"

    clock.set(at(MONDAY, 12, 0))
    reopened = client.put(
        f"/api/users/{user_id}/progress/{progress_id}/status",
        json={"status": "pending"},
    )
    assert reopened.status_code == 409
    assert reopened.json()["current_status"] == "completed"
    assert reopened.json()["target_status"] == "pending"


def test_status_update_validation_errors(client, clock):
    user_id, _ = _create_user_with_routine(client)
    items = client.get(f"/api/users/{user_id}/day/2026-10-19").json()["timeline_items"]
    url = f"/api/users/{user_id}/progress/{items[0]['id']}/status"

    assert client.put(url, json={}).status_code == 400
    assert client.put(url, json={"status": "missed"}).status_code == 400
    assert client.put(url, content=b"not json", headers={"content-type": "application/json"}).status_code == 400
    assert client.put(f"/api/users/{user_id}/progress/9999/status", json={"status": "completed"}).status_code == 404


def test_notes_endpoint(client):
    user_id, _ = _create_user_with_routine(client)
    items = client.get(f"/api/users/{user_id}/day/2026-10-19").json()["timeline_items"]

    response = client.put(
        f"/api/users/{user_id}/progress/{items[1]['id']}/notes",
        json={"notes": "three pages"},
    )

    assert response.status_code == 200
    assert response.json()["notes"] == "three pages"
    too_long = client.put(
        f"/api/users/{user_id}/progress/{items[1]['id']}/notes",
        json={"notes": "x" * 1001},
    )
    assert too_long.status_code == 400


def test_stats_and_summary_endpoints(client, clock):
    user_id, _ = _create_user_with_routine(client)
    clock.set(at(MONDAY, 9, 10))
    items = client.get(f"/api/users/{user_id}/day/2026-10-19").json()["timeline_items"]
    client.put(f"/api/users/{user_id}/progress/{items[0]['id']}/status", json={"status": "completed"})

    stats = client.get(f"/api/users/{user_id}/stats")
    assert stats.status_code == 200
    assert stats.json()["daily_stats"]["completed_tasks"] == 1
    assert stats.json()["daily_stats"]["total_tasks"] == 2
    assert stats.json()["weekly_stats"]["current_week_completion"] == 1
    assert stats.json()["weekly_stats"]["active_routines"] == 1

    general = client.get(f"/api/users/{user_id}/stats/general")
    assert general.status_code == 200
    assert general.json()["total_completed_tasks"] == 1
    assert general.json()["pending_tasks"] == 1

    summary = client.post(f"/api/users/{user_id}/summary/2026-10-19")
    assert summary.status_code == 200
    assert summary.json()["progress_percent"] == 50.0
    assert summary.json()["has_active_tasks"] is True


def test_template_task_endpoints(client):
    user_id, routine = _create_user_with_routine(client)
    routine_id = routine["id"]

    added = client.post(
        f"/api/users/{user_id}/routines/{routine_id}/tasks",
        json={"tasks": [{"title": "Cool down", "duration_minutes": 5}]},
    )
    assert added.status_code == 201
    task = added.json()["tasks"][0]
    assert task["sort_order"] == 2

    updated = client.patch(f"/api/users/{user_id}/tasks/{task['id']}", json={"priority": "high"})
    assert updated.status_code == 200
    assert updated.json()["priority"] == "high"

    assert client.patch(f"/api/users/{user_id}/tasks/{task['id']}", json={"priority": "urgent"}).status_code == 400
    assert client.delete(f"/api/users/{user_id}/tasks/{task['id']}").status_code == 200
    assert client.delete(f"/api/users/{user_id}/tasks/{task['id']}").status_code == 404


def test_routine_update_and_delete_endpoints(client):
    user_id, routine = _create_user_with_routine(client)
    url = f"/api/users/{user_id}/routines/{routine['id']}"

    updated = client.patch(url, json={"active": False})
    assert updated.status_code == 200
    assert updated.json()["active"] is False

    assert client.delete(url).status_code == 200
    assert client.get(f"/api/users/{user_id}/routines").json()["routines"] == []


def test_admin_manual_sweep(client, clock):
    user_id, _ = _create_user_with_routine(client)
    clock.set(at(MONDAY, 9, 45))

    response = client.post("/api/admin/scheduler/run")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    day = client.get(f"/api/users/{user_id}/day/2026-10-19").json()
    assert [item["status"] for item in day["timeline_items"]] == ["missed", "pending"]
