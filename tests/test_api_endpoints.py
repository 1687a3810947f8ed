import datetime
from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient

from study_planner.core.db import get_db


@pytest.fixture()
def app_module(monkeypatch):
    monkeypatch.setenv("SESSION_SECRET", "test-secret")
    from study_planner import application

    return application


@contextmanager
def _client(app_module, db, user_id="alice"):
    app = app_module.create_app()
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as client:
        if user_id:
            response = client.post("/api/session", json={"user_id": user_id, "display_name": "Alice"})
            assert response.status_code == 200
        yield client


def _new_subject(client, **overrides):
    payload = {"name": "Math", "day_of_week": 1, "start_time": "08:00", "end_time": "09:30"}
    payload.update(overrides)
    response = client.post("/api/subjects", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def test_api_requires_sign_in(app_module, db):
    with _client(app_module, db, user_id=None) as client:
        assert client.get("/api/subjects").status_code == 401
        assert client.get("/api/session").json() == {"authenticated": False, "user": None}
        # Pages still render the sign-in form.
        assert client.get("/").status_code == 200


def test_session_round_trip(app_module, db):
    with _client(app_module, db) as client:
        assert client.get("/api/session").json()["user"]["user_id"] == "alice"
        client.delete("/api/session")
        assert client.get("/api/tasks").status_code == 401


def test_header_identifies_api_clients(app_module, db):
    with _client(app_module, db, user_id=None) as client:
        response = client.get("/api/tasks", headers={"X-User-Id": "carol"})
    assert response.status_code == 200
    assert response.json()["count"] == 0


def test_subject_validation_errors_are_400(app_module, db):
    with _client(app_module, db) as client:
        bad_weekday = client.post(
            "/api/subjects", json={"name": "Math", "day_of_week": 7, "start_time": "08:00", "end_time": "09:00"}
        )
        backwards = client.post(
            "/api/subjects", json={"name": "Math", "day_of_week": 1, "start_time": "10:00", "end_time": "09:00"}
        )

    assert bad_weekday.status_code == 400
    assert "day_of_week" in bad_weekday.json()["detail"]
    assert backwards.status_code == 400


def test_subject_crud_and_cascade_to_tasks(app_module, db):
    with _client(app_module, db) as client:
        subject = _new_subject(client, location="  ")
        assert subject["location"] is None
        assert subject["color"] == "#3B82F6"

        task = client.post(
            "/api/tasks",
            json={"title": "Homework", "due_date": "2025-03-03", "priority": 3, "subject_id": subject["id"]},
        ).json()
        assert task["subject_name"] == "Math"

        updated = client.put(f"/api/subjects/{subject['id']}", json={"end_time": "10:00"})
        assert updated.json()["end_time"] == "10:00"
        assert client.put(f"/api/subjects/{subject['id']}", json={"end_time": "07:00"}).status_code == 400

        assert client.delete(f"/api/subjects/{subject['id']}").json() == {"status": "ok"}
        assert client.get(f"/api/subjects/{subject['id']}").status_code == 404
        assert client.get(f"/api/tasks/{task['id']}").json()["subject_id"] is None


def test_task_for_unknown_subject_is_rejected(app_module, db):
    with _client(app_module, db) as client:
        response = client.post("/api/tasks", json={"title": "Homework", "due_date": "2025-03-03", "subject_id": 999})
    assert response.status_code == 400


def test_toggle_and_status_filter(app_module, db):
    with _client(app_module, db) as client:
        task = client.post("/api/tasks", json={"title": "Essay", "due_date": "2025-03-03"}).json()
        toggled = client.post(f"/api/tasks/{task['id']}/toggle").json()
        assert toggled["is_completed"] is True

        completed = client.get("/api/tasks?status=completed").json()
        assert [item["title"] for item in completed["completed"]] == ["Essay"]
        assert client.get("/api/tasks?status=bogus").status_code == 400

        flashes = client.get("/api/flash").json()["messages"]
        assert flashes[-1]["message"] == "Task marked as done."


def test_other_users_rows_are_not_found(app_module, db):
    with _client(app_module, db) as client:
        task = client.post("/api/tasks", json={"title": "Private", "due_date": "2025-03-03"}).json()
    with _client(app_module, db, user_id="bob") as client:
        assert client.get(f"/api/tasks/{task['id']}").status_code == 404
        assert client.delete(f"/api/tasks/{task['id']}").status_code == 404
        assert client.get("/api/tasks").json()["count"] == 0


def test_form_posts_redirect_back_to_pages(app_module, db):
    with _client(app_module, db) as client:
        response = client.post(
            "/subjects/add",
            data={"name": "Biology", "day_of_week": "3", "start_time": "08:00", "end_time": "09:00"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"].endswith("/subjects")

        response = client.post(
            "/tasks/add",
            data={"title": "Read", "due_date": "2025-03-05", "priority": "2", "subject_id": ""},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"].endswith("/tasks")
        assert client.get("/api/tasks").json()["count"] == 1


def test_calendar_endpoint_rollover_and_payload_shape(app_module, db):
    with _client(app_module, db) as client:
        _new_subject(client)
        response = client.get("/api/calendar?year=2026&month=13")

    assert response.status_code == 200
    payload = response.json()
    assert payload["year"] == 2027
    assert payload["month"] == 1
    assert all(len(week) == 7 for week in payload["calendar_data"])
    day = payload["calendar_data"][0][0]
    assert {
        "date",
        "day_num",
        "is_current_month",
        "is_today",
        "state",
        "subject_count",
        "pending_task_count",
        "completed_task_count",
        "markers",
    }.issubset(day.keys())
    mondays = [week[1] for week in payload["calendar_data"] if week[1]["is_current_month"]]
    assert all(cell["state"] == "class" for cell in mondays)


def test_day_endpoint_rejects_invalid_date(app_module, db):
    with _client(app_module, db) as client:
        response = client.get("/api/day/not-a-date")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid date format"


def test_day_endpoint_matches_scenario(app_module, db):
    with _client(app_module, db) as client:
        subject = _new_subject(client)
        client.post(
            "/api/tasks",
            json={"title": "Homework", "due_date": "2025-03-03", "priority": 3, "subject_id": subject["id"]},
        )
        monday = client.get("/api/day/2025-03-03").json()
        empty = client.get("/api/day/2025-03-04").json()

    assert monday["state"] == "mixed"
    assert monday["subjects_with_tasks"][0]["tasks"][0]["title"] == "Homework"
    assert empty["state"] == "empty"


def test_day_page_redirects_invalid_dates(app_module, db):
    with _client(app_module, db) as client:
        ok = client.get("/day/2025-03-03")
        bad = client.get("/day/garbage", follow_redirects=False)

    assert ok.status_code == 200
    assert 'data-page-date="2025-03-03"' in ok.text
    assert bad.status_code == 303


def test_search_requires_two_characters(app_module, db):
    with _client(app_module, db) as client:
        _new_subject(client, name="Mathematics")
        assert client.get("/api/search?q=m").json() == {"results": []}
        results = client.get("/api/search?q=math").json()["results"]

    assert results == [{"id": results[0]["id"], "title": "Mathematics", "type": "subject", "subtitle": "08:00 - 09:30"}]


def test_sample_data_seeds_once(app_module, db):
    with _client(app_module, db) as client:
        first = client.post("/api/add_sample_data").json()
        second = client.post("/api/add_sample_data").json()
        dashboard = client.get("/api/dashboard").json()
        subjects = client.get("/api/subjects").json()

    assert "Seeded 5 subjects" in first["message"]
    assert second["message"] == "Data already exists, nothing new seeded."
    assert subjects["count"] == 5
    assert set(dashboard["stats"]) == {"today_classes", "pending_tasks", "due_today", "tomorrow_classes"}


def test_notification_endpoints(app_module, db):
    with _client(app_module, db) as client:
        assert client.post("/api/notifications/permission", json={"permission": "granted"}).json() == {
            "permission": "granted"
        }
        assert client.post("/api/notifications/permission", json={"permission": "nope"}).status_code == 400

        client.post("/api/tasks", json={"title": "Due now", "due_date": datetime.date.today().isoformat()})
        checked = client.post("/api/notifications/check").json()
        assert [item["type"] for item in checked["notifications"]] == ["task"]
        assert checked["system"] is True

        fresh = client.get("/api/notifications/new").json()["notifications"]
        assert len(fresh) == 1
        assert client.get("/api/notifications/new").json()["notifications"] == []

        # Already alerted today.
        assert client.post("/api/notifications/check").json()["notifications"] == []

        assert client.delete(f"/api/notifications/{fresh[0]['id']}").json() == {"status": "ok"}
        assert client.delete(f"/api/notifications/{fresh[0]['id']}").status_code == 404
        assert client.delete("/api/notifications").json() == {"status": "cleared"}


def test_header_identity_can_be_disabled(app_module, db, monkeypatch):
    monkeypatch.setenv("TRUST_USER_HEADER", "0")
    with _client(app_module, db, user_id=None) as client:
        response = client.get("/api/tasks", headers={"X-User-Id": "carol"})
    assert response.status_code == 401


@pytest.mark.parametrize("field_name", ["title", "due_date", "priority", "is_completed"])
def test_task_update_with_null_required_field_is_400(app_module, db, field_name):
    with _client(app_module, db) as client:
        task = client.post("/api/tasks", json={"title": "Essay", "due_date": "2025-03-03"}).json()
        response = client.put(f"/api/tasks/{task['id']}", json={field_name: None})
        unchanged = client.get(f"/api/tasks/{task['id']}").json()

    assert response.status_code == 400
    assert field_name in response.json()["detail"]
    assert unchanged["title"] == "Essay"
    assert unchanged["due_date"] == "2025-03-03"


@pytest.mark.parametrize(
    "query",
    ["year=9999&month=13", "year=0&month=1", "year=1&month=1", "year=2&month=0", "year=9999&month=1", "year=2026&month=14", "year=2026&month=-1"],
)
def test_calendar_rejects_out_of_range_year_and_month(app_module, db, query):
    with _client(app_module, db) as client:
        response = client.get(f"/api/calendar?{query}")

    assert response.status_code == 400
    assert response.json()["detail"] == "year and month are out of range"


def test_calendar_accepts_edges_of_supported_range(app_module, db):
    with _client(app_module, db) as client:
        first = client.get("/api/calendar?year=2&month=1")
        last = client.get("/api/calendar?year=9998&month=12")

    assert first.status_code == 200
    assert last.status_code == 200
