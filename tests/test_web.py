"""
Tests for the HTTP interface
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock
from todoflow.utils.error_handler import RemoteError
from todoflow.web.main import create_app


@pytest.fixture
def client(task_service):
    """Test client around an app using the mocked service graph"""
    with TestClient(create_app(task_service)) as test_client:
        yield test_client


@pytest.fixture
def guest_client(client):
    response = client.post("/api/auth/guest")
    assert response.status_code == 200
    return client


def test_session_starts_signed_out(client):
    response = client.get("/api/auth/session")
    assert response.json() == {"mode": None, "identity": None}


def test_todos_require_a_session(client):
    response = client.post("/api/todos", json={"title": "Nobody home"})
    assert response.status_code == 409
    assert response.json()["error_code"] == "session_error"


def test_guest_create_list_and_stats(guest_client):
    created = guest_client.post("/api/todos", json={"title": "Write tests", "priority": "high"})
    assert created.status_code == 201
    task = created.json()
    assert task["title"] == "Write tests"
    assert task["completed"] is False

    listing = guest_client.get("/api/todos").json()
    assert [item["id"] for item in listing["tasks"]] == [task["id"]]
    assert listing["stats"]["total"] == 1
    assert listing["stats"]["high_priority"] == 1

    assert guest_client.get("/api/stats").json()["active"] == 1


def test_blank_title_is_rejected(guest_client):
    response = guest_client.post("/api/todos", json={"title": "   "})
    assert response.status_code == 400
    assert response.json()["error_code"] == "validation_error"


def test_toggle_update_and_delete(guest_client):
    task_id = guest_client.post("/api/todos", json={"title": "Draft"}).json()["id"]

    toggled = guest_client.post(f"/api/todos/{task_id}/toggle")
    assert toggled.json()["completed"] is True

    updated = guest_client.patch(f"/api/todos/{task_id}", json={"title": "Final"})
    assert updated.json()["title"] == "Final"

    deleted = guest_client.delete(f"/api/todos/{task_id}")
    assert deleted.json()["success"] is True
    assert guest_client.get("/api/todos").json()["tasks"] == []


def test_unknown_task_returns_404(guest_client):
    response = guest_client.patch("/api/todos/missing", json={"completed": True})
    assert response.status_code == 404
    assert response.json()["details"] == {"task_id": "missing"}


def test_query_parameters_filter_the_list(guest_client):
    guest_client.post("/api/todos", json={"title": "Buy milk"})
    done_id = guest_client.post("/api/todos", json={"title": "Call mom"}).json()["id"]
    guest_client.post(f"/api/todos/{done_id}/toggle")

    completed = guest_client.get("/api/todos", params={"status": "completed"}).json()
    assert [item["title"] for item in completed["tasks"]] == ["Call mom"]

    searched = guest_client.get("/api/todos", params={"status": "all", "search": "MILK"}).json()
    assert [item["title"] for item in searched["tasks"]] == ["Buy milk"]

    assert guest_client.get("/api/todos", params={"status": "someday"}).status_code == 422


def test_selection_and_bulk(guest_client):
    ids = [guest_client.post("/api/todos", json={"title": f"Task {n}"}).json()["id"] for n in range(3)]

    guest_client.post(f"/api/selection/{ids[0]}")
    guest_client.post(f"/api/selection/{ids[1]}")
    assert set(guest_client.get("/api/selection").json()["selected"]) == {ids[0], ids[1]}

    projection = guest_client.post("/api/todos/bulk", json={"action": "complete"}).json()
    assert projection["stats"]["completed"] == 2
    assert guest_client.get("/api/selection").json()["selected"] == []

    cleared = guest_client.post("/api/todos/clear-completed").json()
    assert [item["id"] for item in cleared["tasks"]] == [ids[2]]


def test_select_all_and_clear(guest_client):
    guest_client.post("/api/todos", json={"title": "One"})
    guest_client.post("/api/todos", json={"title": "Two"})

    assert len(guest_client.post("/api/selection-all").json()["selected"]) == 2
    assert guest_client.delete("/api/selection").json()["selected"] == []


def test_login_switches_to_remote(client, mock_remote_store):
    response = client.post("/api/auth/login", json={"email": "test@example.com", "password": "secret"})

    assert response.status_code == 200
    assert response.json()["mode"] == "authenticated"
    assert response.json()["identity"]["id"] == "user_123"
    mock_remote_store.query.assert_called()


def test_login_failure_maps_to_502(client, mock_auth_client):
    mock_auth_client.sign_in_with_password = AsyncMock(side_effect=RemoteError("Invalid login credentials", 400))

    response = client.post("/api/auth/login", json={"email": "test@example.com", "password": "wrong"})

    assert response.status_code == 502
    assert response.json()["details"] == {"status_code": 400}


def test_notifications_are_drained(guest_client):
    guest_client.post("/api/todos", json={"title": "Notify me"})

    notifications = guest_client.get("/api/notifications").json()
    assert notifications[-1]["message"] == "Task created successfully"
    assert guest_client.get("/api/notifications").json() == []


def test_logout_returns_to_signed_out(guest_client):
    response = guest_client.post("/api/auth/logout")
    assert response.json()["mode"] is None


@pytest.mark.parametrize("field", ["priority", "completed", "position"])
def test_null_required_field_returns_400(guest_client, field):
    task_id = guest_client.post("/api/todos", json={"title": "Keep"}).json()["id"]

    response = guest_client.patch(f"/api/todos/{task_id}", json={field: None})

    assert response.status_code == 400
    assert response.json()["error_code"] == "validation_error"
    assert guest_client.get(f"/api/todos/{task_id}").json()[field] is not None


def test_get_single_todo(guest_client):
    task_id = guest_client.post("/api/todos", json={"title": "Look me up"}).json()["id"]

    assert guest_client.get(f"/api/todos/{task_id}").json()["title"] == "Look me up"
    assert guest_client.get("/api/todos/missing").status_code == 404


def test_profile_update(client):
    client.post("/api/auth/login", json={"email": "test@example.com", "password": "secret"})

    response = client.patch("/api/auth/profile", json={"name": "Renamed"})

    assert response.json()["identity"]["name"] == "Renamed"
    assert client.patch("/api/auth/profile", json={"role": "admin"}).status_code == 400
