"""
HTTP contract for the /schedule routes.
"""

import os
import time

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from src.api.main import app
from src.core.errors import StoreError


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


def test_health(client, standup_fields):
    client.post("/schedule", json=standup_fields)

    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["db_health"] is True
    assert body["entry_count"] == 1


def test_create_entry(client, standup_fields):
    response = client.post("/schedule", json=standup_fields)

    assert response.status_code == 200
    body = response.json()
    assert body["id"]
    assert body["created_at"]
    for name, value in standup_fields.items():
        assert body[name] == value


def test_title_round_trips_unchanged(client, standup_fields):
    standup_fields["title"] = "  Standup  (draft)"

    created = client.post("/schedule", json=standup_fields).json()

    assert created["title"] == "  Standup  (draft)"
    assert [e["title"] for e in client.get("/schedule").json()] == ["  Standup  (draft)"]


def test_create_then_list_includes_entry(client, standup_fields):
    created = client.post("/schedule", json=standup_fields).json()

    listed = client.get("/schedule").json()

    assert [e["id"] for e in listed] == [created["id"]]


def test_list_is_newest_first(client, entry_fields):
    client.post("/schedule", json=entry_fields(title="older"))
    time.sleep(0.01)
    client.post("/schedule", json=entry_fields(title="newer"))

    titles = [e["title"] for e in client.get("/schedule").json()]

    assert titles == ["newer", "older"]


def test_list_empty(client):
    response = client.get("/schedule")
    assert response.status_code == 200
    assert response.json() == []


def test_create_missing_field(client, standup_fields):
    del standup_fields["person"]

    response = client.post("/schedule", json=standup_fields)

    assert response.status_code == 400
    assert "person" in response.json()["error"]


def test_create_invalid_option(client, standup_fields):
    standup_fields["type"] = "Party"

    response = client.post("/schedule", json=standup_fields)

    assert response.status_code == 400
    assert response.json()["error"] == "type: Invalid Type: Party"


def test_create_empty_title(client, standup_fields):
    standup_fields["title"] = "  "

    response = client.post("/schedule", json=standup_fields)

    assert response.status_code == 400
    assert response.json()["error"] == "title: Title is required"


def test_get_entry(client, standup_fields):
    created = client.post("/schedule", json=standup_fields).json()

    response = client.get(f"/schedule/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


def test_get_missing_entry(client):
    response = client.get("/schedule/missing-id")

    assert response.status_code == 404
    assert "error" in response.json()


def test_update_entry(client, standup_fields):
    created = client.post("/schedule", json=standup_fields).json()

    response = client.put(f"/schedule/{created['id']}", json={"day": "5", "type": "Task"})

    assert response.status_code == 200
    body = response.json()
    assert body["day"] == "5"
    assert body["type"] == "Task"
    assert body["title"] == "Standup"


def test_update_invalid_value(client, standup_fields):
    created = client.post("/schedule", json=standup_fields).json()

    response = client.put(f"/schedule/{created['id']}", json={"day": "7"})

    assert response.status_code == 400
    assert response.json()["error"] == "day: Invalid Day: 7"


def test_update_empty_body(client, standup_fields):
    created = client.post("/schedule", json=standup_fields).json()

    response = client.put(f"/schedule/{created['id']}", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "No fields to update"


def test_update_null_field(client, standup_fields):
    created = client.post("/schedule", json=standup_fields).json()

    response = client.put(f"/schedule/{created['id']}", json={"person": None})

    assert response.status_code == 400
    assert response.json()["error"] == "Person is required"


def test_update_missing_entry(client):
    response = client.put("/schedule/missing-id", json={"day": "3"})

    assert response.status_code == 404
    assert "error" in response.json()


def test_delete_entry(client, standup_fields):
    created = client.post("/schedule", json=standup_fields).json()

    response = client.delete(f"/schedule/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get("/schedule").json() == []
    assert client.get(f"/schedule/{created['id']}").status_code == 404


def test_delete_missing_entry_succeeds(client):
    response = client.delete("/schedule/missing-id")

    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_store_error_is_500(client):
    with patch('src.api.main.dao.list_entries', side_effect=StoreError("disk I/O error")):
        response = client.get("/schedule")

    assert response.status_code == 500
    assert response.json() == {"error": "disk I/O error"}


def test_unreachable_store_is_500(client, test_db, standup_fields):
    os.environ['DB_PATH'] = os.path.dirname(test_db)

    assert client.get("/schedule").status_code == 500
    assert client.post("/schedule", json=standup_fields).status_code == 500
    assert client.delete("/schedule/any").status_code == 500
    assert "error" in client.put("/schedule/any", json={"day": "1"}).json()


def test_no_cross_origin_access_by_default(client):
    response = client.get("/schedule", headers={"Origin": "http://localhost:3000"})

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers
