"""Tests for the REST API."""

import pytest
from fastapi.testclient import TestClient

import database
from api_server import app, get_trigger_engine
from config import settings
from errors import StoreUnavailableError, TriggerEngineError

HERE = {"lat": 12.9716, "lng": 77.5946}


@pytest.fixture()
def client(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "PROXIMITY_BACKEND", "database")

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[database.get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _add_place(client, name, category, dlat=0.001):
    response = client.post("/api/places", json={
        "name": name,
        "category": category,
        "latitude": HERE["lat"] + dlat,
        "longitude": HERE["lng"],
    })
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_task_classifies_text(client):
    response = client.post("/tasks", json={"text": "Buy milk", "priority": "high"})

    assert response.status_code == 200
    body = response.json()
    assert body["category"] == "grocery"
    assert body["priority"] == "high"
    assert body["status"] == "pending"
    assert body["triggered_at"] is None
    assert body["cooldown_minutes"] == settings.DEFAULT_TASK_COOLDOWN_MINUTES


def test_create_task_invalid_priority_defaults_to_medium(client):
    response = client.post("/api/tasks", json={"text": "get a tablet", "priority": "urgent"})

    assert response.json()["priority"] == "medium"
    assert response.json()["category"] == "pharmacy"


def test_create_task_requires_text(client):
    response = client.post("/tasks", json={"text": "   "})
    assert response.status_code == 400
    assert response.json()["detail"] == "Text is required"


def test_list_and_delete_tasks(client):
    first = client.post("/tasks", json={"text": "buy shirt"}).json()
    second = client.post("/tasks", json={"text": "call mom"}).json()

    listed = client.get("/api/tasks").json()
    assert [t["id"] for t in listed] == [second["id"], first["id"]]

    assert client.delete(f"/api/tasks/{first['id']}").json() == {"success": True, "id": first["id"]}
    assert client.delete(f"/api/tasks/{first['id']}").status_code == 404
    assert [t["id"] for t in client.get("/api/tasks").json()] == [second["id"]]


def test_stats(client):
    client.post("/tasks", json={"text": "buy milk", "priority": "high"})
    client.post("/tasks", json={"text": "buy apples"})
    client.post("/tasks", json={"text": "new dress", "priority": "low"})

    stats = client.get("/api/tasks/stats").json()

    assert stats["total"] == 3
    assert stats["by_status"] == {"pending": 3, "triggered": 0}
    assert stats["by_category"]["grocery"] == 2
    assert stats["by_category"]["pharmacy"] == 0
    assert stats["by_priority"] == {"high": 1, "medium": 1, "low": 1}


def test_nearby(client):
    _add_place(client, "Near Mart", "grocery", dlat=0.001)
    _add_place(client, "Far Mart", "grocery", dlat=0.03)
    _add_place(client, "Pharma", "pharmacy", dlat=0.001)

    response = client.get("/nearby", params={**HERE, "category": "grocery"})

    assert response.status_code == 200
    rows = response.json()
    assert [r["name"] for r in rows] == ["Near Mart", "Far Mart"]
    assert rows[0]["distance"] == 111


@pytest.mark.parametrize("params", [
    {"lat": 1},
    {"lat": 1, "lng": 2},
    {"lat": "north", "lng": 2, "category": "grocery"},
    {"lat": "nan", "lng": 2, "category": "grocery"},
])
def test_nearby_requires_parameters(client, params):
    response = client.get("/nearby", params=params)

    assert response.status_code == 400
    assert response.json() == {"error": "lat, lng, category required"}


@pytest.mark.parametrize("body", [{}, {"lat": 12.9}, {"lng": 77.5}, {"lat": "x", "lng": 77.5}])
def test_location_requires_coordinates(client, body):
    response = client.post("/location", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "lat and lng required"}


def test_other_routes_keep_default_validation_errors(client):
    response = client.post("/tasks", json={})

    assert response.status_code == 422
    assert "detail" in response.json()


def test_location_triggers_and_batches(client):
    _add_place(client, "FreshMart", "grocery")
    milk = client.post("/tasks", json={"text": "buy milk", "priority": "low"}).json()
    apples = client.post("/tasks", json={"text": "buy apples", "priority": "high"}).json()
    client.post("/tasks", json={"text": "buy shirt"})

    response = client.post("/location", json=HERE)

    assert response.status_code == 200
    batches = response.json()["batches"]
    assert batches == [{
        "category": "grocery",
        "count": 1,
        "tasks": [{
            "task_id": apples["id"],
            "text": "buy apples",
            "place_name": "FreshMart",
            "priority": "high",
        }],
    }]

    statuses = {t["id"]: t["status"] for t in client.get("/api/tasks").json()}
    assert statuses[apples["id"]] == "triggered"
    assert statuses[milk["id"]] == "pending"

    # the category is now cooling down
    assert client.post("/location", json=HERE).json() == {"batches": []}


def test_location_rejects_non_finite(client):
    response = client.post("/location", content='{"lat": NaN, "lng": 1}', headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "lat and lng required"}


def test_location_engine_failure(client):
    class BrokenEngine:
        def process_sample(self, point):
            raise TriggerEngineError("Trigger engine failed") from StoreUnavailableError("down")

    app.dependency_overrides[get_trigger_engine] = lambda: BrokenEngine()

    response = client.post("/location", json=HERE)

    assert response.status_code == 500
    assert response.json() == {"error": "Trigger engine failed"}
