import os
import pytest
from unittest.mock import patch

# Set TESTING before any tably imports
os.environ["TESTING"] = "true"

from fastapi.testclient import TestClient
from tably.app import app
from tably.core import db
from tably.core import models  # noqa: F401

VALID = {"name": "Alice", "phoneNumber": "5551234567", "numberOfPeople": 2}


@pytest.fixture
def client():
    db.Base.metadata.drop_all(bind=db.engine)
    db.Base.metadata.create_all(bind=db.engine)
    yield TestClient(app)
    db.session.remove()

@pytest.fixture
def admin(client):
    response = client.post("/api/admin/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200
    return client

def join(client, **overrides):
    return client.post("/api/queue", json={**VALID, **overrides})


def test_join_creates_entry(client):
    response = join(client)
    assert response.status_code == 201
    data = response.json()
    assert data["position"] == 1
    assert data["status"] == "waiting"
    assert data["phoneNumber"] == "5551234567"
    assert data["numberOfPeople"] == 2
    assert data["visitCount"] == 1
    assert data["calledAt"] is None
    assert data["isExisting"] is False
    assert data["isReUsed"] is False

def test_join_again_while_waiting(client):
    first = join(client).json()
    response = join(client, numberOfPeople=5)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == first["id"]
    assert data["isExisting"] is True
    assert data["numberOfPeople"] == 2

def test_join_after_cancel_is_reused(client):
    first = join(client).json()
    client.patch(f"/api/queue/{first['id']}/cancel")
    response = join(client)
    assert response.status_code == 200
    assert response.json()["isReUsed"] is True
    assert response.json()["isExisting"] is False

@pytest.mark.parametrize("overrides, field, message", [
    ({"phoneNumber": "12345"}, "phoneNumber", "Phone number must be exactly 10 digits"),
    ({"phoneNumber": "55512345ab"}, "phoneNumber", "Phone number must only contain digits"),
    ({"numberOfPeople": 16}, "numberOfPeople", "Maximum 15 people"),
    ({"numberOfPeople": 0}, "numberOfPeople", "At least 1 person required"),
    ({"name": ""}, "name", "Name is required"),
])
def test_join_validation_errors(client, overrides, field, message):
    response = join(client, **overrides)
    assert response.status_code == 400
    assert response.json() == {"message": message, "field": field}
    assert client.get("/api/queue").json() == []

@pytest.mark.parametrize("people", ["3", 3.5, 3.0])
def test_join_rejects_non_integer_party_size(client, people):
    response = join(client, numberOfPeople=people)
    assert response.status_code == 400
    assert response.json()["field"] == "numberOfPeople"
    assert client.get("/api/queue").json() == []

def test_join_missing_field(client):
    response = client.post("/api/queue", json={"name": "Alice"})
    assert response.status_code == 400
    assert response.json()["field"] == "phoneNumber"

def test_queue_listing_and_lookup(client):
    alice = join(client).json()
    bob = join(client, name="Bob", phoneNumber="5559876543").json()

    listing = client.get("/api/queue").json()
    assert [e["id"] for e in listing] == [alice["id"], bob["id"]]

    assert client.get(f"/api/queue/{bob['id']}").json()["name"] == "Bob"
    assert client.get("/api/queue/phone/5559876543").json()["id"] == bob["id"]
    response = client.get("/api/queue/phone/5550000000")
    assert response.status_code == 200
    assert response.json() is None

def test_unknown_entry_is_404(client):
    for path in ("/api/queue/999", "/api/queue/abc", "/api/queue/999/position"):
        response = client.get(path)
        assert response.status_code == 404
        assert response.json() == {"message": "Queue entry not found"}
    assert client.patch("/api/queue/999/cancel").status_code == 404

def test_position_after_cancel(client):
    alice = join(client).json()
    bob = join(client, name="Bob", phoneNumber="5559876543").json()

    cancelled = client.patch(f"/api/queue/{alice['id']}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["position"] == 0

    response = client.get(f"/api/queue/{bob['id']}/position")
    assert response.json() == {"position": 1, "totalWaiting": 1}
    assert client.get(f"/api/queue/{alice['id']}/position").status_code == 404

def test_admin_requires_login(client):
    for method, path in (
        ("get", "/api/admin/entries"),
        ("get", "/api/admin/stats"),
        ("get", "/api/admin/analytics"),
        ("post", "/api/admin/call/1"),
        ("post", "/api/admin/complete/1"),
    ):
        response = getattr(client, method)(path)
        assert response.status_code == 401

def test_admin_login_rejects_bad_credentials(client):
    response = client.post("/api/admin/login", json={"username": "admin", "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}

def test_admin_bearer_token(client):
    token = client.post(
        "/api/admin/login", json={"username": "admin", "password": "admin123"}
    ).json()["token"]
    client.cookies.clear()
    response = client.get("/api/admin/stats", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200

def test_admin_call_and_complete(admin):
    alice = join(admin).json()

    called = admin.post(f"/api/admin/call/{alice['id']}")
    assert called.status_code == 200
    assert called.json()["status"] == "called"
    assert called.json()["calledAt"] is not None

    completed = admin.post(f"/api/admin/complete/{alice['id']}")
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"
    assert completed.json()["visitCount"] == 2

    assert admin.post(f"/api/admin/complete/{alice['id']}").status_code == 409
    assert admin.patch(f"/api/queue/{alice['id']}/cancel").status_code == 409
    assert admin.post("/api/admin/call/999").status_code == 404

def test_admin_entries_stats_and_analytics(admin):
    alice = join(admin).json()
    join(admin, name="Bob", phoneNumber="5559876543")
    admin.post(f"/api/admin/call/{alice['id']}")

    entries = admin.get("/api/admin/entries").json()
    assert len(entries) == 2

    assert admin.get("/api/admin/stats").json() == {"totalCustomers": 2, "totalVisits": 2}

    days = admin.get("/api/admin/analytics", params={"period": "week"}).json()
    assert len(days) == 1
    assert days[0]["total"] == 2
    assert days[0]["accepted"] == 1
    assert set(days[0]) == {"date", "total", "accepted", "cancelled", "avgWaitTime"}

    response = admin.get("/api/admin/analytics", params={"period": "year"})
    assert response.status_code == 400
    assert response.json()["field"] == "period"

def test_admin_logout(admin):
    admin.post("/api/admin/logout")
    assert admin.get("/api/admin/entries").status_code == 401

def test_repository_failure_is_reported_generically(client):
    with patch("tably.core.queue.QueueAPI.get_queue", side_effect=RuntimeError("secret dsn")):
        response = client.get("/api/queue")
    assert response.status_code == 500
    assert response.json() == {"message": "Failed to fetch queue"}
