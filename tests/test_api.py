# tests/test_api.py
"""HTTP surface: status codes and payloads through FastAPI's TestClient."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from app.database import LedgerStore
from app.exceptions import LedgerUnavailable
from app.main import create_app

SIGN_IN = {
    "kind": "visitor",
    "full_name": "Ann Visitor",
    "phone_number": "07700900123",
    "purpose_of_visit": "Site meeting",
    "visiting_person": "Bob Host",
}


@pytest.fixture
def client(tmp_path):
    app = create_app(LedgerStore(f"sqlite:///{tmp_path / 'api.db'}"), api_key="")
    with TestClient(app) as c:
        yield c


@pytest.fixture
def registered(client):
    r = client.post("/api/v1/vehicles", json={"registration": "ABC123", "odometer": 50000})
    assert r.status_code == 201
    return r.json()["data"]


def checkout_body(odometer=50000, reg="ABC123"):
    return {"registration": reg, "operator": "Jo Driver", "starting_odometer": odometer,
            "terms_acknowledged": True}


class TestSignInRoutes:
    def test_sign_in_and_out(self, client):
        r = client.post("/api/v1/sign-ins", json=SIGN_IN)
        assert r.status_code == 201
        assert r.json()["status"] == "signed_in"
        occupant_id = r.json()["data"]["id"]

        active = client.get("/api/v1/sign-ins/status/active").json()
        assert active["count"] == 1
        assert active["data"][0]["id"] == occupant_id

        r = client.put(f"/api/v1/sign-ins/{occupant_id}/sign-out")
        assert r.status_code == 200
        assert r.json()["data"]["state"] == "off_site"

        r = client.put(f"/api/v1/sign-ins/{occupant_id}/sign-out")
        assert r.status_code == 400
        assert r.json()["kind"] == "ALREADY_IN_STATE"
        assert r.json()["current_state"] == "off_site"

    def test_sign_out_unknown(self, client):
        r = client.put("/api/v1/sign-ins/999/sign-out")
        assert r.status_code == 404
        assert r.json()["kind"] == "NOT_FOUND"

    def test_invalid_payload_rejected(self, client):
        assert client.post("/api/v1/sign-ins", json={**SIGN_IN, "full_name": "A"}).status_code == 422
        assert client.post("/api/v1/sign-ins", json={**SIGN_IN, "badge": 7}).status_code == 422
        assert client.post("/api/v1/sign-ins", json={**SIGN_IN, "kind": "contractor"}).status_code == 422

    def test_list_paginates(self, client):
        for _ in range(3):
            client.post("/api/v1/sign-ins", json=SIGN_IN)
        page = client.get("/api/v1/sign-ins", params={"limit": 2}).json()
        assert page["total"] == 3
        assert len(page["data"]) == 2
        assert page["has_more"] is True
        assert client.get("/api/v1/sign-ins", params={"limit": 500}).status_code == 422

    def test_get_and_delete(self, client):
        occupant_id = client.post("/api/v1/sign-ins", json=SIGN_IN).json()["data"]["id"]
        assert client.get(f"/api/v1/sign-ins/{occupant_id}").status_code == 200
        assert client.delete(f"/api/v1/sign-ins/{occupant_id}").status_code == 200
        assert client.get(f"/api/v1/sign-ins/{occupant_id}").status_code == 404


class TestVehicleRoutes:
    def test_checkout_and_check_in(self, client, registered):
        r = client.post("/api/v1/vehicles/checkout", json=checkout_body())
        assert r.status_code == 201
        assert r.json()["data"]["resource"]["state"] == "in_use"

        r = client.post("/api/v1/vehicles/checkout", json=checkout_body())
        assert r.status_code == 409
        assert r.json()["reason"] == "already_checked_out"

        status = client.get("/api/v1/vehicles/abc123").json()
        assert status["is_available"] is False
        assert status["active_checkout"]["starting_odometer"] == 50000

        r = client.post("/api/v1/vehicles/checkin", json={
            "registration": "ABC123", "operator": "Jo Driver", "ending_odometer": 50200,
        })
        assert r.status_code == 201
        assert r.json()["data"]["distance"] == 200
        assert r.json()["data"]["resource"]["odometer"] == 50200

        r = client.post("/api/v1/vehicles/damage", json={
            "checkin_id": r.json()["data"]["checkin"]["id"], "reporter": "Jo Driver",
            "description": "Cracked wing mirror",
        })
        assert r.status_code == 201

        r = client.post("/api/v1/vehicles/damage", json={
            "checkin_id": 1, "reporter": "Jo Driver", "photos": ["dent,left.jpg"],
        })
        assert r.status_code == 422

    def test_implausible_trip_is_bad_request(self, client, registered):
        client.post("/api/v1/vehicles/checkout", json=checkout_body())
        r = client.post("/api/v1/vehicles/checkin", json={
            "registration": "ABC123", "operator": "Jo Driver", "ending_odometer": 52000,
        })
        assert r.status_code == 400
        assert r.json()["kind"] == "IMPLAUSIBLE_DELTA"

    def test_unknown_vehicle(self, client):
        assert client.get("/api/v1/vehicles/NOPE1").status_code == 404
        assert client.post("/api/v1/vehicles/checkout", json=checkout_body(reg="NOPE1")).status_code == 404

    def test_duplicate_registration(self, client, registered):
        r = client.post("/api/v1/vehicles", json={"registration": "abc 123"})
        assert r.status_code == 409

    def test_maintenance(self, client, registered):
        r = client.put("/api/v1/vehicles/ABC123/maintenance", json={"under_maintenance": True})
        assert r.status_code == 200
        assert r.json()["status"] == "maintenance"
        assert client.post("/api/v1/vehicles/checkout", json=checkout_body()).status_code == 409
        assert [v["registration"] for v in client.get("/api/v1/vehicles", params={"state": "maintenance"}).json()] == ["ABC123"]

    def test_delete_vehicle(self, client, registered):
        assert client.delete("/api/v1/vehicles/ABC123").status_code == 200
        assert client.delete("/api/v1/vehicles/ABC123").status_code == 404


class TestAppWiring:
    def test_health(self, client):
        body = client.get("/api/v1/health").json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"

    def test_storage_failure_is_503(self, client, registered, monkeypatch):
        def fail(request):
            raise LedgerUnavailable("checkout", request.registration)

        monkeypatch.setattr(client.app.state.lifecycle, "checkout", fail)
        r = client.post("/api/v1/vehicles/checkout", json=checkout_body())
        assert r.status_code == 503
        assert r.json()["kind"] == "TRANSIENT"

    def test_api_key_required_when_configured(self, tmp_path):
        app = create_app(LedgerStore(f"sqlite:///{tmp_path / 'auth.db'}"), api_key="secret")
        with TestClient(app) as c:
            assert c.get("/api/v1/vehicles").status_code == 401
            assert c.get("/api/v1/vehicles", headers={"X-API-Key": "secret"}).status_code == 200
            assert c.get("/api/v1/health").status_code == 200
