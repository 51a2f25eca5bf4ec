import pytest
from fastapi.testclient import TestClient

from family_ledger.config import Settings
from family_ledger.main import create_app
from family_ledger.stores.families import FamilyStore

from conftest import auth_header


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        log_json=False,
        log_level="WARNING",
        default_member_password="welcome1",
    )


def test_family_walkthrough(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Anna", "email": "anna@example.com", "username": "anna", "password": "secret123"},
    )
    anna = auth_header(resp.json()["token"])
    family_id = client.post("/api/families", json={"name": "Fam"}, headers=anna).json()["id"]

    resp = client.post(
        f"/api/families/{family_id}/members",
        json={"email": "ben@example.com", "name": "Ben"},
        headers=anna,
    )
    assert resp.status_code == 201
    assert resp.json()["isNewUser"] is True
    assert resp.json()["temporaryPassword"] == "welcome1"

    members = client.get(f"/api/families/{family_id}/members", headers=anna).json()
    roles = {m["email"]: m["role"] for m in members}
    assert roles["ben@example.com"] == "member"

    login = client.post("/api/auth/login", json={"login": "ben@example.com", "password": "welcome1"})
    ben = auth_header(login.json()["token"])

    food = client.post(f"/api/categories/{family_id}", json={"name": "Food", "color": "#22AA22"}, headers=anna).json()
    expense = client.post(
        "/api/expenses",
        json={"family_id": family_id, "category_id": food["id"], "amount": "50.00", "date": "2024-03-15"},
        headers=ben,
    ).json()

    resp = client.delete(f"/api/expenses/{family_id}/{expense['id']}", headers=anna)
    assert resp.status_code == 403

    for headers in (anna, ben):
        rows = client.get(f"/api/expenses/{family_id}", headers=headers).json()
        assert [(r["id"], r["amount"], r["category_name"]) for r in rows] == [(expense["id"], 50.0, "Food")]


def test_amount_keeps_two_decimals(client, family, default_category_id):
    headers = family["admin"]["headers"]
    created = client.post(
        "/api/expenses",
        json={"family_id": family["id"], "category_id": default_category_id, "amount": "123.45", "date": "2024-01-01"},
        headers=headers,
    ).json()
    fetched = client.get(f"/api/expenses/{family['id']}/{created['id']}", headers=headers).json()
    assert fetched["amount"] == 123.45


def test_members_are_refused_admin_actions(client, family, default_category_id):
    member = family["member"]["headers"]
    admin_id = family["admin"]["user"]["id"]
    fid = family["id"]
    attempts = [
        client.post(f"/api/categories/{fid}", json={}, headers=member),
        client.put(f"/api/categories/{fid}/{default_category_id}", json={}, headers=member),
        client.delete(f"/api/categories/{fid}/{default_category_id}", headers=member),
        client.post(f"/api/families/{fid}/members", json={"email": "x@example.com"}, headers=member),
        client.delete(f"/api/families/{fid}/members/{admin_id}", headers=member),
        client.delete(f"/api/families/{fid}", headers=member),
        client.get(f"/api/users/{fid}/users", headers=member),
    ]
    assert [r.status_code for r in attempts if r.status_code != 403] == []


def test_unhandled_errors_use_the_envelope(settings, monkeypatch):
    def boom(self, user_id):
        raise RuntimeError("storage down")

    monkeypatch.setattr(FamilyStore, "list_families_for_user", boom)
    with TestClient(create_app(settings), raise_server_exceptions=False) as client:
        token = client.post(
            "/api/auth/register",
            json={"name": "Anna", "email": "anna@example.com", "username": "anna", "password": "secret123"},
        ).json()["token"]
        resp = client.get("/api/families", headers=auth_header(token))
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}
