from typing import Any, Callable, Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from family_ledger.config import Settings
from family_ledger.main import create_app

PASSWORD = "secret123"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        log_json=False,
        log_level="WARNING",
    )


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    # Entering the context runs the startup handler (tables + default categories).
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session(client: TestClient, app):
    with app.state.db.session() as db_session:
        yield db_session


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client: TestClient) -> Callable[..., Dict[str, Any]]:
    """Register a user and return {"user", "token", "headers"}."""

    def _register(
        username: str, name: Optional[str] = None, email: Optional[str] = None, password: str = PASSWORD
    ):
        resp = client.post(
            "/api/auth/register",
            json={
                "name": name or username.title(),
                "email": email or f"{username}@example.com",
                "username": username,
                "password": password,
            },
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {"user": body["user"], "token": body["token"], "headers": auth_header(body["token"])}

    return _register


@pytest.fixture
def family(client: TestClient, register) -> Dict[str, Any]:
    """A family with an admin (alice) and a plain member (bob)."""
    alice = register("alice")
    bob = register("bob")
    resp = client.post("/api/families", json={"name": "Smiths"}, headers=alice["headers"])
    assert resp.status_code == 201, resp.text
    family_id = resp.json()["id"]
    resp = client.post(
        f"/api/families/{family_id}/members",
        json={"email": "bob@example.com"},
        headers=alice["headers"],
    )
    assert resp.status_code == 201, resp.text
    return {"id": family_id, "admin": alice, "member": bob}


@pytest.fixture
def default_category_id(client: TestClient, family) -> int:
    resp = client.get(f"/api/categories/{family['id']}", headers=family["admin"]["headers"])
    return next(c["id"] for c in resp.json() if c["name"] == "Other")
