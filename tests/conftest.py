import pytest
from fastapi.testclient import TestClient

import clubhub.api as api_module
import clubhub.storage as storage
from clubhub.api import app


@pytest.fixture(autouse=True)
def use_sqlite(tmp_path, monkeypatch):
    """Every test gets its own SQLite file."""
    monkeypatch.setattr(storage, "DB_FILE", tmp_path / "clubhub.db")
    monkeypatch.setattr(storage, "DATABASE_URL", "")
    monkeypatch.setattr(storage, "IS_PG", False)
    yield


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(api_module, "build_client", lambda: None)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class StubAIClient:
    """Stands in for ``GenerativeClient``; replies with ``reply`` or raises ``error``."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate_json(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def signup(client, email, name=None, password="password1"):
    """Register and log in ``email``; returns ``(user_id, auth_headers)``."""
    resp = client.post(
        "/users",
        json={"email": email, "name": name or email.split("@")[0], "password": password},
    )
    assert resp.status_code == 201, resp.text
    data = client.post("/login", json={"email": email, "password": password}).json()
    return data["user_id"], {"Authorization": f"Bearer {data['token']}"}


def make_club(client, headers, name="Shutter Club", **fields):
    body = {
        "name": name,
        "description": fields.pop("description", "photography and editing"),
        "category": fields.pop("category", "Arts"),
    }
    body.update(fields)
    resp = client.post("/clubs", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def owner(client):
    return signup(client, "owner@example.com", "Owner")


@pytest.fixture
def student(client):
    return signup(client, "student@example.com", "Student")


@pytest.fixture
def club(client, owner):
    return make_club(client, owner[1])
