import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import repositories
from main import app
from schemas import ConnectionRequest, Identity


@pytest.fixture(autouse=True)
def fake_db(monkeypatch):
    client = mongomock.MongoClient()
    monkeypatch.setattr(database, "db", client["fiftytwo_projects_test"])
    monkeypatch.setenv("LOGIN_DELAY_SECONDS", "0")
    yield database.db
    client.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def login(client):
    def _login(email="alice@example.com", password="secret", name=None):
        body = {"email": email, "password": password}
        if name is not None:
            body["name"] = name
        res = client.post("/api/auth/login", json=body)
        assert res.status_code == 200
        return res.json()
    return _login


@pytest.fixture
def incoming_request():
    """Store a pending request addressed to the given identity id."""
    def _make(to_user_id, sender=None):
        sender = sender or Identity(id="2", name="Bob Smith", email="bob@example.com")
        return repositories.connections.add_request(ConnectionRequest(fromUser=sender, toUserId=to_user_id))
    return _make
