from datetime import datetime

import pytest
from fastapi.testclient import TestClient

import backend.config as config
import backend.main as main
import database.db as db
from backend.dependencies import get_now

# 2026-10-19 is a Monday.
MONDAY_0900 = datetime(2026, 10, 19, 9, 0)


class Clock:
    def __init__(self, now: datetime):
        self.now = now


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def store(tmp_path):
    path = tmp_path / "rollcall_store.db"
    db.create_tables(path)
    return db.DocumentStore(path)


@pytest.fixture()
def clock():
    return Clock(MONDAY_0900)


@pytest.fixture()
def client(tmp_path, monkeypatch, clock):
    test_db = tmp_path / "rollcall_test.db"

    # Point the store at a temp file for isolation.
    monkeypatch.setattr(config, "DB_PATH", test_db)
    monkeypatch.setattr(db, "DB_PATH", test_db)

    main.app.dependency_overrides[get_now] = lambda: clock.now
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


def _signup(client, *, name: str, email: str, role: str) -> dict:
    res = client.post(
        "/auth/signup",
        json={"name": name, "email": email, "password": "secret123", "role": role},
    )
    assert res.status_code == 201
    return res.json()


@pytest.fixture()
def teacher(client):
    body = _signup(client, name="Grace Teacher", email="grace@school.test", role="teacher")
    body["headers"] = {"Authorization": f"Bearer {body['access_token']}"}
    return body


@pytest.fixture()
def student(client):
    body = _signup(client, name="Ada Student", email="ada@school.test", role="student")
    body["headers"] = {"Authorization": f"Bearer {body['access_token']}"}
    return body
