"""
Shared pytest fixtures.

Each test gets its own SQLite file under tmp_path, so no state leaks
between tests and nothing touches the user's real database.
"""
import pytest
from fastapi.testclient import TestClient

from calmtrack.db.store import Store
from calmtrack.main import app


@pytest.fixture()
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'calmtrack.db'}"


@pytest.fixture()
def store(db_url):
    s = Store(db_url).open()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def client(store):
    app.state.store = store
    with TestClient(app) as c:
        yield c
    app.state.store = None


def make_reading(timestamp: int, level: str = "calm", message: str = "") -> dict:
    codes = {"calm": 1, "moderate": 2, "stressed": 3}
    return {
        "time": "09:00 AM",
        "timestamp": timestamp,
        "stress": codes[level],
        "label": level,
        "message": message,
    }
