import pytest
from fastapi.testclient import TestClient

from todo_api.main import create_app
from todo_api.repositories import open_store
from todo_api.settings import get_settings


@pytest.fixture
def settings(tmp_path, monkeypatch):
    # SQLite in a temp dir so the suite needs no database server
    monkeypatch.setenv("DB_DRIVER", "sqlite")
    monkeypatch.setenv("DB_NAME", str(tmp_path / "data" / "todos.db"))
    return get_settings()


@pytest.fixture
def store(settings):
    s = open_store(settings)
    yield s
    s.close()


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as c:
        yield c
