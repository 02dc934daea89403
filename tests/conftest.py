import pytest
from fastapi.testclient import TestClient

from simpletodo.db import SQLiteRepository
from simpletodo.main import create_app
from simpletodo.repositories import InMemoryRepository
from simpletodo.services import TodoService
from simpletodo.settings import Settings


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "todo.db")


@pytest.fixture(params=["sqlite", "memory"])
def repo(request, db_path):
    # Every service test runs against both backends.
    if request.param == "sqlite":
        return SQLiteRepository(db_path)
    return InMemoryRepository()


@pytest.fixture
def service(repo):
    return TodoService(repo)


@pytest.fixture
def settings(db_path):
    return Settings(persistence_backend="sqlite", sqlite_db_path=db_path)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
