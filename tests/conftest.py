import pytest
from fastapi.testclient import TestClient

from taskai.database import Store
from taskai.main import create_app
from taskai.suggestions import TaskSuggester

from .helpers import register_and_login


@pytest.fixture
def store(tmp_path):
    # File-backed so requests served from worker threads each get a connection
    s = Store(f"sqlite:///{tmp_path / 'taskai_test.db'}").open()
    yield s
    s.drop_all()
    s.close()


@pytest.fixture
def memory_store():
    s = Store("sqlite://").open()
    yield s
    s.close()


@pytest.fixture
def db(memory_store):
    session = memory_store.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(store):
    app = create_app(store=store, suggester=TaskSuggester())
    return TestClient(app)


@pytest.fixture
def user(client):
    return register_and_login(client)
