"""Pytest fixtures: a throwaway SQLite database per test."""

import pytest
from fastapi.testclient import TestClient

from shortener import database
from shortener.main import create_app
from shortener.service import LinkService

BASE_URL = "http://sho.rt"


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'links.db'}"


@pytest.fixture
def engine(database_url):
    engine = database.create_db_engine(database_url)
    database.init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return database.create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def service(db):
    return LinkService(db, base_url=BASE_URL)


@pytest.fixture
def client(database_url, monkeypatch):
    monkeypatch.setenv("BASE_URL", BASE_URL)
    with TestClient(create_app(database_url)) as client:
        yield client


@pytest.fixture
def sample_urls():
    return [
        "https://example.com/page",
        "https://github.com/user/repo",
        "http://localhost:3000/path?q=1#frag",
    ]
