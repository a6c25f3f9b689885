"""Shared fixtures: a throwaway SQLite database per test."""

import pytest

from shajra.infra.db import models
from shajra.infra.db.store import RecordStore
from shajra.main import create_app
from shajra.services.context import ServiceContext


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'shajra-test.db'}"


@pytest.fixture
def store(db_url):
    models.configure_engine(db_url)
    models.init_db()
    store = RecordStore(models.SessionLocal())
    yield store
    store.close()


@pytest.fixture
def principal():
    """Mutable holder so a test can switch (or drop) the acting user."""
    return {"user_id": "user-1"}


@pytest.fixture
def ctx(store, principal):
    return ServiceContext(store=store, current_principal=lambda: principal["user_id"])


@pytest.fixture
def app(db_url):
    return create_app({"TESTING": True, "DATABASE_URL": db_url, "SECRET_KEY": "test-secret"})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    with client.session_transaction() as sess:
        sess["user_id"] = "user-1"
    return client
