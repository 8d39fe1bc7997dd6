"""Shared test fixtures for the diagramhub test suite.

Tests run against an in-memory SQLite database shared through a static
connection pool. Tables are dropped and recreated before each test, so
every test starts empty. Identity comes from the ``X-User-ID`` header
(AUTH_MODE=header) unless a test switches modes explicitly.
"""

import os
import tempfile

# Configure the app before any diagramhub imports.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_MODE"] = "header"
os.environ["LOG_FORMAT"] = "text"
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["STORAGE__DRIVER"] = "local"
os.environ["STORAGE__LOCAL__PATH"] = tempfile.mkdtemp(prefix="diagramhub-test-")
os.environ["STORAGE__LOCAL__PUBLIC_URL"] = "http://files.test/storage"

import pytest
from fastapi.testclient import TestClient

from diagramhub.api.files import get_storage
from diagramhub.database import Base, SessionLocal, engine, get_db
from diagramhub.main import app
from diagramhub.middleware.request_context import rate_limiter
from diagramhub.models import User
from diagramhub.storage import LocalStorage


@pytest.fixture(autouse=True)
def _reset_tables():
    """Recreate the schema before each test for isolation."""
    import diagramhub.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "blobs", "http://files.test/storage")


@pytest.fixture()
def client(db, storage):
    """TestClient with the DB session and storage backend pinned to the test's."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    rate_limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    """Factory inserting an active user and returning it."""
    counter = {"n": 0}

    def _make(email: str = None, is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            display_name=f"User {counter['n']}",
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def alice(make_user) -> User:
    return make_user("alice@example.com")


@pytest.fixture()
def bob(make_user) -> User:
    return make_user("bob@example.com")


def auth_headers(user_or_id) -> dict:
    """Headers identifying the caller in AUTH_MODE=header."""
    user_id = getattr(user_or_id, "id", user_or_id)
    return {"X-User-ID": str(user_id)}


def make_document(
    title: str = "Order Flow",
    content: str = "graph TD\n  A-->B",
    **overrides,
) -> dict:
    """Factory for document creation payloads."""
    payload = {"title": title, "type": "mermaid", "content": content}
    payload.update(overrides)
    return payload
