"""Shared test fixtures for the story autosaves test suite.

All tests use an in-memory SQLite database shared across threads. Each test
gets freshly created tables, ensuring complete isolation.
"""

import os

# Force auth off and use the in-memory database before any app imports.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient

from story_autosaves.database import Base, get_db, engine, SessionLocal
from story_autosaves.main import app
from story_autosaves.core.token_factory import create_token
from story_autosaves.core.config import settings
from story_autosaves.models import Story
from story_autosaves.rest.hooks import filters
from story_autosaves.services.response_shaper import PREPARE_AUTOSAVE_HOOK

API = f"/{settings.rest_namespace}"


@pytest.fixture(autouse=True)
def _fresh_tables():
    """Recreate all tables before each test for isolation."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def _clear_autosave_filters():
    yield
    filters.clear(PREPARE_AUTOSAVE_HOOK)


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_enabled():
    """Turn authentication on for one test."""
    previous = settings.auth_enabled
    settings.auth_enabled = True
    yield
    settings.auth_enabled = previous


def auth_headers(user_id: str = "test-user", role: str = "admin") -> dict:
    """Valid bearer token headers for *user_id* with *role*."""
    token = create_token(subject=user_id, role=role, secret=settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


def make_story(db, author_id: str = "1", **overrides) -> Story:
    """Insert a story directly, bypassing the API."""
    values = {"title": "Test Story", "content": "<p>Hello</p>", "status": "draft"}
    values.update(overrides)
    story = Story(author_id=author_id, **values)
    db.add(story)
    db.commit()
    db.refresh(story)
    return story


def autosaves_url(story_id, autosave_id=None) -> str:
    url = f"{API}/stories/{story_id}/autosaves"
    return url if autosave_id is None else f"{url}/{autosave_id}"


STRUCTURED = {
    "version": 2,
    "autoAdvance": True,
    "defaultPageDuration": 7,
    "pages": [{"id": "page-1", "elements": [{"id": "el-1", "type": "text"}]}],
}
