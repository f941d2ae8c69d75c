"""
Pytest configuration and shared fixtures for Contest Hub tests.

This module provides common fixtures used across all test files:
- A fresh in-memory content repository per test
- A test client wired to that repository
- Identities for the owner, another user and an admin
"""

import asyncio
import os
import sys
import tempfile
from unittest.mock import MagicMock, patch

import pytest

# Environment setup before any imports
os.environ["DEV_MODE"] = "false"
os.environ["ENVIRONMENT"] = "development"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CONTENT_STORAGE_BACKEND"] = "memory"
os.environ["API_KEY_STORAGE_PATH"] = os.path.join(tempfile.mkdtemp(), "api_keys.json")
os.environ.pop("SENTRY_DSN", None)
os.environ.pop("REDIS_URL", None)

# Ensure project root is in path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.auth import Identity, get_current_identity  # noqa: E402
from app.dependencies.content import get_content_repository  # noqa: E402
from app.storage import ContentRepository, InMemoryContentStore  # noqa: E402
from src.config import reload_settings  # noqa: E402


def make_content_fields(**overrides):
    """Minimal valid create payload."""
    fields = {
        "title": "Lunar Rover",
        "body": "<p>A rover that maps <b>craters</b>.</p>",
        "team": "Apollo",
        "status": "submitted",
        "taggedContest": "Space Hack",
        "taggedContestID": "contest-1",
    }
    fields.update(overrides)
    return fields


def seed(repository, owner, count=1, **overrides):
    """Create ``count`` records synchronously, oldest first."""

    async def _create():
        created = []
        for i in range(count):
            fields = make_content_fields(title=f"Entry {i}", **overrides)
            created.append(await repository.create(fields, owner=owner))
        return created

    return asyncio.run(_create())


@pytest.fixture
def owner():
    return Identity(id="user-owner", role="user", username="owner")


@pytest.fixture
def other_user():
    return Identity(id="user-other", role="user", username="other")


@pytest.fixture
def admin():
    return Identity(id="user-admin", role="admin", username="admin")


@pytest.fixture
def store():
    return InMemoryContentStore()


@pytest.fixture
def repository(store):
    return ContentRepository(store, page_size=12)


@pytest.fixture
def act_as(owner):
    """Switch the identity the client authenticates as."""
    current = {"identity": owner}

    def _act_as(identity):
        current["identity"] = identity

    _act_as.current = current
    return _act_as


@pytest.fixture
def client(repository, act_as):
    """FastAPI test client bound to a fresh repository."""
    from fastapi.testclient import TestClient
    from server import app

    app.dependency_overrides[get_content_repository] = lambda: repository
    app.dependency_overrides[get_current_identity] = lambda: act_as.current["identity"]
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(repository):
    """Test client that resolves identity from the X-API-Key header."""
    from fastapi.testclient import TestClient
    from server import app

    app.dependency_overrides[get_content_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def settings_env(monkeypatch):
    """Set environment variables and reload settings for one test."""

    def _set(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, value)
        return reload_settings()

    yield _set
    monkeypatch.undo()
    reload_settings()


@pytest.fixture
def mock_sentry():
    """Mock Sentry SDK."""
    with patch("sentry_sdk.capture_exception") as capture_mock, \
         patch("sentry_sdk.get_client") as client_mock:
        mock_client = MagicMock()
        mock_client.is_active.return_value = True
        client_mock.return_value = mock_client
        capture_mock.return_value = "evt-123"
        yield {"capture": capture_mock, "client": client_mock}


# Test environment cleanup
@pytest.fixture(autouse=True)
def reset_environment():
    """Reset environment variables after each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
