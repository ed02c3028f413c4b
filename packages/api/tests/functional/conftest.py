# This project was developed with assistance from AI tools.
"""Fixtures for functional tests.

The real app from ``dvsubmit.main`` is a module singleton. ``_clean_overrides``
ensures dependency_overrides are cleared after every test so persona
configuration from one test never leaks into the next. The lifespan never
runs (no ``with TestClient(...)``), so nothing reaches PostgreSQL, S3 or the
identity provider.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from dvsubmit.core.config import settings
from dvsubmit.main import app as real_app
from dvsubmit.schemas.auth import UserContext

from .mock_db import configure_app_for_persona


@pytest.fixture(autouse=True)
def _clean_overrides():
    """Clear app dependency overrides after each test."""
    yield
    real_app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _auth_enabled(monkeypatch):
    """Run the real authorization gate; personas come from the override."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)


@pytest.fixture
def app():
    """Return the real FastAPI app with all routers mounted."""
    return real_app


@pytest.fixture
def make_client(app):
    """Factory fixture: configure persona + mock DB, return TestClient."""

    def _make(
        user: UserContext,
        session: AsyncMock,
        *,
        storage: MagicMock | None = None,
        identity: MagicMock | None = None,
    ) -> TestClient:
        configure_app_for_persona(app, user, session, storage=storage, identity=identity)
        return TestClient(app, raise_server_exceptions=False)

    return _make
