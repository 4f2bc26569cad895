"""
Shared test configuration

Settings are read from the environment when discovery.core.config is first
imported, so the test environment is set up before any discovery import.
"""
import os
import tempfile
from uuid import uuid4

os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-that-is-at-least-32-characters")
os.environ.setdefault(
    "DATABASE_URL_ASYNC",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "discovery_test.db"),
)
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("RATE_LIMIT_SEARCH", "1000 per minute")
os.environ.setdefault("NODE_ENV", "development")

import pytest
from fastapi.testclient import TestClient

from discovery.search.specs import SearchSpecsReader


@pytest.fixture
def search_specs():
    """Search specs shipped with the application"""
    from discovery.core.config import settings
    return SearchSpecsReader(settings.SEARCHSPECS_DIR).get()


@pytest.fixture
def test_user():
    """An active user that is not stored in the database"""
    from discovery.models.user import User, UserRole
    return User(
        id=uuid4(),
        email="reader@example.com",
        hashed_password="not-a-real-hash",
        first_name="Test",
        last_name="Reader",
        role=UserRole.USER,
        is_active=True,
    )


@pytest.fixture
def client():
    """Test client of the full application; dependency overrides are reset afterwards"""
    from discovery.main import app
    yield TestClient(app)
    app.dependency_overrides.clear()
