"""Pytest configuration and fixtures for integration tests."""

import pytest

from src.core import db_client
from src.core.config import settings
from src.services.auth_service import AuthService
from tests.conftest import TEST_SESSION_SECRET


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch):
    """A fresh SQLite database file with the schema applied."""
    db_path = tmp_path / "ecodispensa.db"
    monkeypatch.setattr(settings, "sqlite_db_path", str(db_path))

    await db_client.init_db()
    yield db_path
    await db_client.close_connection()


@pytest.fixture
def auth(sqlite_db):
    return AuthService(secret=TEST_SESSION_SECRET)


@pytest.fixture
async def user_id(auth) -> str:
    """ID of a freshly signed-up user."""
    session = await auth.sign_up("mario@example.com", "password123")
    return session.user_id
