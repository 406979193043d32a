"""Fixtures for integration tests against a real SQLite record store."""

import pytest

from questlist.core import db_client
from questlist.core.config import settings


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch):
    """Point the record store at a fresh database file and create the schema."""
    db_path = tmp_path / "questlist-test.db"
    monkeypatch.setattr(settings, "sqlite_db_path", str(db_path))
    await db_client.init_db()

    yield db_path

    await db_client.close_connection()
