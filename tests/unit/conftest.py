"""Pytest configuration and fixtures for unit tests."""

import pytest

from src.services.remote_store import RemoteStore
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches src.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.create_records", in_memory_db.create_records)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_records", in_memory_db.update_records)
    monkeypatch.setattr("src.core.db_client.delete_records", in_memory_db.delete_records)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.list_all_records", in_memory_db.list_all_records)
    monkeypatch.setattr("src.core.db_client.get_first_record", in_memory_db.get_first_record)

    return in_memory_db


@pytest.fixture
def store(patched_db):
    """RemoteStore of user "1" over the in-memory database."""
    return RemoteStore(user_id="1")
