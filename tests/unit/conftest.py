"""Pytest configuration and fixtures for unit tests."""

import random

import pytest

from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches questlist.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("questlist.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("questlist.core.db_client.insert_record_if_absent", in_memory_db.insert_record_if_absent)
    monkeypatch.setattr("questlist.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("questlist.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr(
        "questlist.core.db_client.set_json_key_if_absent",
        in_memory_db.set_json_key_if_absent,
    )
    monkeypatch.setattr("questlist.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("questlist.core.db_client.delete_records", in_memory_db.delete_records)
    monkeypatch.setattr("questlist.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("questlist.core.db_client.get_first_record", in_memory_db.get_first_record)

    return in_memory_db


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)  # noqa: S311
