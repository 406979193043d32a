"""Integration tests for the aiosqlite record store."""

from datetime import UTC, datetime

import pytest

from questlist.core import db_client
from questlist.core.config import settings
from questlist.core.db_client import DatabaseError, RecordNotFoundError


NOW = datetime(2024, 5, 15, 12, 0, tzinfo=UTC)


def _task(**overrides):
    data = {
        "owner_id": "owner1",
        "title": "Task",
        "done": False,
        "created_at": NOW,
        "done_at": None,
        "priority": "MID",
        "tags": ["home"],
    }
    data.update(overrides)
    return data


@pytest.mark.integration
class TestRecordCrud:
    async def test_create_and_get(self, sqlite_db):
        created = await db_client.create_record(collection="tasks", data=_task(title="Buy milk"))

        fetched = await db_client.get_record(collection="tasks", record_id=created["id"])

        assert isinstance(fetched["id"], str)
        assert fetched["title"] == "Buy milk"
        assert fetched["tags"] == ["home"]
        assert fetched["created_at"] == NOW.isoformat()
        assert fetched["done"] == 0

    async def test_get_missing(self, sqlite_db):
        with pytest.raises(RecordNotFoundError):
            await db_client.get_record(collection="tasks", record_id="999")

    async def test_update(self, sqlite_db):
        created = await db_client.create_record(collection="tasks", data=_task())

        updated = await db_client.update_record(
            collection="tasks", record_id=created["id"], data={"done": True, "done_at": NOW}
        )

        assert updated["done"] == 1
        assert updated["done_at"] == NOW.isoformat()

    async def test_update_missing(self, sqlite_db):
        with pytest.raises(RecordNotFoundError):
            await db_client.update_record(collection="tasks", record_id="999", data={"title": "x"})

    async def test_check_constraints(self, sqlite_db):
        with pytest.raises(DatabaseError):
            await db_client.create_record(collection="tasks", data=_task(done=True, done_at=None))

        with pytest.raises(DatabaseError):
            await db_client.create_record(collection="tasks", data=_task(priority="URGENT"))

    async def test_delete_and_bulk_delete(self, sqlite_db):
        ids = [(await db_client.create_record(collection="tasks", data=_task(title=f"t{n}")))["id"] for n in range(4)]

        await db_client.delete_record(collection="tasks", record_id=ids[0])
        deleted = await db_client.delete_records(collection="tasks", record_ids=ids[1:3])

        remaining = await db_client.list_records(collection="tasks")
        assert deleted == 2
        assert [r["title"] for r in remaining] == ["t3"]
        assert await db_client.delete_records(collection="tasks", record_ids=[]) == 0

    async def test_delete_missing(self, sqlite_db):
        with pytest.raises(RecordNotFoundError):
            await db_client.delete_record(collection="tasks", record_id="999")

    async def test_list_filter_sort_and_paginate(self, sqlite_db):
        for n in range(5):
            await db_client.create_record(collection="tasks", data=_task(title=f"mine {n}"))
        await db_client.create_record(collection="tasks", data=_task(owner_id="owner2", title="theirs"))

        page = await db_client.list_records(
            collection="tasks", where={"owner_id": "owner1"}, sort="-id", per_page=2, page=2
        )
        theirs = await db_client.list_records(collection="tasks", where={"owner_id": "owner2"})

        assert [r["title"] for r in page] == ["mine 2", "mine 1"]
        assert [r["title"] for r in theirs] == ["theirs"]

    async def test_pages_with_equal_sort_keys_do_not_overlap(self, sqlite_db):
        for n in range(5):
            await db_client.create_record(collection="tasks", data=_task(title=f"t{n}"))

        pages = [
            await db_client.list_records(collection="tasks", sort="-created_at", per_page=2, page=page)
            for page in (1, 2, 3)
        ]

        titles = [r["title"] for page in pages for r in page]
        assert sorted(titles) == ["t0", "t1", "t2", "t3", "t4"]

    @pytest.mark.parametrize("owner_id", ["007", "o'brien", 'say "hi"', "true"])
    async def test_owner_ids_are_matched_as_text(self, sqlite_db, owner_id):
        await db_client.create_record(collection="tasks", data=_task(owner_id=owner_id))
        await db_client.create_record(collection="tasks", data=_task(owner_id="7"))

        rows = await db_client.list_records(collection="tasks", where={"owner_id": owner_id})

        assert [r["owner_id"] for r in rows] == [owner_id]

    async def test_get_first_record(self, sqlite_db):
        await db_client.create_record(collection="tasks", data=_task(title="only"))

        assert (await db_client.get_first_record(collection="tasks", where={"title": "only"}))["title"] == "only"
        assert await db_client.get_first_record(collection="tasks", where={"title": "none"}) is None


@pytest.mark.integration
class TestConditionalWrites:
    async def test_insert_if_absent(self, sqlite_db):
        data = {"owner_id": "owner1", "daily_goal_xp": 60, "bonus_xp": 0, "claimed": {}}

        first = await db_client.insert_record_if_absent(collection="settings", data=data, conflict_field="owner_id")
        second = await db_client.insert_record_if_absent(
            collection="settings", data={**data, "daily_goal_xp": 200}, conflict_field="owner_id"
        )

        rows = await db_client.list_records(collection="settings")
        assert (first, second) == (True, False)
        assert len(rows) == 1
        assert rows[0]["daily_goal_xp"] == 60

    async def test_set_json_key_if_absent(self, sqlite_db):
        await db_client.insert_record_if_absent(
            collection="settings",
            data={"owner_id": "owner1", "daily_goal_xp": 60, "bonus_xp": 5, "claimed": {}},
            conflict_field="owner_id",
        )
        row = await db_client.get_first_record(collection="settings", where={"owner_id": "owner1"})
        key = "daily_3_done:2024-05-15"
        record = {"base_reward_xp": 20, "bonus_xp": 10, "label": "Small Gem", "claimed_at": NOW.isoformat()}

        applied = await db_client.set_json_key_if_absent(
            collection="settings",
            record_id=row["id"],
            json_field="claimed",
            key=key,
            value=record,
            increments={"bonus_xp": 30},
        )
        repeated = await db_client.set_json_key_if_absent(
            collection="settings",
            record_id=row["id"],
            json_field="claimed",
            key=key,
            value=record,
            increments={"bonus_xp": 30},
        )

        stored = await db_client.get_record(collection="settings", record_id=row["id"])
        assert (applied, repeated) == (True, False)
        assert stored["bonus_xp"] == 35
        assert stored["claimed"] == {key: record}

    async def test_set_json_key_keeps_other_keys(self, sqlite_db):
        await db_client.insert_record_if_absent(
            collection="settings",
            data={"owner_id": "owner1", "daily_goal_xp": 60, "bonus_xp": 0, "claimed": {}},
            conflict_field="owner_id",
        )
        row = await db_client.get_first_record(collection="settings", where={"owner_id": "owner1"})

        for key in ("total_30", "streak_7"):
            await db_client.set_json_key_if_absent(
                collection="settings",
                record_id=row["id"],
                json_field="claimed",
                key=key,
                value={"label": key},
                increments={"bonus_xp": 100},
            )

        stored = await db_client.get_record(collection="settings", record_id=row["id"])
        assert set(stored["claimed"]) == {"total_30", "streak_7"}
        assert stored["bonus_xp"] == 200

    async def test_missing_table(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "empty.db"))
        try:
            with pytest.raises(DatabaseError, match="init_db"):
                await db_client.list_records(collection="tasks")
        finally:
            await db_client.close_connection()
