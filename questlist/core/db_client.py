"""SQLite record store client with CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, NoReturn

import aiosqlite

from questlist.core.config import settings


logger = logging.getLogger(__name__)

# Columns stored as JSON text and decoded on read
JSON_COLUMNS = frozenset({"tags", "claimed"})


class DatabaseError(RuntimeError):
    """Generic record store failure."""


class RecordNotFoundError(DatabaseError, KeyError):
    """Requested record does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Record not found"


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _encode_value(value: Any) -> Any:
    """Encode a Python value for storage in SQLite."""
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, dict | list | tuple):
        return json.dumps(value)
    if isinstance(value, bool):
        return int(value)
    return value


def _convert_record(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ids to strings and decode JSON columns."""
    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and (key == "id" or key.endswith("_id")):
            converted[key] = str(value)
        elif key in JSON_COLUMNS and isinstance(value, str):
            try:
                converted[key] = json.loads(value)
            except json.JSONDecodeError:
                logger.warning("Undecodable JSON column", extra={"column": key})
    return converted


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def build_where(where: dict[str, Any] | None) -> tuple[str, list[Any]]:
    """Build a WHERE clause of ANDed equality checks with bound parameters.

    Values are passed to SQLite unchanged apart from storage encoding, so a
    text id such as ``"007"`` is matched as text.

    Raises:
        ValueError: If a column name is not a plain identifier
    """
    if not where:
        return "", []

    conditions = []
    params = []
    for column, value in where.items():
        _validate_collection_name(column)
        if value is None:
            conditions.append(f"{column} IS NULL")
            continue
        conditions.append(f"{column} = ?")
        params.append(_encode_value(value))
    return "WHERE " + " AND ".join(conditions), params


def _parse_sort(sort: str) -> str:
    """Translate ``-field`` / ``+field`` / ``field`` into an ORDER BY clause.

    Ties are broken by id in the same direction so offset pages never overlap.
    """
    if not sort:
        return "id ASC"
    direction = "DESC" if sort.startswith("-") else "ASC"
    field = sort.lstrip("+-").strip()
    if not re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", field):
        logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
        return "id ASC"
    if field == "id":
        return f"id {direction}"
    return f"{field} {direction}, id {direction}"


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    conn = _db_connections.pop(cache_key, None)
    if conn is None:
        return

    try:
        await conn.close()
        logger.info("Closed SQLite connection", extra={"db_path": str(path)})
    except (aiosqlite.Error, ValueError) as e:
        logger.warning("Error closing SQLite connection", extra={"error": str(e), "db_path": str(path)})


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from questlist.core import schema  # noqa: PLC0415 - schema imports this module

    await schema.init_db(db_path=db_path)


def _raise_store_error(action: str, collection: str, e: Exception, **context: object) -> NoReturn:
    """Log and re-raise a store failure as DatabaseError."""
    if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
        logger.error("Table not found", extra={"collection": collection})
        msg = f"Table '{collection}' does not exist. Call init_db() first."
        raise DatabaseError(msg) from e
    logger.error(f"{action}_failed", extra={"collection": collection, "error": str(e), **context})
    msg = f"Failed to {action.replace('_', ' ')} in {collection}: {e}"
    raise DatabaseError(msg) from e


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()

        columns = list(data.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_encode_value(data[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, values)
        await conn.commit()
        record_id = cursor.lastrowid
    except (aiosqlite.Error, ValueError) as e:
        _raise_store_error("create_record", collection, e)

    logger.info("Created record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=str(record_id))


async def insert_record_if_absent(*, collection: str, data: dict[str, Any], conflict_field: str) -> bool:
    """Insert a record unless one with the same ``conflict_field`` value exists.

    Returns:
        True if a row was inserted, False if it already existed
    """
    _validate_collection_name(collection)
    _validate_collection_name(conflict_field)
    try:
        conn = await get_connection()

        columns = list(data.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_encode_value(data[key]) for key in columns]

        query = (
            f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str}) "  # noqa: S608 - collection is validated
            f"ON CONFLICT({conflict_field}) DO NOTHING"
        )
        cursor = await conn.execute(query, values)
        await conn.commit()
    except (aiosqlite.Error, ValueError) as e:
        _raise_store_error("insert_record", collection, e)

    inserted = cursor.rowcount > 0
    logger.info("Insert if absent", extra={"collection": collection, "inserted": inserted})
    return inserted


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()

        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        row = await cursor.fetchone()
        columns = [description[0] for description in cursor.description]
    except (aiosqlite.Error, ValueError) as e:
        _raise_store_error("get_record", collection, e, record_id=record_id)

    if row is None:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    return _convert_record(dict(zip(columns, row, strict=True)))


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID and return the updated record."""
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)
    _validate_collection_name(collection)

    try:
        conn = await get_connection()

        set_clause = ", ".join(f"{key} = ?" for key in data)
        values = [_encode_value(val) for val in data.values()]
        values.append(int(record_id))

        query = f"UPDATE {collection} SET {set_clause}, updated = datetime('now') WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, values)
        await conn.commit()
    except (aiosqlite.Error, ValueError) as e:
        _raise_store_error("update_record", collection, e, record_id=record_id)

    if cursor.rowcount == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=record_id)


async def set_json_key_if_absent(
    *,
    collection: str,
    record_id: str,
    json_field: str,
    key: str,
    value: Any,
    increments: dict[str, int] | None = None,
) -> bool:
    """Atomically add ``key`` to a JSON column and bump counters, only while the key is missing.

    The write is relative to the stored row, so concurrent writers adding
    other keys are never overwritten.

    Returns:
        True if the row was updated, False if the key was already present
    """
    _validate_collection_name(collection)
    _validate_collection_name(json_field)
    increments = increments or {}
    for column in increments:
        _validate_collection_name(column)

    json_path = "$." + json.dumps(key)
    try:
        conn = await get_connection()

        set_parts = [f"{json_field} = json_set(COALESCE({json_field}, '{{}}'), ?, json(?))"]
        values: list[Any] = [json_path, json.dumps(value)]
        for column, amount in increments.items():
            set_parts.append(f"{column} = {column} + ?")
            values.append(amount)
        values.extend([int(record_id), json_path])

        query = (
            f"UPDATE {collection} SET {', '.join(set_parts)}, updated = datetime('now') "  # noqa: S608 - names are validated
            f"WHERE id = ? AND json_type({json_field}, ?) IS NULL"
        )
        cursor = await conn.execute(query, values)
        await conn.commit()
    except (aiosqlite.Error, ValueError) as e:
        _raise_store_error("update_record", collection, e, record_id=record_id)

    updated = cursor.rowcount > 0
    logger.info(
        "Conditional JSON key insert",
        extra={"collection": collection, "record_id": record_id, "key": key, "updated": updated},
    )
    return updated


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()

        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        await conn.commit()
    except (aiosqlite.Error, ValueError) as e:
        _raise_store_error("delete_record", collection, e, record_id=record_id)

    if cursor.rowcount == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})


async def delete_records(*, collection: str, record_ids: list[str]) -> int:
    """Delete several records in one statement and return how many were removed."""
    if not record_ids:
        return 0
    _validate_collection_name(collection)
    try:
        conn = await get_connection()

        placeholders = ", ".join("?" for _ in record_ids)
        query = f"DELETE FROM {collection} WHERE id IN ({placeholders})"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, [int(rid) for rid in record_ids])
        await conn.commit()
    except (aiosqlite.Error, ValueError) as e:
        _raise_store_error("delete_records", collection, e, count=len(record_ids))

    logger.info("Deleted records", extra={"collection": collection, "count": cursor.rowcount})
    return cursor.rowcount


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    where: dict[str, Any] | None = None,
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records matching ``where`` (column equality), sorted and paginated."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()

        where_clause, params = build_where(where)
        order_by = _parse_sort(sort)
        offset = (page - 1) * per_page

        query = f"SELECT * FROM {collection} {where_clause} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
        params.extend([per_page, offset])

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()
        columns = [description[0] for description in cursor.description]
    except (aiosqlite.Error, ValueError) as e:
        _raise_store_error("list_records", collection, e)

    records = [_convert_record(dict(zip(columns, row, strict=True))) for row in rows]
    logger.info("Listed records", extra={"collection": collection, "count": len(records), "page": page})
    return records


async def get_first_record(*, collection: str, where: dict[str, Any]) -> dict[str, Any] | None:
    """Return the first record matching ``where``, or None."""
    records = await list_records(collection=collection, where=where, per_page=1)
    return records[0] if records else None
