"""Task gateway: CRUD of task rows scoped to an owner."""

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from questlist.core import db_client
from questlist.core.config import constants
from questlist.core.db_client import DatabaseError
from questlist.core.errors import PersistenceError, ValidationError
from questlist.core.logging import log_with_user_context, span
from questlist.domain.create_models import TaskCreate
from questlist.domain.task import Task


logger = logging.getLogger(__name__)

COLLECTION = "tasks"


def validate_task_fields(fields: dict[str, Any]) -> TaskCreate:
    """Validate and normalize raw task input.

    Raises:
        ValidationError: If the title is empty or a field cannot be parsed
    """
    try:
        return TaskCreate(**fields)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "task"
        msg = f"Invalid {location}: {first['msg']}"
        raise ValidationError(msg) from e


def to_task(record: dict[str, Any]) -> Task:
    """Convert a stored record into a Task."""
    return Task.model_validate(record)


def completion_patch(*, done: bool, now: datetime | None = None) -> dict[str, Any]:
    """Patch for a completion toggle; done_at follows done."""
    return {"done": done, "done_at": (now or datetime.now(UTC)) if done else None}


async def create_task(*, owner_id: str, fields: TaskCreate, now: datetime | None = None) -> Task:
    """Create a task for ``owner_id`` and return it with its assigned id.

    Raises:
        PersistenceError: If the store write fails
    """
    with span("task_service.create_task"):
        data: dict[str, Any] = {
            "owner_id": owner_id,
            "title": fields.title,
            "done": False,
            "created_at": now or datetime.now(UTC),
            "done_at": None,
            "priority": fields.priority,
            "due_date": fields.due_date,
            "tags": fields.tags,
            "estimate_minutes": fields.estimate_minutes,
        }
        try:
            record = await db_client.create_record(collection=COLLECTION, data=data)
        except DatabaseError as e:
            raise PersistenceError(str(e), operation="create_task") from e

        log_with_user_context(logger, "info", "Created task", owner_id=owner_id, task_id=record["id"])
        return to_task(record)


async def list_tasks(*, owner_id: str) -> list[Task]:
    """All tasks of ``owner_id``, newest first (callers re-sort for display).

    Pages through the store until a short page comes back.

    Raises:
        PersistenceError: If the store read fails
    """
    with span("task_service.list_tasks"):
        per_page = constants.DEFAULT_PER_PAGE_LIMIT
        records: list[dict[str, Any]] = []
        page = 1
        try:
            while True:
                batch = await db_client.list_records(
                    collection=COLLECTION,
                    where={"owner_id": owner_id},
                    sort="-created_at",
                    per_page=per_page,
                    page=page,
                )
                records.extend(batch)
                if len(batch) < per_page:
                    break
                page += 1
        except DatabaseError as e:
            raise PersistenceError(str(e), operation="list_tasks") from e

        tasks = []
        for record in records:
            try:
                tasks.append(to_task(record))
            except PydanticValidationError as e:
                logger.error("Skipping malformed task record %s: %s", record.get("id"), e)
        logger.debug("Loaded %d tasks for owner %s", len(tasks), owner_id)
        return tasks


async def update_task(*, task_id: str, patch: dict[str, Any]) -> None:
    """Apply ``patch`` to one task.

    Raises:
        PersistenceError: If the task is missing or the write fails
    """
    with span("task_service.update_task"):
        try:
            await db_client.update_record(collection=COLLECTION, record_id=task_id, data=patch)
        except DatabaseError as e:
            raise PersistenceError(str(e), operation="update_task") from e
        logger.info("Updated task %s", task_id)


async def delete_task(*, task_id: str) -> None:
    """Delete one task.

    Raises:
        PersistenceError: If the task is missing or the delete fails
    """
    with span("task_service.delete_task"):
        try:
            await db_client.delete_record(collection=COLLECTION, record_id=task_id)
        except DatabaseError as e:
            raise PersistenceError(str(e), operation="delete_task") from e
        logger.info("Deleted task %s", task_id)


async def delete_tasks(*, task_ids: list[str]) -> None:
    """Delete several tasks in one store call.

    Raises:
        PersistenceError: If the delete fails
    """
    with span("task_service.delete_tasks"):
        try:
            deleted = await db_client.delete_records(collection=COLLECTION, record_ids=task_ids)
        except DatabaseError as e:
            raise PersistenceError(str(e), operation="delete_tasks") from e
        logger.info("Deleted %d tasks", deleted)
