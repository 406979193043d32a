"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Any

import pytest

from questlist.core.config import settings
from questlist.domain.task import Priority, Task
from questlist.domain.user_settings import UserSettings


# Wednesday; its week starts Monday 2024-05-13
NOW = datetime(2024, 5, 15, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def fixed_timezone(monkeypatch):
    """Bucket every test in UTC regardless of the host zone."""
    monkeypatch.setattr(settings, "timezone", "UTC")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def task_factory() -> Callable[..., Task]:
    """Factory for building Task models with sensible defaults.

    Usage:
        task = task_factory(priority=Priority.HIGH, done_at=NOW)
    """
    counter = iter(range(1, 10_000))

    def _create_task(**kwargs: Any) -> Task:
        done_at = kwargs.pop("done_at", None)
        task_id = str(next(counter))
        data = {
            "id": task_id,
            "owner_id": "owner1",
            "title": f"Task {task_id}",
            "created_at": NOW - timedelta(days=1),
            "priority": Priority.MID,
            "done": done_at is not None,
            "done_at": done_at,
        }
        data.update(kwargs)
        return Task(**data)

    return _create_task


@pytest.fixture
def user_settings() -> UserSettings:
    return UserSettings(owner_id="owner1")


def days_ago(days: int, *, hour: int = 10) -> datetime:
    """Timestamp ``days`` days before NOW's date at ``hour`` UTC."""
    return datetime.combine(NOW.date() - timedelta(days=days), datetime.min.time(), tzinfo=UTC).replace(hour=hour)


def date_offset(days: int) -> date:
    return NOW.date() + timedelta(days=days)
