"""Pydantic models for creating records in the store."""

from datetime import date

from pydantic import BaseModel, Field, field_validator

from questlist.core.config import constants
from questlist.domain.task import Priority


def parse_tags(raw: str) -> list[str]:
    """Split comma-separated tag input into at most MAX_TAGS trimmed, non-empty tags."""
    return [tag.strip() for tag in raw.split(",") if tag.strip()][: constants.MAX_TAGS]


def clamp(value: int, low: int, high: int) -> int:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(high, value))


class TaskCreate(BaseModel):
    """Pydantic model for creating a task record."""

    title: str = Field(..., description="Task title")
    priority: Priority = Field(default=Priority.MID, description="Task priority")
    due_date: date | None = Field(default=None, description="Optional due date")
    tags: list[str] = Field(default_factory=list, description="Tags (list or comma-separated text)")
    estimate_minutes: int | None = Field(default=None, description="Optional time estimate in minutes")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip the title and reject it when empty."""
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_due_date(cls, v: object) -> object:
        """Treat an empty due date input as no due date."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: object) -> list[str]:
        """Trim tags, drop empty ones and keep the first MAX_TAGS."""
        if v is None:
            return []
        if isinstance(v, str):
            return parse_tags(v)
        return [str(tag).strip() for tag in v if str(tag).strip()][: constants.MAX_TAGS]

    @field_validator("estimate_minutes", mode="before")
    @classmethod
    def clamp_estimate(cls, v: object) -> int | None:
        """Clamp the estimate into range; malformed or zero input means no estimate."""
        if v is None or isinstance(v, bool):
            return None
        try:
            minutes = int(float(str(v).strip()))
        except (ValueError, OverflowError):
            return None
        minutes = clamp(minutes, constants.MIN_ESTIMATE_MINUTES, constants.MAX_ESTIMATE_MINUTES)
        return minutes or None
