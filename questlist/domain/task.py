"""Task domain models and enums."""

import json
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Priority(StrEnum):
    """Task priority; drives base XP and sort weight."""

    HIGH = "HIGH"
    MID = "MID"
    LOW = "LOW"

    @property
    def label(self) -> str:
        """Short display label."""
        return {Priority.HIGH: "High", Priority.MID: "Mid", Priority.LOW: "Low"}[self]


class Task(BaseModel):
    """Task data transfer object."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique task ID assigned by the record store")
    owner_id: str = Field(..., description="Owning user ID")
    title: str = Field(..., min_length=1, description="Task title")
    done: bool = Field(default=False, description="Whether the task is completed")
    created_at: datetime = Field(..., description="Creation timestamp")
    done_at: datetime | None = Field(default=None, description="Completion timestamp, present iff done")
    priority: Priority = Field(default=Priority.MID, description="Task priority")
    due_date: date | None = Field(default=None, description="Calendar due date")
    tags: tuple[str, ...] = Field(default=(), max_length=8, description="Short tags, at most 8")
    estimate_minutes: int | None = Field(default=None, ge=0, le=9999, description="Time estimate in minutes")

    @field_validator("tags", mode="before")
    @classmethod
    def decode_tags(cls, v: object) -> object:
        """Accept tags stored as JSON text or null."""
        if v is None:
            return ()
        if isinstance(v, str):
            return json.loads(v) if v.strip() else ()
        return v

    @model_validator(mode="after")
    def check_done_at(self) -> "Task":
        """Enforce that done_at is present exactly when the task is done."""
        if self.done != (self.done_at is not None):
            msg = "done_at must be set if and only if done is true"
            raise ValueError(msg)
        return self
