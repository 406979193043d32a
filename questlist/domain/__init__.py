"""Domain models and DTOs."""

from questlist.domain.create_models import TaskCreate, parse_tags
from questlist.domain.quest import QuestDefinition, QuestMetric, QuestScope, QuestState
from questlist.domain.task import Priority, Task
from questlist.domain.user_settings import ClaimRecord, UserSettings


__all__ = [
    "ClaimRecord",
    "Priority",
    "QuestDefinition",
    "QuestMetric",
    "QuestScope",
    "QuestState",
    "Task",
    "TaskCreate",
    "UserSettings",
    "parse_tags",
]
