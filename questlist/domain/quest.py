"""Quest domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class QuestScope(StrEnum):
    """Recurrence period of a quest; decides how its claim key is formed."""

    DAY = "day"
    WEEK = "week"
    LIFETIME = "lifetime"


class QuestState(StrEnum):
    """Quest instance lifecycle state."""

    LOCKED = "LOCKED"
    UNLOCKED = "UNLOCKED"
    CLAIMED = "CLAIMED"


class QuestMetric(StrEnum):
    """Aggregate an unlock threshold is read against."""

    DONE_TODAY = "done_today"
    HIGH_DONE_TODAY = "high_done_today"
    DONE_THIS_WEEK = "done_this_week"
    HIGH_DONE_THIS_WEEK = "high_done_this_week"
    MINUTES_THIS_WEEK = "minutes_this_week"
    STREAK = "streak"
    DONE_TOTAL = "done_total"


class QuestDefinition(BaseModel):
    """Static catalog entry; never persisted."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Quest ID, also the claim key prefix")
    title: str = Field(..., description="Display title")
    reward_base_xp: int = Field(..., gt=0, description="Base XP awarded on claim")
    scope: QuestScope = Field(..., description="Day, week or lifetime")
    metric: QuestMetric = Field(..., description="Aggregate checked by the unlock condition")
    threshold: int = Field(..., gt=0, description="Unlocked once metric >= threshold")
