"""Pydantic models for engine and service layer return types.

These are derived values recomputed on every read; none of them is persisted.
"""

from typing import Literal

from pydantic import BaseModel

from questlist.domain.quest import QuestScope, QuestState


class LevelState(BaseModel):
    """Position on the level curve for a cumulative XP total."""

    level: int
    xp_into_level: int
    xp_needed: int
    progress_fraction: float
    title: str


class LootResult(BaseModel):
    """Outcome of one weighted loot draw."""

    label: str
    bonus_xp: int


class ProgressStats(BaseModel):
    """Aggregates shown on the player panel."""

    today_key: str
    week_key: str
    total_xp: int
    level: LevelState
    done_count: int
    active_count: int
    xp_today: int
    xp_week: int
    minutes_week: int
    streak: int
    daily_goal_xp: int
    daily_progress: float
    done_today: int
    high_done_today: int
    done_week: int
    high_done_week: int


class QuestStatus(BaseModel):
    """A quest instance for the current day/week evaluated against current aggregates."""

    id: str
    title: str
    reward_base_xp: int
    scope: QuestScope
    scope_key: str | None
    claim_key: str
    state: QuestState

    @property
    def unlocked(self) -> bool:
        """True when the reward can be claimed right now."""
        return self.state == QuestState.UNLOCKED

    @property
    def claimed(self) -> bool:
        """True once the reward has been paid out."""
        return self.state == QuestState.CLAIMED


class Notification(BaseModel):
    """Short user-visible message produced by a session action."""

    kind: Literal["ok", "err"]
    title: str
    description: str = ""


class ActionResult(BaseModel):
    """Outcome of a mutating session action."""

    ok: bool
    notifications: list[Notification] = []
    loot: LootResult | None = None
    error_code: str | None = None
