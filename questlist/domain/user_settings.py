"""Per-user settings: daily goal, bonus XP and claimed quest rewards."""

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from questlist.core.config import constants


class ClaimRecord(BaseModel):
    """Permanent record of one claimed quest reward."""

    model_config = ConfigDict(frozen=True)

    base_reward_xp: int = Field(..., ge=0, description="Quest base reward")
    bonus_xp: int = Field(..., ge=0, description="Random loot bonus")
    label: str = Field(..., description="Loot label")
    claimed_at: datetime = Field(..., description="When the reward was claimed")


class UserSettings(BaseModel):
    """Settings row, exactly one per owner."""

    model_config = ConfigDict(frozen=True)

    owner_id: str = Field(..., description="Owning user ID")
    daily_goal_xp: int = Field(
        default=constants.DEFAULT_DAILY_GOAL_XP,
        ge=constants.MIN_DAILY_GOAL_XP,
        le=constants.MAX_DAILY_GOAL_XP,
        description="Daily XP goal",
    )
    bonus_xp: int = Field(default=0, ge=0, description="Cumulative XP awarded by claims")
    claimed: dict[str, ClaimRecord] = Field(default_factory=dict, description="Claim key -> claim record")

    @field_validator("claimed", mode="before")
    @classmethod
    def decode_claimed(cls, v: object) -> object:
        """Accept the claimed map stored as JSON text or null."""
        if v is None:
            return {}
        if isinstance(v, str):
            return json.loads(v) if v.strip() else {}
        return v

    def is_claimed(self, claim_key: str) -> bool:
        """Return True if ``claim_key`` has already been rewarded."""
        return claim_key in self.claimed

    def claimed_payload(self) -> dict[str, dict]:
        """Serialize the claimed map for storage."""
        return {key: record.model_dump(mode="json") for key, record in self.claimed.items()}
