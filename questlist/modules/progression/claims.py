"""Claim engine: the UNLOCKED -> CLAIMED transition.

``apply_claim`` is pure apart from the injected random source: it takes
the current settings and returns the next settings. Persisting the result
and rolling back on failure is the session's job.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime

from questlist.domain.user_settings import ClaimRecord, UserSettings
from questlist.models.service_models import LootResult
from questlist.modules.progression.quests import claim_key
from questlist.modules.progression.rewards import roll_loot


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimOutcome:
    """Result of a claim attempt against in-memory settings."""

    settings: UserSettings
    claim_key: str
    loot: LootResult | None = None

    @property
    def applied(self) -> bool:
        """False when the key was already claimed and nothing changed."""
        return self.loot is not None

    @property
    def awarded_xp(self) -> int:
        """Base reward plus loot bonus added by this claim (0 for a no-op)."""
        if self.loot is None:
            return 0
        return self.settings.claimed[self.claim_key].base_reward_xp + self.loot.bonus_xp


def apply_claim(
    settings: UserSettings,
    quest_id: str,
    base_reward_xp: int,
    scope_key: str | None,
    *,
    rng: random.Random,
    now: datetime,
) -> ClaimOutcome:
    """Claim a quest reward once per claim key.

    An existing key makes this a no-op: no loot is rolled and no XP is added.
    """
    key = claim_key(quest_id, scope_key)
    if settings.is_claimed(key):
        logger.debug("Claim ignored, key already claimed", extra={"claim_key": key})
        return ClaimOutcome(settings=settings, claim_key=key)

    loot = roll_loot(rng)
    record = ClaimRecord(
        base_reward_xp=base_reward_xp,
        bonus_xp=loot.bonus_xp,
        label=loot.label,
        claimed_at=now,
    )
    next_settings = settings.model_copy(
        update={
            "claimed": {**settings.claimed, key: record},
            "bonus_xp": settings.bonus_xp + base_reward_xp + loot.bonus_xp,
        }
    )
    return ClaimOutcome(settings=next_settings, claim_key=key, loot=loot)
