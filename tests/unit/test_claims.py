"""Unit tests for the claim engine."""

import random

import pytest

from questlist.domain.user_settings import UserSettings
from questlist.modules.progression.claims import apply_claim
from tests.conftest import NOW


class FixedRandom(random.Random):
    def __init__(self, value: float):
        super().__init__()
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.mark.unit
class TestApplyClaim:
    def test_first_claim_adds_reward_and_record(self, user_settings, seeded_rng):
        outcome = apply_claim(user_settings, "daily_3_done", 20, "2024-05-15", rng=seeded_rng, now=NOW)

        assert outcome.applied
        assert outcome.claim_key == "daily_3_done:2024-05-15"
        record = outcome.settings.claimed["daily_3_done:2024-05-15"]
        assert record.base_reward_xp == 20
        assert record.bonus_xp == outcome.loot.bonus_xp
        assert record.label == outcome.loot.label
        assert record.claimed_at == NOW
        assert outcome.settings.bonus_xp == 20 + outcome.loot.bonus_xp
        assert outcome.awarded_xp == 20 + outcome.loot.bonus_xp

    def test_does_not_mutate_input(self, user_settings, seeded_rng):
        apply_claim(user_settings, "total_30", 150, None, rng=seeded_rng, now=NOW)

        assert user_settings.bonus_xp == 0
        assert user_settings.claimed == {}

    def test_second_claim_is_a_no_op(self, user_settings):
        rng = FixedRandom(0.5)
        first = apply_claim(user_settings, "weekly_3_high", 80, "2024-05-13", rng=rng, now=NOW)

        second = apply_claim(first.settings, "weekly_3_high", 80, "2024-05-13", rng=rng, now=NOW)

        assert not second.applied
        assert second.loot is None
        assert second.awarded_xp == 0
        assert second.settings == first.settings

    def test_no_loot_roll_when_already_claimed(self, user_settings):
        first = apply_claim(user_settings, "total_30", 150, None, rng=FixedRandom(0.0), now=NOW)

        class ExplodingRandom(random.Random):
            def random(self) -> float:
                raise AssertionError("loot must not be rolled")

        second = apply_claim(first.settings, "total_30", 150, None, rng=ExplodingRandom(), now=NOW)

        assert not second.applied

    def test_lifetime_claim_uses_bare_quest_id(self, user_settings):
        outcome = apply_claim(user_settings, "streak_7", 120, None, rng=FixedRandom(0.0), now=NOW)

        assert list(outcome.settings.claimed) == ["streak_7"]
        assert outcome.loot.label == "Empty Chest"
        assert outcome.settings.bonus_xp == 120

    def test_same_quest_in_a_new_scope_can_be_claimed_again(self):
        settings = UserSettings(owner_id="owner1")
        rng = FixedRandom(0.0)
        monday = apply_claim(settings, "daily_1_high", 20, "2024-05-13", rng=rng, now=NOW)

        tuesday = apply_claim(monday.settings, "daily_1_high", 20, "2024-05-14", rng=rng, now=NOW)

        assert tuesday.applied
        assert tuesday.settings.bonus_xp == 40
