"""Unit tests for base XP, priority weights and the loot roll."""

import random
from collections import Counter

import pytest

from questlist.domain.task import Priority
from questlist.modules.progression.rewards import (
    LOOT_TABLE,
    base_xp,
    pick_loot,
    priority_weight,
    roll_loot,
    total_loot_weight,
)


class FixedRandom(random.Random):
    """Random source that always returns the same value."""

    def __init__(self, value: float):
        super().__init__()
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.mark.unit
class TestBaseXp:
    @pytest.mark.parametrize(("priority", "expected"), [(Priority.HIGH, 40), (Priority.MID, 20), (Priority.LOW, 10)])
    def test_xp_by_priority(self, priority, expected):
        assert base_xp(priority) == expected

    def test_accepts_raw_values(self):
        assert base_xp("HIGH") == 40

    def test_unknown_priority_is_worth_nothing(self):
        assert base_xp("URGENT") == 0

    def test_weights_order_priorities(self):
        assert priority_weight(Priority.HIGH) > priority_weight(Priority.MID) > priority_weight(Priority.LOW)

    def test_unknown_priority_weighs_as_mid(self):
        assert priority_weight("URGENT") == priority_weight(Priority.MID)


@pytest.mark.unit
class TestPickLoot:
    def test_table_weights_sum_to_100(self):
        assert total_loot_weight() == 100

    def test_zero_draw_picks_first_entry(self):
        assert pick_loot(0).label == "Empty Chest"

    def test_draw_equal_to_cumulative_weight_picks_that_entry(self):
        assert pick_loot(25).label == "Empty Chest"
        assert pick_loot(60).label == "Small Gem"

    def test_draw_just_above_boundary_picks_next_entry(self):
        assert pick_loot(25.01).label == "Small Gem"

    def test_top_of_range_picks_rarest_entry(self):
        assert pick_loot(99.99).label == "Epic Orb"

    def test_out_of_range_draw_falls_back_to_first_entry(self):
        assert pick_loot(1000) == LOOT_TABLE[0]


@pytest.mark.unit
class TestRollLoot:
    def test_uses_injected_random_source(self):
        result = roll_loot(FixedRandom(0.999))

        assert result.label == "Epic Orb"
        assert result.bonus_xp == 80

    def test_seeded_rolls_are_reproducible(self):
        first = [roll_loot(random.Random(7)) for _ in range(5)]  # noqa: S311
        second = [roll_loot(random.Random(7)) for _ in range(5)]  # noqa: S311

        assert first == second

    def test_frequencies_converge_to_weights(self):
        rng = random.Random(42)  # noqa: S311
        trials = 100_000

        counts = Counter(roll_loot(rng).label for _ in range(trials))

        for entry in LOOT_TABLE:
            expected = entry.weight / total_loot_weight()
            assert abs(counts[entry.label] / trials - expected) < 0.01, entry.label
