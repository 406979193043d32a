"""Reward table: base XP per priority and the weighted loot roll."""

import logging
import random
from dataclasses import dataclass

from questlist.core.config import constants
from questlist.domain.task import Priority
from questlist.models.service_models import LootResult


logger = logging.getLogger(__name__)


XP_BY_PRIORITY: dict[Priority, int] = {
    Priority.HIGH: constants.XP_HIGH,
    Priority.MID: constants.XP_MID,
    Priority.LOW: constants.XP_LOW,
}

PRIORITY_WEIGHTS: dict[Priority, int] = {
    Priority.HIGH: constants.WEIGHT_HIGH,
    Priority.MID: constants.WEIGHT_MID,
    Priority.LOW: constants.WEIGHT_LOW,
}


def base_xp(priority: Priority | str) -> int:
    """XP awarded for completing a task of ``priority`` (0 for unknown values)."""
    try:
        return XP_BY_PRIORITY[Priority(priority)]
    except ValueError:
        return 0


def priority_weight(priority: Priority | str) -> int:
    """Sort weight of ``priority``; unknown values weigh as MID."""
    try:
        return PRIORITY_WEIGHTS[Priority(priority)]
    except ValueError:
        return constants.WEIGHT_MID


@dataclass(frozen=True)
class LootEntry:
    """One row of the loot table."""

    label: str
    bonus_xp: int
    weight: int


LOOT_TABLE: tuple[LootEntry, ...] = (
    LootEntry(label="Empty Chest", bonus_xp=0, weight=25),
    LootEntry(label="Small Gem", bonus_xp=10, weight=35),
    LootEntry(label="Shiny Shard", bonus_xp=20, weight=25),
    LootEntry(label="Rare Stone", bonus_xp=40, weight=12),
    LootEntry(label="Epic Orb", bonus_xp=80, weight=3),
)


def total_loot_weight(table: tuple[LootEntry, ...] = LOOT_TABLE) -> int:
    """Sum of all weights in ``table``."""
    return sum(entry.weight for entry in table)


def pick_loot(draw: float, table: tuple[LootEntry, ...] = LOOT_TABLE) -> LootEntry:
    """Select the entry for a draw in ``[0, total_weight)``.

    The first entry whose cumulative weight meets or exceeds the draw wins;
    the first entry is the fallback.
    """
    cumulative = 0
    for entry in table:
        cumulative += entry.weight
        if draw <= cumulative:
            return entry
    return table[0]


def roll_loot(rng: random.Random, table: tuple[LootEntry, ...] = LOOT_TABLE) -> LootResult:
    """Draw one loot result using the injected random source."""
    draw = rng.random() * total_loot_weight(table)
    entry = pick_loot(draw, table)
    logger.debug("Loot roll", extra={"draw": draw, "label": entry.label, "bonus_xp": entry.bonus_xp})
    return LootResult(label=entry.label, bonus_xp=entry.bonus_xp)
