"""Level curve: cumulative XP to level, progress and title."""

from questlist.core.config import constants
from questlist.models.service_models import LevelState


# Highest threshold met wins; below the lowest is the base tier
LEVEL_TITLES: tuple[tuple[int, str], ...] = (
    (20, "Legend"),
    (15, "Master"),
    (10, "Strategist"),
    (6, "Adventurer"),
)
BASE_TITLE = "Sprout"


def xp_required_for_level(level: int) -> int:
    """XP needed to advance from ``level`` (1-based) to the next one."""
    return round(constants.LEVEL_XP_BASE + level * constants.LEVEL_XP_STEP)


def title_for_level(level: int) -> str:
    """Banded title for ``level``."""
    for threshold, title in LEVEL_TITLES:
        if level >= threshold:
            return title
    return BASE_TITLE


def compute_level(total_xp: int) -> LevelState:
    """Walk the level curve from level 1, spending ``total_xp`` on each level in turn."""
    if total_xp < 0:
        msg = f"total_xp must be non-negative, got {total_xp}"
        raise ValueError(msg)

    level = 1
    remaining = total_xp
    while remaining >= xp_required_for_level(level):
        remaining -= xp_required_for_level(level)
        level += 1

    needed = xp_required_for_level(level)
    return LevelState(
        level=level,
        xp_into_level=remaining,
        xp_needed=needed,
        progress_fraction=0.0 if needed == 0 else remaining / needed,
        title=title_for_level(level),
    )


def total_xp_for(level: int, xp_into_level: int) -> int:
    """Inverse of compute_level: cumulative XP for a level and progress within it."""
    return sum(xp_required_for_level(n) for n in range(1, level)) + xp_into_level
