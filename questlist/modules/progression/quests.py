"""Quest catalog, unlock evaluation and cosmetic badges.

Unlock state is never stored: it is recomputed from current aggregates on
every call, so an unclaimed quest can drop back to LOCKED if a task is
marked incomplete again. Only the claimed map is persistent.
"""

from collections.abc import Iterable
from datetime import datetime

from questlist.core.config import constants
from questlist.domain.quest import QuestDefinition, QuestMetric, QuestScope, QuestState
from questlist.domain.task import Task
from questlist.domain.user_settings import UserSettings
from questlist.models.service_models import ProgressStats, QuestStatus
from questlist.modules.progression.aggregation import compute_stats


QUEST_CATALOG: tuple[QuestDefinition, ...] = (
    # Daily
    QuestDefinition(
        id="daily_3_done",
        title="Complete 3 tasks today",
        reward_base_xp=20,
        scope=QuestScope.DAY,
        metric=QuestMetric.DONE_TODAY,
        threshold=3,
    ),
    QuestDefinition(
        id="daily_1_high",
        title="Complete 1 High task today",
        reward_base_xp=20,
        scope=QuestScope.DAY,
        metric=QuestMetric.HIGH_DONE_TODAY,
        threshold=1,
    ),
    # Weekly
    QuestDefinition(
        id="weekly_10_done",
        title="Complete 10 tasks this week",
        reward_base_xp=60,
        scope=QuestScope.WEEK,
        metric=QuestMetric.DONE_THIS_WEEK,
        threshold=10,
    ),
    QuestDefinition(
        id="weekly_3_high",
        title="Complete 3 High tasks this week",
        reward_base_xp=80,
        scope=QuestScope.WEEK,
        metric=QuestMetric.HIGH_DONE_THIS_WEEK,
        threshold=3,
    ),
    QuestDefinition(
        id="weekly_300min",
        title="Finish 300 estimated minutes this week",
        reward_base_xp=90,
        scope=QuestScope.WEEK,
        metric=QuestMetric.MINUTES_THIS_WEEK,
        threshold=300,
    ),
    # Milestones (once)
    QuestDefinition(
        id="streak_7",
        title="Reach a 7-day streak",
        reward_base_xp=120,
        scope=QuestScope.LIFETIME,
        metric=QuestMetric.STREAK,
        threshold=7,
    ),
    QuestDefinition(
        id="total_30",
        title="Complete 30 tasks in total",
        reward_base_xp=150,
        scope=QuestScope.LIFETIME,
        metric=QuestMetric.DONE_TOTAL,
        threshold=30,
    ),
)

QUESTS_BY_ID: dict[str, QuestDefinition] = {quest.id: quest for quest in QUEST_CATALOG}


def get_quest(quest_id: str) -> QuestDefinition:
    """Look up a quest definition by ID.

    Raises:
        KeyError: If no quest has that ID
    """
    try:
        return QUESTS_BY_ID[quest_id]
    except KeyError:
        msg = f"Unknown quest: {quest_id}"
        raise KeyError(msg) from None


def claim_key(quest_id: str, scope_key: str | None) -> str:
    """Build the claim key: ``quest_id:scope_key`` for scoped quests, bare ``quest_id`` otherwise."""
    return f"{quest_id}:{scope_key}" if scope_key else quest_id


def scope_key_for(quest: QuestDefinition, stats: ProgressStats) -> str | None:
    """Current day or week bucket for scoped quests, None for lifetime quests."""
    if quest.scope == QuestScope.DAY:
        return stats.today_key
    if quest.scope == QuestScope.WEEK:
        return stats.week_key
    return None


def metric_value(metric: QuestMetric, stats: ProgressStats) -> int:
    """Read the aggregate a quest threshold is checked against."""
    values = {
        QuestMetric.DONE_TODAY: stats.done_today,
        QuestMetric.HIGH_DONE_TODAY: stats.high_done_today,
        QuestMetric.DONE_THIS_WEEK: stats.done_week,
        QuestMetric.HIGH_DONE_THIS_WEEK: stats.high_done_week,
        QuestMetric.MINUTES_THIS_WEEK: stats.minutes_week,
        QuestMetric.STREAK: stats.streak,
        QuestMetric.DONE_TOTAL: stats.done_count,
    }
    return values[metric]


def is_unlocked(quest: QuestDefinition, stats: ProgressStats) -> bool:
    """True when the quest's aggregate has reached its threshold."""
    return metric_value(quest.metric, stats) >= quest.threshold


def evaluate_quest(quest: QuestDefinition, stats: ProgressStats, settings: UserSettings) -> QuestStatus:
    """Resolve one quest instance to LOCKED, UNLOCKED or CLAIMED."""
    scope_key = scope_key_for(quest, stats)
    key = claim_key(quest.id, scope_key)

    if settings.is_claimed(key):
        state = QuestState.CLAIMED
    elif is_unlocked(quest, stats):
        state = QuestState.UNLOCKED
    else:
        state = QuestState.LOCKED

    return QuestStatus(
        id=quest.id,
        title=quest.title,
        reward_base_xp=quest.reward_base_xp,
        scope=quest.scope,
        scope_key=scope_key,
        claim_key=key,
        state=state,
    )


def evaluate_quests(
    tasks: Iterable[Task],
    settings: UserSettings,
    now: datetime,
    *,
    stats: ProgressStats | None = None,
) -> list[QuestStatus]:
    """Evaluate the whole catalog for the current day and week."""
    stats = stats or compute_stats(tasks, settings, now)
    return [evaluate_quest(quest, stats, settings) for quest in QUEST_CATALOG]


BADGE_RULES: tuple[tuple[str, str], ...] = (
    ("First Clear", "done_1"),
    ("10 Clears", "done_10"),
    ("30 Clears", "done_30"),
    ("3-Day Streak", "streak_3"),
    ("7-Day Streak", "streak_7"),
    ("Daily Goal", "daily_goal"),
    ("300 Minutes Week", "minutes_300"),
)


def badges(stats: ProgressStats) -> list[str]:
    """Cosmetic badges earned for the current aggregates, capped at MAX_BADGES."""
    earned = {
        "done_1": stats.done_count >= 1,
        "done_10": stats.done_count >= 10,  # noqa: PLR2004
        "done_30": stats.done_count >= 30,  # noqa: PLR2004
        "streak_3": stats.streak >= 3,  # noqa: PLR2004
        "streak_7": stats.streak >= 7,  # noqa: PLR2004
        "daily_goal": stats.xp_today >= stats.daily_goal_xp,
        "minutes_300": stats.minutes_week >= 300,  # noqa: PLR2004
    }
    return [label for label, rule in BADGE_RULES if earned[rule]][: constants.MAX_BADGES]
