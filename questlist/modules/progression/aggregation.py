"""Aggregation engine: derived statistics over the task list and settings.

Every value here is a pure function of (tasks, settings, now). Nothing is
cached between calls, so toggling a task back to incomplete immediately
lowers every aggregate that counted it.

Bucketing always goes through ``questlist.core.calendar``.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum

from questlist.core.calendar import local_date, local_day_key, local_week_key, previous_day
from questlist.core.config import constants
from questlist.domain.task import Priority, Task
from questlist.domain.user_settings import UserSettings
from questlist.models.service_models import ProgressStats
from questlist.modules.progression.levels import compute_level
from questlist.modules.progression.rewards import base_xp, priority_weight


def _completed(tasks: Iterable[Task]) -> list[Task]:
    return [t for t in tasks if t.done and t.done_at is not None]


def _completed_in_day(tasks: Iterable[Task], day_key: str) -> list[Task]:
    return [t for t in _completed(tasks) if local_day_key(t.done_at) == day_key]


def _completed_in_week(tasks: Iterable[Task], week_key: str) -> list[Task]:
    return [t for t in _completed(tasks) if local_week_key(t.done_at) == week_key]


def completed_xp(tasks: Iterable[Task]) -> int:
    """Base XP of all completed tasks."""
    return sum(base_xp(t.priority) for t in tasks if t.done)


def total_xp(tasks: Iterable[Task], settings: UserSettings) -> int:
    """Completed-task XP plus all XP awarded by claims."""
    return completed_xp(tasks) + settings.bonus_xp


def claim_bonus_on_date(settings: UserSettings, day_key: str) -> int:
    """Loot bonus of claims made on the given local day."""
    return sum(c.bonus_xp for c in settings.claimed.values() if local_day_key(c.claimed_at) == day_key)


def claim_bonus_in_week(settings: UserSettings, week_key: str) -> int:
    """Loot bonus of claims made in the given local week."""
    return sum(c.bonus_xp for c in settings.claimed.values() if local_week_key(c.claimed_at) == week_key)


def xp_on_date(tasks: Iterable[Task], settings: UserSettings, day_key: str) -> int:
    """XP earned on one local day: completions that day plus that day's loot bonuses."""
    task_xp = sum(base_xp(t.priority) for t in _completed_in_day(tasks, day_key))
    return task_xp + claim_bonus_on_date(settings, day_key)


def xp_in_week(tasks: Iterable[Task], settings: UserSettings, week_key: str) -> int:
    """XP earned in one local week: completions that week plus that week's loot bonuses."""
    task_xp = sum(base_xp(t.priority) for t in _completed_in_week(tasks, week_key))
    return task_xp + claim_bonus_in_week(settings, week_key)


def minutes_in_week(tasks: Iterable[Task], week_key: str) -> int:
    """Estimated minutes of tasks completed in the given week."""
    return sum(t.estimate_minutes or 0 for t in _completed_in_week(tasks, week_key))


def count_done_on_date(tasks: Iterable[Task], day_key: str, priority: Priority | None = None) -> int:
    """Number of tasks completed on a day, optionally of one priority."""
    return sum(1 for t in _completed_in_day(tasks, day_key) if priority is None or t.priority == priority)


def count_done_in_week(tasks: Iterable[Task], week_key: str, priority: Priority | None = None) -> int:
    """Number of tasks completed in a week, optionally of one priority."""
    return sum(1 for t in _completed_in_week(tasks, week_key) if priority is None or t.priority == priority)


def completion_days(tasks: Iterable[Task]) -> set[str]:
    """Distinct local day keys with at least one completion."""
    return {local_day_key(t.done_at) for t in _completed(tasks)}


def streak(tasks: Iterable[Task], now: datetime) -> int:
    """Consecutive days with a completion, ending today.

    Today must have a completion; a run that ended yesterday yields 0.
    """
    days = completion_days(tasks)
    count = 0
    day = local_date(now)
    while local_day_key(day) in days:
        count += 1
        day = previous_day(day)
    return count


def distinct_tags(tasks: Iterable[Task]) -> list[str]:
    """All tags across all tasks, sorted case-insensitively (ties in code-point order)."""
    tags = {tag for t in tasks for tag in t.tags}
    return sorted(tags, key=lambda tag: (tag.casefold(), tag))


class DueBucket(StrEnum):
    """Due-date filter buckets."""

    ALL = "ALL"
    OVERDUE = "OVERDUE"
    TODAY = "TODAY"
    WEEK = "WEEK"


@dataclass(frozen=True)
class TaskFilter:
    """Filters for the task list view; ``None`` means no filtering on that field."""

    text_query: str = ""
    tag: str | None = None
    priority: Priority | None = None
    due_bucket: DueBucket = DueBucket.ALL


def _matches_text(task: Task, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    haystack = f"{task.title} {' '.join(task.tags)}".lower()
    return needle in haystack


def _due_predicate(bucket: DueBucket, today: date) -> Callable[[Task], bool]:
    week_end = today + timedelta(days=constants.DUE_WEEK_WINDOW_DAYS)
    if bucket == DueBucket.OVERDUE:
        return lambda t: not t.done and t.due_date is not None and t.due_date < today
    if bucket == DueBucket.TODAY:
        return lambda t: not t.done and t.due_date == today
    if bucket == DueBucket.WEEK:
        return lambda t: not t.done and t.due_date is not None and today <= t.due_date <= week_end
    return lambda _t: True


def sort_key(task: Task) -> tuple:
    """Incomplete first, then higher priority, earlier due date (none last), newer creation."""
    due_ordinal = task.due_date.toordinal() if task.due_date is not None else float("inf")
    return (task.done, -priority_weight(task.priority), due_ordinal, -task.created_at.timestamp())


def filtered_sorted_view(tasks: Iterable[Task], filters: TaskFilter, now: datetime) -> list[Task]:
    """Apply text, tag, priority and due-bucket filters in order, then sort."""
    today = local_date(now)
    due_ok = _due_predicate(filters.due_bucket, today)

    view = [t for t in tasks if _matches_text(t, filters.text_query)]
    if filters.tag is not None:
        view = [t for t in view if filters.tag in t.tags]
    if filters.priority is not None:
        view = [t for t in view if t.priority == filters.priority]
    view = [t for t in view if due_ok(t)]

    return sorted(view, key=sort_key)


def compute_stats(tasks: Iterable[Task], settings: UserSettings, now: datetime) -> ProgressStats:
    """Compute the full set of player panel aggregates for ``now``."""
    tasks = list(tasks)
    today_key = local_day_key(now)
    week_key = local_week_key(now)

    xp_total = total_xp(tasks, settings)
    done_count = len([t for t in tasks if t.done])
    xp_today = xp_on_date(tasks, settings, today_key)
    daily_goal = settings.daily_goal_xp

    return ProgressStats(
        today_key=today_key,
        week_key=week_key,
        total_xp=xp_total,
        level=compute_level(xp_total),
        done_count=done_count,
        active_count=len(tasks) - done_count,
        xp_today=xp_today,
        xp_week=xp_in_week(tasks, settings, week_key),
        minutes_week=minutes_in_week(tasks, week_key),
        streak=streak(tasks, now),
        daily_goal_xp=daily_goal,
        daily_progress=max(0.0, min(1.0, xp_today / max(1, daily_goal))),
        done_today=count_done_on_date(tasks, today_key),
        high_done_today=count_done_on_date(tasks, today_key, Priority.HIGH),
        done_week=count_done_in_week(tasks, week_key),
        high_done_week=count_done_in_week(tasks, week_key, Priority.HIGH),
    )
