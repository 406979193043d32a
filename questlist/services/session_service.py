"""Single-user play session.

A ``PlayerSession`` holds the signed-in owner's tasks and settings in memory
and drives every mutation through ``OptimisticState``: the new state is
applied before the store write is awaited, and a failed write undoes only
that action, leaving changes made meanwhile by other actions in place.

Key Concepts:
- Derived values (stats, quests, badges, the sorted view) are recomputed
  from the in-memory state on every read.
- Claims check the claimed map synchronously inside the mutator, so a second
  click before the first write resolves finds the key already present.
- A claim that loses a race against another session (ConflictError from the
  store) is a silent no-op: the session adopts the claim record stored by
  the winner.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from questlist.core.config import constants
from questlist.core.config import settings as app_settings
from questlist.core.errors import (
    ConflictError,
    ErrorCode,
    PersistenceError,
    ValidationError,
    classify_error_with_response,
)
from questlist.core.logging import log_with_user_context
from questlist.core.optimistic import OptimisticState
from questlist.domain.create_models import clamp
from questlist.domain.quest import QuestState
from questlist.domain.task import Task
from questlist.domain.user_settings import ClaimRecord, UserSettings
from questlist.models.service_models import ActionResult, LootResult, Notification, ProgressStats, QuestStatus
from questlist.modules.progression import aggregation, quests
from questlist.modules.progression.aggregation import TaskFilter
from questlist.modules.progression.claims import ClaimOutcome, apply_claim
from questlist.modules.progression.levels import compute_level
from questlist.modules.progression.rewards import base_xp
from questlist.services import settings_service, task_service


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    """Everything the session knows about its owner."""

    tasks: tuple[Task, ...] = ()
    settings: UserSettings = field(default_factory=lambda: UserSettings(owner_id=""))

    def find_task(self, task_id: str) -> Task | None:
        """Return the task with ``task_id``, or None."""
        return next((t for t in self.tasks if t.id == task_id), None)


def parse_daily_goal(raw: object) -> int:
    """Parse goal input, clamped to the allowed range.

    Malformed, empty or zero input gives the default goal.
    """
    try:
        value = float(str(raw).strip())
        goal = int(value)
    except (ValueError, OverflowError):
        return constants.DEFAULT_DAILY_GOAL_XP
    if value == 0:
        return constants.DEFAULT_DAILY_GOAL_XP
    return clamp(goal, constants.MIN_DAILY_GOAL_XP, constants.MAX_DAILY_GOAL_XP)


def _ok(*notifications: Notification, loot: LootResult | None = None) -> ActionResult:
    return ActionResult(ok=True, notifications=list(notifications), loot=loot)


def _failure(exc: Exception) -> ActionResult:
    response = classify_error_with_response(exc)
    return ActionResult(
        ok=False,
        notifications=[Notification(kind="err", title=response.message, description=response.suggestion)],
        error_code=response.code,
    )


def _reinsert(current: tuple[Task, ...], removed: list[Task], order: tuple[Task, ...]) -> tuple[Task, ...]:
    """Put ``removed`` tasks back into ``current`` at their positions in ``order``.

    Tasks added since ``order`` was taken have no position there and stay in front.
    """
    present = {t.id for t in current}
    missing = [t for t in removed if t.id not in present]
    if not missing:
        return current
    rank = {t.id: i for i, t in enumerate(order)}
    return tuple(sorted((*current, *missing), key=lambda t: rank.get(t.id, -1)))


def _without_claim(settings: UserSettings, claim_key: str, record: ClaimRecord) -> UserSettings:
    """Undo one claim: drop its key and the XP it added."""
    if settings.claimed.get(claim_key) != record:
        return settings
    claimed = {key: value for key, value in settings.claimed.items() if key != claim_key}
    bonus_xp = max(0, settings.bonus_xp - record.base_reward_xp - record.bonus_xp)
    return settings.model_copy(update={"claimed": claimed, "bonus_xp": bonus_xp})


class PlayerSession:
    """In-memory state and actions for one signed-in owner."""

    def __init__(
        self,
        owner_id: str,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.owner_id = owner_id
        self._rng = rng or random.Random(app_settings.loot_seed)  # noqa: S311 - cosmetic loot, not crypto
        self._clock = clock or (lambda: datetime.now(UTC))
        self._state = OptimisticState(SessionState(settings=settings_service.default_settings(owner_id)))
        self._last_level = 1

    @property
    def state(self) -> SessionState:
        """Current in-memory state, including optimistic changes not yet confirmed."""
        return self._state.state

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self.state.tasks

    @property
    def user_settings(self) -> UserSettings:
        return self.state.settings

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> ActionResult:
        """Ensure the settings row exists, then load settings and tasks from the store."""
        try:
            await settings_service.upsert_settings(owner_id=self.owner_id)
            user_settings = await settings_service.get_settings(owner_id=self.owner_id)
            tasks = await task_service.list_tasks(owner_id=self.owner_id)
        except PersistenceError as e:
            log_with_user_context(logger, "error", "Session load failed", owner_id=self.owner_id, error=str(e))
            return _failure(e)

        self._state.replace(SessionState(tasks=tuple(tasks), settings=user_settings))
        self._last_level = self._current_level()
        log_with_user_context(
            logger, "info", "Session loaded", owner_id=self.owner_id, tasks=len(tasks), player_level=self._last_level
        )
        return _ok()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def stats(self) -> ProgressStats:
        return aggregation.compute_stats(self.tasks, self.user_settings, self.now())

    def quests(self) -> list[QuestStatus]:
        return quests.evaluate_quests(self.tasks, self.user_settings, self.now())

    def badges(self) -> list[str]:
        return quests.badges(self.stats())

    def tags(self) -> list[str]:
        return aggregation.distinct_tags(self.tasks)

    def view(self, filters: TaskFilter | None = None) -> list[Task]:
        """Filtered and sorted task list for display."""
        return aggregation.filtered_sorted_view(self.tasks, filters or TaskFilter(), self.now())

    # ------------------------------------------------------------------
    # Task actions
    # ------------------------------------------------------------------

    async def add_task(self, **fields: Any) -> ActionResult:
        """Validate and create a task; nothing changes if the input is invalid or the write fails."""
        try:
            task_fields = task_service.validate_task_fields(fields)
        except ValidationError as e:
            return _failure(e)

        try:
            task = await task_service.create_task(owner_id=self.owner_id, fields=task_fields, now=self.now())
        except PersistenceError as e:
            return _failure(e)

        current = self._state.state
        self._state.replace(replace(current, tasks=(task, *current.tasks)))
        return _ok(
            Notification(
                kind="ok",
                title="Task added",
                description=f"{task.priority.label} priority, +{base_xp(task.priority)} XP when cleared",
            )
        )

    async def toggle_done(self, task_id: str) -> ActionResult:
        """Flip a task between done and not done."""
        task = self.state.find_task(task_id)
        if task is None:
            return _failure(KeyError(task_id))

        now = self.now()
        done = not task.done
        patch = task_service.completion_patch(done=done, now=now)

        def mutate(state: SessionState) -> SessionState:
            tasks = tuple(t.model_copy(update=patch) if t.id == task_id else t for t in state.tasks)
            return replace(state, tasks=tasks)

        def revert(state: SessionState) -> SessionState:
            return replace(state, tasks=tuple(task if t.id == task_id else t for t in state.tasks))

        async def write(_prior: SessionState, _new: SessionState) -> None:
            await task_service.update_task(task_id=task_id, patch=patch)

        result = await self._state.attempt(mutate, write, revert=revert, operation="toggle_done")
        if not result.ok:
            return _failure(result.error)

        notifications = []
        if done:
            notifications.append(
                Notification(kind="ok", title="Task cleared", description=f"+{base_xp(task.priority)} XP")
            )
        notifications.extend(self._level_notifications())
        return _ok(*notifications)

    async def remove_task(self, task_id: str) -> ActionResult:
        """Delete one task."""
        task = self.state.find_task(task_id)
        if task is None:
            return _failure(KeyError(task_id))
        order = self.tasks

        def mutate(state: SessionState) -> SessionState:
            return replace(state, tasks=tuple(t for t in state.tasks if t.id != task_id))

        def revert(state: SessionState) -> SessionState:
            return replace(state, tasks=_reinsert(state.tasks, [task], order))

        async def write(_prior: SessionState, _new: SessionState) -> None:
            await task_service.delete_task(task_id=task_id)

        result = await self._state.attempt(mutate, write, revert=revert, operation="remove_task")
        if not result.ok:
            return _failure(result.error)
        self._sync_level()
        return _ok()

    async def clear_done(self) -> ActionResult:
        """Delete every completed task in one store call."""
        order = self.tasks
        done_tasks = [t for t in order if t.done]
        if not done_tasks:
            return _ok()
        done_ids = [t.id for t in done_tasks]

        def mutate(state: SessionState) -> SessionState:
            return replace(state, tasks=tuple(t for t in state.tasks if t.id not in done_ids))

        def revert(state: SessionState) -> SessionState:
            return replace(state, tasks=_reinsert(state.tasks, done_tasks, order))

        async def write(_prior: SessionState, _new: SessionState) -> None:
            await task_service.delete_tasks(task_ids=done_ids)

        result = await self._state.attempt(mutate, write, revert=revert, operation="clear_done")
        if not result.ok:
            return _failure(result.error)
        self._sync_level()
        return _ok(Notification(kind="ok", title="Completed tasks cleared", description=f"{len(done_ids)} removed"))

    # ------------------------------------------------------------------
    # Settings actions
    # ------------------------------------------------------------------

    async def update_daily_goal(self, raw: object) -> ActionResult:
        """Set the daily XP goal from user input."""
        goal = parse_daily_goal(raw)
        previous = self.user_settings.daily_goal_xp

        def mutate(state: SessionState) -> SessionState:
            if state.settings.daily_goal_xp == goal:
                return state
            return replace(state, settings=state.settings.model_copy(update={"daily_goal_xp": goal}))

        def revert(state: SessionState) -> SessionState:
            # A later goal change supersedes this one
            if state.settings.daily_goal_xp != goal:
                return state
            return replace(state, settings=state.settings.model_copy(update={"daily_goal_xp": previous}))

        async def write(_prior: SessionState, _new: SessionState) -> None:
            await settings_service.update_settings(owner_id=self.owner_id, patch={"daily_goal_xp": goal})

        result = await self._state.attempt(mutate, write, revert=revert, operation="update_daily_goal")
        if not result.ok:
            return _failure(result.error)
        return _ok()

    async def claim_quest(self, quest_id: str) -> ActionResult:
        """Claim the reward of an unlocked quest for the current day or week.

        Claiming an already claimed quest is a silent no-op; claiming a locked
        quest is rejected without changing anything.
        """
        try:
            quest = quests.get_quest(quest_id)
        except KeyError as e:
            return _failure(e)

        now = self.now()
        stats = aggregation.compute_stats(self.tasks, self.user_settings, now)
        status = quests.evaluate_quest(quest, stats, self.user_settings)
        if status.state == QuestState.CLAIMED:
            return _ok()
        if status.state == QuestState.LOCKED:
            return ActionResult(
                ok=False,
                notifications=[Notification(kind="err", title="Quest locked", description=quest.title)],
                error_code=ErrorCode.ERR_VALIDATION,
            )

        outcomes: list[ClaimOutcome] = []

        def mutate(state: SessionState) -> SessionState:
            outcome = apply_claim(
                state.settings, quest.id, quest.reward_base_xp, status.scope_key, rng=self._rng, now=now
            )
            outcomes.append(outcome)
            if not outcome.applied:
                return state
            return replace(state, settings=outcome.settings)

        def revert(state: SessionState) -> SessionState:
            record = outcomes[-1].settings.claimed[status.claim_key]
            return replace(state, settings=_without_claim(state.settings, status.claim_key, record))

        async def write(_prior: SessionState, new: SessionState) -> None:
            await settings_service.record_claim(
                owner_id=self.owner_id, claim_key=status.claim_key, claim=new.settings.claimed[status.claim_key]
            )

        result = await self._state.attempt(mutate, write, revert=revert, operation="claim_quest")
        if isinstance(result.error, ConflictError):
            await self._adopt_stored_claim(status.claim_key)
            return _ok()
        if not result.ok:
            return _failure(result.error)

        outcome = outcomes[-1]
        if not outcome.applied:
            return _ok()

        log_with_user_context(
            logger,
            "info",
            "Quest claimed",
            owner_id=self.owner_id,
            claim_key=outcome.claim_key,
            awarded_xp=outcome.awarded_xp,
            loot=outcome.loot.label,
        )
        claimed = Notification(
            kind="ok",
            title="Reward claimed",
            description=f"+{quest.reward_base_xp} XP, {outcome.loot.label} +{outcome.loot.bonus_xp} XP",
        )
        return _ok(claimed, *self._level_notifications(), loot=outcome.loot)

    async def _adopt_stored_claim(self, claim_key: str) -> None:
        """Take over the claim another session stored for ``claim_key``."""
        try:
            stored = await settings_service.get_settings(owner_id=self.owner_id)
        except PersistenceError as e:
            logger.warning("Could not reload settings after claim conflict: %s", e)
            return
        record = stored.claimed.get(claim_key)
        current = self._state.state.settings
        if record is None or current.is_claimed(claim_key):
            return
        adopted = current.model_copy(
            update={
                "claimed": {**current.claimed, claim_key: record},
                "bonus_xp": current.bonus_xp + record.base_reward_xp + record.bonus_xp,
            }
        )
        self._state.replace(replace(self._state.state, settings=adopted))
        self._sync_level()

    # ------------------------------------------------------------------
    # Level tracking
    # ------------------------------------------------------------------

    def _current_level(self) -> int:
        return compute_level(aggregation.total_xp(self.tasks, self.user_settings)).level

    def _sync_level(self) -> None:
        self._last_level = self._current_level()

    def _level_notifications(self) -> list[Notification]:
        level = self._current_level()
        previous = self._last_level
        self._last_level = level
        if level <= previous:
            return []

        state = compute_level(aggregation.total_xp(self.tasks, self.user_settings))
        log_with_user_context(
            logger, "info", "Level up", owner_id=self.owner_id, player_level=level, title=state.title
        )
        return [Notification(kind="ok", title="Level up!", description=f"Level {level}: {state.title}")]
