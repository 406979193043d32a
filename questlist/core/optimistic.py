"""Optimistic update with deterministic rollback.

Every mutating action follows the same steps: compute the next state
synchronously, apply it, await the remote write, and undo the change if the
write fails.

The undo is the action's own inverse applied to the state current at the
time of failure, not a snapshot from before the await. Other actions that
completed while the write was pending keep their effect.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from questlist.core.errors import ConflictError, PersistenceError


logger = logging.getLogger(__name__)

S = TypeVar("S")


@dataclass(frozen=True)
class AttemptResult(Generic[S]):
    """Outcome of an optimistic attempt: the state now in effect, and the error if rolled back."""

    state: S
    error: PersistenceError | ConflictError | None = None

    @property
    def ok(self) -> bool:
        """True when the remote write succeeded."""
        return self.error is None


class OptimisticState(Generic[S]):
    """Holds the last applied state and performs optimistic attempts against it."""

    def __init__(self, initial: S) -> None:
        self._state = initial

    @property
    def state(self) -> S:
        """Current in-memory state."""
        return self._state

    def replace(self, state: S) -> None:
        """Replace the state with a freshly loaded, confirmed value."""
        self._state = state

    async def attempt(
        self,
        mutator: Callable[[S], S],
        remote_write: Callable[[S, S], Awaitable[None]],
        *,
        revert: Callable[[S], S],
        operation: str,
    ) -> AttemptResult[S]:
        """Apply ``mutator`` locally, then persist with ``remote_write(prior, new)``.

        If the write fails, ``revert`` is applied to the current state. It must
        undo only what ``mutator`` changed.

        Returns:
            AttemptResult with the new state, or the reverted state and the error
        """
        prior = self._state
        new = mutator(prior)
        if new is prior:
            return AttemptResult(state=prior)

        self._state = new
        try:
            await remote_write(prior, new)
        except (PersistenceError, ConflictError) as e:
            self._state = revert(self._state)
            logger.warning(
                "Rolled back optimistic update",
                extra={"operation": operation, "error": str(e), "error_type": type(e).__name__},
            )
            return AttemptResult(state=self._state, error=e)
        except Exception:
            self._state = revert(self._state)
            raise

        return AttemptResult(state=self._state)
