"""Deferred, debounced auto-navigation.

The preview iframe can report readiness several times in quick succession.
Each report re-arms one pending action instead of queueing another, and the
action re-checks its conditions when it fires, so the last observation wins.

// [LAW:single-enforcer] At most one pending auto-navigation per view-state machine.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class DeferredNavigation:
    """One-slot timer driven by an injectable clock.

    Nothing fires on its own: the owner calls poll() from its event loop
    (or a test advances the clock and polls).
    """

    def __init__(
        self,
        delay: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._delay = delay
        self._clock = clock
        self._action: Callable[[], None] | None = None
        self._due: float = 0.0

    @property
    def pending(self) -> bool:
        return self._action is not None

    @property
    def due_at(self) -> float | None:
        return self._due if self._action is not None else None

    def schedule(self, action: Callable[[], None]) -> None:
        """Arm action, replacing (and restarting the delay of) any pending one."""
        if self._action is not None:
            logger.debug("auto-navigation re-armed before firing")
        self._action = action
        self._due = self._clock() + self._delay

    def poll(self) -> bool:
        """Fire the pending action if due. Returns True when it fired."""
        if self._action is None or self._clock() < self._due:
            return False
        action = self._action
        self._action = None
        action()
        return True
