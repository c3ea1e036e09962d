"""
Inactivity detection.

States:
- active: initial state. Moves to warning once the learner has been idle
  for (timeout - warning window).
- warning: is_active is False and a countdown runs from the warning window
  down to 0, one step per second. Any qualifying event or stay_active()
  goes back to active.
- forced_logout: terminal. Reached when the countdown hits 0.

The idle delay is always measured from the latest qualifying event, so an
event during the warning window re-arms the full delay from that moment.

The monitor does not own a timer: whoever drives it calls tick() once per
second (see core.session.engine).
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Iterable

import sentry_sdk

from core.config import INACTIVITY_TIMEOUT_S, INACTIVITY_WARNING_S
from core.enums import ActivityPhase

logger = logging.getLogger(__name__)

QUALIFYING_EVENTS = frozenset(
    {
        "mousedown",
        "mousemove",
        "keypress",
        "keydown",
        "scroll",
        "touchstart",
        "click",
        "wheel",
    }
)


@dataclass(frozen=True)
class ActivityState:
    last_activity_at: float
    is_active: bool
    time_until_forced_logout_ms: int | None
    phase: ActivityPhase


Listener = Callable[[ActivityState], None]


class ActivityMonitor:
    def __init__(
        self,
        inactivity_timeout_s: float = INACTIVITY_TIMEOUT_S,
        warning_window_s: float = INACTIVITY_WARNING_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        if warning_window_s > inactivity_timeout_s:
            raise ValueError("Warning window cannot be longer than the inactivity timeout")

        self.inactivity_timeout_s = inactivity_timeout_s
        self.warning_window_s = warning_window_s
        self._clock = clock
        self._last_activity_at = clock()
        self._phase = ActivityPhase.active
        self._countdown_ms: int | None = None
        self._listeners: list[Listener] = []

    @property
    def state(self) -> ActivityState:
        return ActivityState(
            last_activity_at=self._last_activity_at,
            is_active=self._phase is ActivityPhase.active,
            time_until_forced_logout_ms=self._countdown_ms,
            phase=self._phase,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state-change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    def record_activity(self, event_type: str) -> bool:
        """Handle an interaction event. Returns True if it counted as activity."""
        if event_type not in QUALIFYING_EVENTS:
            return False
        if self._phase is ActivityPhase.forced_logout:
            return False
        self._reset()
        return True

    def stay_active(self) -> None:
        """Explicit "stay connected" from the warning prompt."""
        if self._phase is ActivityPhase.forced_logout:
            return
        self._reset()

    def observe(self, events: Iterable[str]) -> ActivityState:
        """Feed a batch of interaction events, then evaluate the timeout."""
        for event_type in events:
            self.record_activity(event_type)
        return self.tick()

    def tick(self) -> ActivityState:
        """Re-evaluate the state against the clock."""
        if self._phase is ActivityPhase.forced_logout:
            return self.state

        idle_s = self._clock() - self._last_activity_at
        warn_after_s = self.inactivity_timeout_s - self.warning_window_s
        if idle_s < warn_after_s:
            return self.state

        if idle_s >= self.inactivity_timeout_s:
            self._phase = ActivityPhase.forced_logout
            self._countdown_ms = 0
            logger.info("Inactivity timeout reached, forcing logout")
            self._notify()
            return self.state

        # Steps down once per whole second spent in the warning window
        elapsed_in_warning = math.floor(idle_s - warn_after_s)
        countdown_ms = int((self.warning_window_s - elapsed_in_warning) * 1000)
        if self._phase is not ActivityPhase.warning or countdown_ms != self._countdown_ms:
            self._phase = ActivityPhase.warning
            self._countdown_ms = countdown_ms
            self._notify()
        return self.state

    def _reset(self) -> None:
        was_inactive = self._phase is not ActivityPhase.active
        self._last_activity_at = self._clock()
        self._phase = ActivityPhase.active
        self._countdown_ms = None
        if was_inactive:
            self._notify()

    def _notify(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Activity listener failed: {e}")
                sentry_sdk.capture_exception(e)
