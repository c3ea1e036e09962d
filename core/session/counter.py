"""
Elapsed-time counter for one open course.

Elapsed time is never accumulated tick by tick. The counter keeps a
virtual start instant and derives elapsed = now - reference_start:

- open: reference_start = now - previously persisted time
- pause: remember when the pause started
- resume: move reference_start forward by the pause length, once
- position report: reference_start = now - reported position

time_spent_s in the record never decreases while the course is open,
even when a position report moves the playhead backwards.
"""

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from core.catalog.types import ContentUnit
from core.config import DEFAULT_COURSE_DURATION_S
from core.progress.types import ProgressRecord


def percent_for(time_spent_s: float, duration_s: int) -> float:
    if duration_s <= 0:
        return 0.0
    return min(100.0, time_spent_s / duration_s * 100)


@dataclass
class SessionTimerState:
    reference_start: float
    paused_at: float | None = None
    is_paused: bool = False


class CounterNotOpenError(Exception):
    """Raised when reading a counter that was never opened."""

    pass


class ElapsedTimeCounter:
    def __init__(
        self,
        course: ContentUnit,
        *,
        clock: Callable[[], float] = time.monotonic,
        default_duration_s: int = DEFAULT_COURSE_DURATION_S,
    ):
        self.course = course
        self.duration_s = course.duration_s or default_duration_s
        self._clock = clock
        self._timer: SessionTimerState | None = None
        self._record = ProgressRecord()
        self.closed = False

    @property
    def timer(self) -> SessionTimerState:
        if self._timer is None:
            raise CounterNotOpenError(f"Counter for {self.course.id} is not open")
        return self._timer

    @property
    def is_paused(self) -> bool:
        return self._timer is not None and self._timer.is_paused

    def open(self, persisted: ProgressRecord | None = None) -> None:
        base = persisted.copy() if persisted else ProgressRecord()
        self._record = base
        self._timer = SessionTimerState(reference_start=self._clock() - base.time_spent_s)
        self.closed = False

    def elapsed_seconds(self) -> int:
        timer = self.timer
        now = timer.paused_at if timer.is_paused else self._clock()
        return max(0, math.floor(now - timer.reference_start))

    def tick(self) -> ProgressRecord | None:
        """Recompute the in-memory record. No-op while paused or closed."""
        if self.closed or self._timer is None or self._timer.is_paused:
            return None
        self._apply(self.elapsed_seconds())
        return self._record.copy()

    def pause(self, at: float | None = None) -> None:
        """Pause counting. `at` backdates the pause, never past now."""
        if self.closed or self.is_paused:
            return
        timer = self.timer
        now = self._clock()
        timer.paused_at = now if at is None else min(at, now)
        timer.is_paused = True

    def resume(self) -> None:
        if self.closed or not self.is_paused:
            return
        timer = self.timer
        timer.reference_start += self._clock() - timer.paused_at
        timer.paused_at = None
        timer.is_paused = False

    def report_position(self, position_s: float) -> None:
        """Re-anchor on a position reported by the player (e.g. after a seek)."""
        if self.closed:
            return
        position_s = max(0.0, float(position_s))
        timer = self.timer
        anchor = timer.paused_at if timer.is_paused else self._clock()
        timer.reference_start = anchor - position_s
        self._record.last_position_s = int(position_s)

    def snapshot(self) -> ProgressRecord:
        """Latest record, recomputed unless paused or closed."""
        if not self.closed and self._timer is not None and not self._timer.is_paused:
            self._apply(self.elapsed_seconds())
        return self._record.copy()

    def close(self) -> ProgressRecord:
        """Compute the final record and stop accepting updates."""
        if not self.closed and self._timer is not None:
            self._apply(self.elapsed_seconds())
        self.closed = True
        return self._record.copy()

    def _apply(self, elapsed_s: int) -> None:
        time_spent = max(self._record.time_spent_s, elapsed_s)
        self._record.time_spent_s = time_spent
        self._record.percent_complete = percent_for(time_spent, self.duration_s)
        self._record.last_position_s = elapsed_s
        self._record.updated_at = datetime.now(timezone.utc)
