"""
Course session engine.

A LearningSession binds one open course to an activity monitor, an
elapsed-time counter and the progress store:

- the monitor pauses the counter when the learner goes idle and resumes it
  on the next qualifying event
- tick() runs every second, flush() every 30 seconds (see core.session.scheduler)
- flushes are fire-and-forget: the tick loop never waits on a write
- close() and forced logout cancel both timers, then write the final
  snapshot; forced logout ends the learner's session only after that write

Write failures are logged and reported, never raised: the in-memory record
stays authoritative and the next flush carries it again.
"""

import asyncio
import logging
import time
import uuid
from typing import Awaitable, Callable

import sentry_sdk

from core.catalog.types import ContentUnit
from core.config import DEFAULT_COURSE_DURATION_S, FLUSH_INTERVAL_S, TICK_INTERVAL_S
from core.enums import ActivityPhase
from core.progress.store import ProgressStore
from core.progress.types import ProgressRecord

from .counter import ElapsedTimeCounter
from .monitor import ActivityMonitor, ActivityState
from .scheduler import cancel_session_timers, schedule_session_timers

logger = logging.getLogger(__name__)

# Track running tasks to prevent GC (asyncio only keeps weak references)
_running_tasks: set[asyncio.Task] = set()


def _task_done(task: asyncio.Task) -> None:
    """Callback to clean up completed tasks and log errors."""
    _running_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error("Session task %s failed: %s", task.get_name(), exc)
        sentry_sdk.capture_exception(exc)


def _spawn(coro: Awaitable, name: str) -> asyncio.Task:
    task = asyncio.ensure_future(coro)
    task.set_name(name)
    _running_tasks.add(task)
    task.add_done_callback(_task_done)
    return task


class LearningSession:
    def __init__(
        self,
        learner_id: str,
        course: ContentUnit,
        store: ProgressStore,
        *,
        monitor: ActivityMonitor | None = None,
        end_session: Callable[["LearningSession"], Awaitable[None]] | None = None,
        clock: Callable[[], float] = time.monotonic,
        tick_interval_s: float = TICK_INTERVAL_S,
        flush_interval_s: float = FLUSH_INTERVAL_S,
        default_duration_s: int = DEFAULT_COURSE_DURATION_S,
    ):
        self.session_id = uuid.uuid4().hex
        self.learner_id = learner_id
        self.course = course
        self.store = store
        self.monitor = monitor or ActivityMonitor(clock=clock)
        self.counter = ElapsedTimeCounter(
            course, clock=clock, default_duration_s=default_duration_s
        )
        self.closed = False
        self._end_session = end_session
        self._tick_interval_s = tick_interval_s
        self._flush_interval_s = flush_interval_s
        self._dispose: Callable[[], None] | None = None
        self._final_record: ProgressRecord | None = None
        self._final_write: asyncio.Task | None = None
        self._logout_task: asyncio.Task | None = None

    async def open(self) -> ProgressRecord:
        """Load persisted progress, start counting and schedule the timers."""
        try:
            persisted = await self.store.read_progress(self.learner_id, self.course.id)
        except Exception as e:
            # Starting from zero is safe: the store never lowers stored time
            logger.error(f"Could not read progress for course {self.course.id}: {e}")
            sentry_sdk.capture_exception(e)
            persisted = None

        self.counter.open(persisted)
        self._dispose = self.monitor.subscribe(self._on_activity_change)
        if not self.monitor.state.is_active:
            self.counter.pause()

        try:
            await self.store.write_last_opened(
                self.learner_id, self.course.formation_id, self.course.id
            )
        except Exception as e:
            logger.error(f"Could not record last opened course {self.course.id}: {e}")
            sentry_sdk.capture_exception(e)

        schedule_session_timers(
            self.session_id,
            self.tick,
            self.flush,
            tick_interval_s=self._tick_interval_s,
            flush_interval_s=self._flush_interval_s,
        )
        logger.info(
            f"Opened course {self.course.id} for learner {self.learner_id} "
            f"at {self.counter.elapsed_seconds()}s"
        )
        return self.counter.snapshot()

    async def tick(self) -> None:
        if self.closed:
            return
        self.monitor.tick()
        if not self.closed:
            self.counter.tick()

    async def flush(self) -> asyncio.Task | None:
        """Start writing the latest snapshot without waiting for it."""
        if self.closed or self.counter.is_paused:
            return None
        record = self.counter.snapshot()
        return _spawn(self._write(record), name=f"flush-{self.session_id}")

    def report_position(self, position_s: float) -> ProgressRecord:
        self.counter.report_position(position_s)
        return self.counter.snapshot()

    async def close(self) -> ProgressRecord:
        """Stop the timers and write the final snapshot. Safe to call twice."""
        if self._final_write is None:
            self._stop()
            self._final_record = self.counter.close()
            self._final_write = _spawn(
                self._write(self._final_record), name=f"final-flush-{self.session_id}"
            )
            logger.info(
                f"Closed course {self.course.id} for learner {self.learner_id} "
                f"at {self._final_record.time_spent_s}s"
            )
        await asyncio.shield(self._final_write)
        return self._final_record.copy()

    async def force_logout(self) -> None:
        """Final flush first, then end the learner's session."""
        await self.close()
        if self._end_session is not None:
            await self._end_session(self)

    def _stop(self) -> None:
        self.closed = True
        cancel_session_timers(self.session_id)
        if self._dispose is not None:
            self._dispose()
            self._dispose = None

    def _on_activity_change(self, state: ActivityState) -> None:
        if state.phase is ActivityPhase.forced_logout:
            if self._logout_task is None:
                # No late tick may run between here and the final flush
                cancel_session_timers(self.session_id)
                self.counter.pause(at=self._idle_since(state))
                self._logout_task = _spawn(
                    self.force_logout(), name=f"forced-logout-{self.session_id}"
                )
        elif state.is_active:
            self.counter.resume()
        else:
            self.counter.pause(at=self._idle_since(state))

    def _idle_since(self, state: ActivityState) -> float:
        """When the learner crossed into the warning window, even if no tick saw it."""
        monitor = self.monitor
        return state.last_activity_at + (monitor.inactivity_timeout_s - monitor.warning_window_s)

    async def _write(self, record: ProgressRecord) -> bool:
        try:
            await self.store.write_progress(self.learner_id, self.course.id, record)
            return True
        except Exception as e:
            logger.error(
                f"Progress write failed for course {self.course.id} "
                f"(learner {self.learner_id}): {e}"
            )
            sentry_sdk.capture_exception(e)
            return False
