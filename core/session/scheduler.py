"""
APScheduler-based timers for open course sessions.

Each open session has two interval jobs:
- session_{id}_tick: every TICK_INTERVAL_S, drives the activity monitor and counter
- session_{id}_flush: every FLUSH_INTERVAL_S, writes the latest snapshot

Timer state is ephemeral, so the scheduler runs without a job store.
"""

import fnmatch
import logging
from typing import Awaitable, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import FLUSH_INTERVAL_S, TICK_INTERVAL_S

logger = logging.getLogger(__name__)


_scheduler: AsyncIOScheduler | None = None


# =============================================================================
# Scheduler initialization and shutdown
# =============================================================================


def init_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the scheduler.

    Call this during app startup (in FastAPI lifespan).
    """
    global _scheduler

    if _scheduler is not None:
        return _scheduler

    _scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,  # A late tick recomputes from the clock anyway
            "max_instances": 1,
            "misfire_grace_time": 5,
        },
    )
    _scheduler.start()
    logger.info("Session timer scheduler started")
    return _scheduler


def shutdown_scheduler() -> None:
    """
    Shutdown the scheduler.

    Call this during app shutdown, after open sessions have been closed.
    """
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Session timer scheduler stopped")


# =============================================================================
# Session timers
# =============================================================================


def schedule_session_timers(
    session_id: str,
    tick: Callable[[], Awaitable[None]],
    flush: Callable[[], Awaitable[object]],
    *,
    tick_interval_s: float = TICK_INTERVAL_S,
    flush_interval_s: float = FLUSH_INTERVAL_S,
) -> bool:
    """
    Schedule the tick and flush jobs for a session.

    Args:
        session_id: Session identifier, used in job ids
        tick: Coroutine function run every tick_interval_s
        flush: Coroutine function run every flush_interval_s
        tick_interval_s: Tick period in seconds
        flush_interval_s: Flush period in seconds

    Returns:
        True if the jobs were scheduled, False if the scheduler is not running
    """
    if not _scheduler:
        logger.warning(f"Scheduler not initialized, cannot schedule timers for session {session_id}")
        return False

    _scheduler.add_job(
        tick,
        trigger="interval",
        seconds=tick_interval_s,
        id=f"session_{session_id}_tick",
        replace_existing=True,
    )
    _scheduler.add_job(
        flush,
        trigger="interval",
        seconds=flush_interval_s,
        id=f"session_{session_id}_flush",
        replace_existing=True,
    )
    logger.info(f"Scheduled timers for session {session_id}")
    return True


def cancel_jobs(pattern: str) -> int:
    """
    Cancel scheduled jobs matching a pattern.

    Args:
        pattern: Glob pattern to match job IDs (e.g., "session_abc_*")

    Returns:
        Number of jobs cancelled
    """
    if not _scheduler:
        return 0

    cancelled = 0
    for job in _scheduler.get_jobs():
        if fnmatch.fnmatch(job.id, pattern):
            try:
                job.remove()
            except JobLookupError:
                continue  # Already gone
            cancelled += 1

    return cancelled


def cancel_session_timers(session_id: str) -> int:
    return cancel_jobs(f"session_{session_id}_*")
