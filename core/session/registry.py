"""
Open course sessions, one per learner.

Opening a course closes the learner's previous one first (navigating away
is a close). Forced logout removes the session and logs a "timeout"
logout once its final flush is done.

open_course, close_course, logout and the timeout hook run under a
per-learner asyncio.Lock, so concurrent requests for one learner never
leave two sessions counting.
"""

import asyncio
import logging

import sentry_sdk

from core.catalog.navigation import CourseNotFoundError, get_course
from core.enums import LogoutType
from core.progress.store import ProgressStore
from core.progress.types import ProgressRecord

from .engine import LearningSession

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised when a learner has no open course session."""

    pass


_open_sessions: dict[str, LearningSession] = {}
_learner_locks: dict[str, asyncio.Lock] = {}


def _lock_for(learner_id: str) -> asyncio.Lock:
    lock = _learner_locks.get(learner_id)
    if lock is None:
        lock = _learner_locks[learner_id] = asyncio.Lock()
    return lock


async def _ensure_logged_in(store: ProgressStore, learner_id: str) -> None:
    """Start a login session if the learner has none (e.g. after a reload)."""
    try:
        if await store.get_active_session(learner_id) is None:
            await store.log_login(learner_id)
    except Exception as e:
        logger.error(f"Could not record login for learner {learner_id}: {e}")
        sentry_sdk.capture_exception(e)


async def _end_timed_out_session(session: LearningSession) -> None:
    async with _lock_for(session.learner_id):
        if _open_sessions.get(session.learner_id) is not session:
            # Replaced or closed meanwhile
            return
        del _open_sessions[session.learner_id]
        try:
            await session.store.log_logout(session.learner_id, LogoutType.timeout)
        except Exception as e:
            logger.error(f"Could not record timeout logout for learner {session.learner_id}: {e}")
            sentry_sdk.capture_exception(e)


async def open_course(learner_id: str, course_id: str, store: ProgressStore) -> LearningSession:
    """
    Open a course for a learner.

    Args:
        learner_id: Learner identifier
        course_id: Course to open
        store: Progress store for reads and flushes

    Returns:
        The new, already opened LearningSession

    Raises:
        CourseNotFoundError: If the course is not in the catalog
    """
    course = get_course(course_id)
    if course is None:
        raise CourseNotFoundError(f"Course not found: {course_id}")

    async with _lock_for(learner_id):
        previous = _open_sessions.pop(learner_id, None)
        if previous is not None:
            await previous.close()

        await _ensure_logged_in(store, learner_id)

        session = LearningSession(
            learner_id, course, store, end_session=_end_timed_out_session
        )
        _open_sessions[learner_id] = session
        await session.open()
        return session


def get_open_session(learner_id: str, course_id: str | None = None) -> LearningSession:
    session = _open_sessions.get(learner_id)
    if session is None or (course_id is not None and session.course.id != course_id):
        raise SessionNotFoundError(f"No open session for learner {learner_id}")
    return session


async def close_course(learner_id: str, course_id: str | None = None) -> ProgressRecord:
    async with _lock_for(learner_id):
        session = get_open_session(learner_id, course_id)
        del _open_sessions[learner_id]
        return await session.close()


async def logout(
    learner_id: str,
    store: ProgressStore,
    logout_type: LogoutType = LogoutType.explicit,
) -> dict | None:
    """Close the learner's open course (final flush), then log the logout."""
    async with _lock_for(learner_id):
        session = _open_sessions.pop(learner_id, None)
        if session is not None:
            await session.close()

        try:
            return await store.log_logout(learner_id, logout_type)
        except Exception as e:
            logger.error(f"Could not record logout for learner {learner_id}: {e}")
            sentry_sdk.capture_exception(e)
            return None


async def close_all_sessions() -> int:
    """Close every open session. Call during app shutdown."""
    closed = 0
    while _open_sessions:
        _, session = _open_sessions.popitem()
        await session.close()
        closed += 1
    return closed
