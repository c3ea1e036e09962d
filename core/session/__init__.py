"""Activity monitoring, elapsed-time counting and open course sessions."""

from .counter import CounterNotOpenError, ElapsedTimeCounter, SessionTimerState, percent_for
from .engine import LearningSession
from .monitor import QUALIFYING_EVENTS, ActivityMonitor, ActivityState
from .registry import (
    SessionNotFoundError,
    close_all_sessions,
    close_course,
    get_open_session,
    logout,
    open_course,
)

__all__ = [
    "CounterNotOpenError",
    "ElapsedTimeCounter",
    "SessionTimerState",
    "percent_for",
    "LearningSession",
    "QUALIFYING_EVENTS",
    "ActivityMonitor",
    "ActivityState",
    "SessionNotFoundError",
    "close_all_sessions",
    "close_course",
    "get_open_session",
    "logout",
    "open_course",
]
