"""
Course session API routes.

Endpoints:
- POST /api/courses/{course_id}/open - Open a course and start counting
- POST /api/courses/{course_id}/position - Player position report
- POST /api/courses/{course_id}/close - Close a course (final flush)
- POST /api/sessions/activity - Interaction events from the page
- POST /api/sessions/stay-active - "Stay connected" from the warning prompt
- POST /api/sessions/logout - Explicit logout
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.catalog import CourseNotFoundError
from core.enums import LogoutType
from core.progress import ProgressStore, get_store
from core.progress.formatting import format_time
from core.session import (
    ActivityState,
    LearningSession,
    SessionNotFoundError,
    close_course,
    get_open_session,
    logout,
    open_course,
)
from web_api.auth import get_learner_id

router = APIRouter(prefix="/api", tags=["sessions"])


class ActivityReport(BaseModel):
    """Batch of DOM interaction event types, e.g. ["mousemove", "scroll"]."""

    events: list[str] = Field(default_factory=list)


class PositionReport(BaseModel):
    """Playback position reported by the media player."""

    positionS: float = Field(ge=0)


def serialize_activity(state: ActivityState) -> dict:
    return {
        "isActive": state.is_active,
        "phase": state.phase.value,
        "timeUntilForcedLogoutMs": state.time_until_forced_logout_ms,
    }


def serialize_session(session: LearningSession) -> dict:
    record = session.counter.snapshot()
    return {
        "sessionId": session.session_id,
        "courseId": session.course.id,
        "durationS": session.counter.duration_s,
        "isPaused": session.counter.is_paused,
        "elapsed": format_time(record.time_spent_s),
        "progress": record.to_dict(),
        "activity": serialize_activity(session.monitor.state),
    }


def _open_session_or_404(learner_id: str, course_id: str | None = None) -> LearningSession:
    try:
        return get_open_session(learner_id, course_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="No open course session")


# --- Course Session Endpoints ---


@router.post("/courses/{course_id}/open")
async def open_course_endpoint(
    course_id: str,
    learner_id: str = Depends(get_learner_id),
    store: ProgressStore = Depends(get_store),
):
    """Open a course. Closes the learner's previously open course first."""
    try:
        session = await open_course(learner_id, course_id, store)
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail=f"Course not found: {course_id}")
    return serialize_session(session)


@router.post("/courses/{course_id}/position")
async def report_position_endpoint(
    course_id: str,
    body: PositionReport,
    learner_id: str = Depends(get_learner_id),
):
    """Re-anchor the counter on the player's position (e.g. after a seek)."""
    session = _open_session_or_404(learner_id, course_id)
    session.report_position(body.positionS)
    return serialize_session(session)


@router.post("/courses/{course_id}/close")
async def close_course_endpoint(
    course_id: str,
    learner_id: str = Depends(get_learner_id),
):
    """Close a course. Returns the final record that was flushed."""
    try:
        record = await close_course(learner_id, course_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="No open course session")
    return {"courseId": course_id, "progress": record.to_dict()}


# --- Activity Endpoints ---


@router.post("/sessions/activity")
async def report_activity(
    body: ActivityReport,
    learner_id: str = Depends(get_learner_id),
):
    """Feed interaction events to the learner's activity monitor."""
    session = _open_session_or_404(learner_id)
    state = session.monitor.observe(body.events)
    return serialize_activity(state)


@router.post("/sessions/stay-active")
async def stay_active(learner_id: str = Depends(get_learner_id)):
    """Dismiss the inactivity warning."""
    session = _open_session_or_404(learner_id)
    session.monitor.stay_active()
    return serialize_activity(session.monitor.state)


@router.post("/sessions/logout")
async def logout_endpoint(
    learner_id: str = Depends(get_learner_id),
    store: ProgressStore = Depends(get_store),
):
    """Explicit logout: final flush of the open course, then end the session."""
    login_session = await logout(learner_id, store, LogoutType.explicit)
    return {
        "loggedOut": True,
        "durationS": login_session["duration_s"] if login_session else None,
    }
