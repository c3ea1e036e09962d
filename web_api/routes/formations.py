"""
Formation API routes.

Endpoints:
- GET /api/formations/{formation_id}/progress - Progress tree for a formation
- GET /api/formations/{formation_id}/resume - Course to resume
- GET /api/formations/{formation_id}/modules/{module_id}/quiz-unlocked - Quiz gate
- GET /api/courses/{course_id}/navigation - Previous/next course
"""

import logging

import sentry_sdk
from fastapi import APIRouter, Depends, HTTPException, Query

from core.catalog import (
    FormationNotFoundError,
    get_breadcrumb,
    get_course,
    get_module,
    get_next_prev_course,
    load_formation,
)
from core.catalog.types import ContentUnit
from core.progress import (
    PersistenceError,
    ProgressStore,
    formation_breakdown,
    get_store,
    is_module_quiz_unlocked,
    module_progress,
    required_seconds_for_quiz,
    resolve_resume_unit,
)
from core.progress.formatting import format_time_readable
from web_api.auth import get_learner_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["formations"])


def serialize_course(course: ContentUnit | None) -> dict | None:
    if course is None:
        return None
    return {
        "id": course.id,
        "title": course.title,
        "formationId": course.formation_id,
        "moduleId": course.module_id,
        "chapterId": course.chapter_id,
        "subChapterId": course.sub_chapter_id,
        "durationS": course.duration_s,
    }


async def _read_progress_map(store: ProgressStore, learner_id: str, course_ids: list[str]):
    try:
        return await store.read_progress_map(learner_id, course_ids)
    except PersistenceError as e:
        logger.error(f"Progress read failed for learner {learner_id}: {e}")
        sentry_sdk.capture_exception(e)
        raise HTTPException(503, "Progress is temporarily unavailable")


# --- Formation Endpoints ---


@router.get("/formations/{formation_id}/progress")
async def get_formation_progress(
    formation_id: str,
    learner_id: str = Depends(get_learner_id),
    store: ProgressStore = Depends(get_store),
):
    """Get formation, common-core, module, chapter and sub-chapter progress."""
    try:
        formation = load_formation(formation_id)
    except FormationNotFoundError:
        raise HTTPException(status_code=404, detail=f"Formation not found: {formation_id}")

    course_ids = [c.id for c in formation.all_courses()]
    progress = await _read_progress_map(store, learner_id, course_ids)

    result = formation_breakdown(formation, progress)
    result["timeSpentReadable"] = format_time_readable(result["progress"]["timeSpentS"])
    return result


@router.get("/formations/{formation_id}/resume")
async def get_resume_course(
    formation_id: str,
    learner_id: str = Depends(get_learner_id),
    store: ProgressStore = Depends(get_store),
):
    """Get the course to land on when re-entering a formation.

    Returns:
        {"course": ...} or {"course": null} when the formation has no courses
    """
    try:
        load_formation(formation_id)
    except FormationNotFoundError:
        raise HTTPException(status_code=404, detail=f"Formation not found: {formation_id}")

    try:
        course = await resolve_resume_unit(store, learner_id, formation_id)
    except PersistenceError as e:
        logger.error(f"Resume lookup failed for learner {learner_id}: {e}")
        sentry_sdk.capture_exception(e)
        raise HTTPException(503, "Progress is temporarily unavailable")

    return {"course": serialize_course(course)}


@router.get("/formations/{formation_id}/modules/{module_id}/quiz-unlocked")
async def get_quiz_unlocked(
    formation_id: str,
    module_id: str,
    learner_id: str = Depends(get_learner_id),
    store: ProgressStore = Depends(get_store),
):
    """Whether the learner has spent enough time in a module to take its quiz."""
    try:
        formation = load_formation(formation_id)
    except FormationNotFoundError:
        raise HTTPException(status_code=404, detail=f"Formation not found: {formation_id}")

    module = get_module(formation, module_id)
    if module is None:
        raise HTTPException(status_code=404, detail=f"Module not found: {module_id}")

    progress = await _read_progress_map(store, learner_id, [c.id for c in module.all_courses()])
    return {
        "moduleId": module.id,
        "unlocked": is_module_quiz_unlocked(module, progress),
        "requiredS": required_seconds_for_quiz(module),
        "timeSpentS": module_progress(module, progress).time_spent_s,
    }


# --- Course Navigation ---


@router.get("/courses/{course_id}/navigation")
async def get_course_navigation(
    course_id: str,
    formation_id: str | None = Query(None, alias="formationId"),
):
    """Get the previous and next course around a course, in flattened order."""
    course = get_course(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail=f"Course not found: {course_id}")

    prev_course, next_course = get_next_prev_course(course_id, formation_id or course.formation_id)
    return {
        "course": serialize_course(course),
        "breadcrumb": get_breadcrumb(course),
        "previous": serialize_course(prev_course),
        "next": serialize_course(next_course),
    }
