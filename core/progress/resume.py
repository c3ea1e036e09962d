"""Pick the course a learner lands on when re-entering a formation."""

import logging
from typing import Mapping

from core.catalog.navigation import flatten_formation
from core.catalog.types import ContentUnit

from .store import ProgressStore
from .types import ProgressRecord

logger = logging.getLogger(__name__)


def select_resume_unit(
    formation_id: str,
    progress_by_course: Mapping[str, ProgressRecord],
    last_opened_course_id: str | None = None,
) -> ContentUnit | None:
    """
    Select the course to resume.

    Priority:
    1. The last opened course, if it is still in the formation
    2. The first course (flattened order) below 100%
    3. The first course (everything is complete, start over)
    4. None if the formation has no courses
    """
    courses = flatten_formation(formation_id)
    if not courses:
        return None

    if last_opened_course_id:
        last = next((c for c in courses if c.id == last_opened_course_id), None)
        if last is not None:
            return last
        logger.info(
            f"Last opened course {last_opened_course_id} no longer in formation "
            f"{formation_id}, falling back"
        )

    for course in courses:
        record = progress_by_course.get(course.id)
        percent = record.percent_complete if record else 0.0
        if percent < 100:
            return course

    return courses[0]


async def resolve_resume_unit(
    store: ProgressStore, learner_id: str, formation_id: str
) -> ContentUnit | None:
    """Read the learner's progress and last-opened pointer, then select."""
    courses = flatten_formation(formation_id)
    progress = await store.read_progress_map(learner_id, [c.id for c in courses])
    last_opened = await store.read_last_opened(learner_id, formation_id)
    return select_resume_unit(formation_id, progress, last_opened)
