"""
Progress aggregation over the catalog hierarchy.

Every level (chapter, module, formation, common core) uses the same
formula over its flattened courses:

- duration-weighted when the courses have any known duration:
  min(100, time spent / total duration * 100)
- otherwise the mean of per-course percentages, capped at 100
- 0 for an empty set

The two branches are not numerically comparable; the mean is only a
fallback for subtrees with no duration metadata at all.
"""

import math
from typing import Iterable, Mapping

from core.catalog.types import Chapter, ContentUnit, Formation, Module, SubChapter
from core.config import QUIZ_UNLOCK_RATIO

from .types import EMPTY_SUMMARY, ProgressRecord, ProgressSummary

ProgressMap = Mapping[str, ProgressRecord]


def aggregate(units: Iterable[ContentUnit], progress_by_course: ProgressMap) -> ProgressSummary:
    """
    Aggregate progress over a set of courses.

    Pure function: reads the progress map, never mutates it.

    Args:
        units: Courses to aggregate (any hierarchy level, already flattened)
        progress_by_course: course_id -> ProgressRecord (missing means no progress)

    Returns:
        ProgressSummary with the raw percentage
    """
    units = list(units)
    if not units:
        return EMPTY_SUMMARY

    total_duration = 0
    total_time_spent = 0
    total_percent = 0.0

    for unit in units:
        record = progress_by_course.get(unit.id)
        total_duration += unit.duration_s or 0
        if record is not None:
            total_time_spent += record.time_spent_s
            total_percent += record.percent_complete

    if total_duration > 0:
        percent = min(100.0, total_time_spent / total_duration * 100)
    else:
        percent = min(100.0, total_percent / len(units))

    return ProgressSummary(
        percent_complete=percent,
        time_spent_s=total_time_spent,
        total_duration_s=total_duration,
    )


def sub_chapter_progress(sub_chapter: SubChapter, progress_by_course: ProgressMap) -> ProgressSummary:
    return aggregate(sub_chapter.courses, progress_by_course)


def chapter_progress(chapter: Chapter, progress_by_course: ProgressMap) -> ProgressSummary:
    return aggregate(chapter.all_courses(), progress_by_course)


def module_progress(module: Module, progress_by_course: ProgressMap) -> ProgressSummary:
    return aggregate(module.all_courses(), progress_by_course)


def formation_progress(formation: Formation, progress_by_course: ProgressMap) -> ProgressSummary:
    return aggregate(formation.all_courses(), progress_by_course)


def common_core_progress(
    formation: Formation, progress_by_course: ProgressMap
) -> ProgressSummary | None:
    """Aggregate over the common-core modules only.

    Returns None when the formation has no common-core module, so callers
    can tell "no common core" apart from "common core at 0%".
    """
    modules = [m for m in formation.modules if m.is_common_core]
    if not modules:
        return None
    return aggregate(
        [course for module in modules for course in module.all_courses()],
        progress_by_course,
    )


def required_seconds_for_quiz(module: Module, unlock_ratio: float = QUIZ_UNLOCK_RATIO) -> int:
    """Time a learner must spend in a module before its quiz unlocks."""
    if module.required_s is not None:
        return module.required_s
    total_duration = sum(course.duration_s or 0 for course in module.all_courses())
    return math.floor(total_duration * unlock_ratio)


def is_module_quiz_unlocked(
    module: Module,
    progress_by_course: ProgressMap,
    unlock_ratio: float = QUIZ_UNLOCK_RATIO,
) -> bool:
    summary = module_progress(module, progress_by_course)
    return summary.time_spent_s >= required_seconds_for_quiz(module, unlock_ratio)


def formation_breakdown(formation: Formation, progress_by_course: ProgressMap) -> dict:
    """
    Build the full progress tree for a formation.

    Returns:
        Dict with formation-level, common-core and per-module/chapter/sub-chapter
        summaries, ready to serialize.
    """
    common_core = common_core_progress(formation, progress_by_course)
    modules = []
    for module in formation.modules:
        chapters = []
        for chapter in module.chapters:
            chapter_data = {
                "id": chapter.id,
                "title": chapter.title,
                "progress": chapter_progress(chapter, progress_by_course).to_dict(),
                "subChapters": [
                    {
                        "id": sub.id,
                        "title": sub.title,
                        "progress": sub_chapter_progress(sub, progress_by_course).to_dict(),
                    }
                    for sub in chapter.sub_chapters
                ],
            }
            chapters.append(chapter_data)

        modules.append(
            {
                "id": module.id,
                "title": module.title,
                "isCommonCore": module.is_common_core,
                "progress": module_progress(module, progress_by_course).to_dict(),
                "quizUnlocked": is_module_quiz_unlocked(module, progress_by_course),
                "chapters": chapters,
            }
        )

    return {
        "formation": {"id": formation.id, "title": formation.title},
        "progress": formation_progress(formation, progress_by_course).to_dict(),
        "commonCore": common_core.to_dict() if common_core else None,
        "modules": modules,
    }
