"""Progress records, aggregation, resume selection and persistence."""

from .aggregation import (
    aggregate,
    chapter_progress,
    common_core_progress,
    formation_breakdown,
    formation_progress,
    is_module_quiz_unlocked,
    module_progress,
    required_seconds_for_quiz,
    sub_chapter_progress,
)
from .formatting import format_time, format_time_readable
from .resume import resolve_resume_unit, select_resume_unit
from .store import (
    MemoryProgressStore,
    PersistenceError,
    ProgressStore,
    SqlProgressStore,
    get_store,
    set_store,
)
from .types import EMPTY_SUMMARY, ProgressRecord, ProgressSummary

__all__ = [
    "aggregate",
    "chapter_progress",
    "common_core_progress",
    "formation_breakdown",
    "formation_progress",
    "is_module_quiz_unlocked",
    "module_progress",
    "required_seconds_for_quiz",
    "sub_chapter_progress",
    "format_time",
    "format_time_readable",
    "resolve_resume_unit",
    "select_resume_unit",
    "MemoryProgressStore",
    "PersistenceError",
    "ProgressStore",
    "SqlProgressStore",
    "get_store",
    "set_store",
    "EMPTY_SUMMARY",
    "ProgressRecord",
    "ProgressSummary",
]
