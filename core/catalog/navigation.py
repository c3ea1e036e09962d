# core/catalog/navigation.py
"""Look up catalog entities and walk formations in flattened order."""

from .cache import get_cache
from .types import Chapter, ContentUnit, Formation, HierarchyNode, Module, SubChapter


class FormationNotFoundError(Exception):
    """Raised when a formation cannot be found."""

    pass


class CourseNotFoundError(Exception):
    """Raised when a course cannot be found."""

    pass


def load_formation(formation_id: str) -> Formation:
    """Load a formation by id from the cache."""
    cache = get_cache()

    if formation_id not in cache.formations:
        raise FormationNotFoundError(f"Formation not found: {formation_id}")

    return cache.formations[formation_id]


def get_course(course_id: str) -> ContentUnit | None:
    """Get a course with its parent pointers, or None if not in the catalog."""
    return get_cache().courses.get(course_id)


def flatten_formation(formation_id: str) -> list[ContentUnit]:
    """Get all courses of a formation in flattened order.

    Order is depth-first: modules, chapters, sub-chapters (when the chapter
    has any), then courses. Unknown formations have no courses.
    """
    try:
        formation = load_formation(formation_id)
    except FormationNotFoundError:
        return []
    return formation.all_courses()


def get_hierarchy_node(node_id: str) -> HierarchyNode | None:
    """Find a formation, module, chapter or sub-chapter by id."""
    cache = get_cache()
    if node_id in cache.formations:
        return cache.formations[node_id]

    for formation in cache.formations.values():
        for module in formation.modules:
            if module.id == node_id:
                return module
            for chapter in module.chapters:
                if chapter.id == node_id:
                    return chapter
                for sub_chapter in chapter.sub_chapters:
                    if sub_chapter.id == node_id:
                        return sub_chapter
    return None


def get_module(formation: Formation, module_id: str) -> Module | None:
    return next((m for m in formation.modules if m.id == module_id), None)


def get_next_prev_course(
    course_id: str, formation_id: str
) -> tuple[ContentUnit | None, ContentUnit | None]:
    """Get the courses before and after a course in flattened order.

    Returns:
        (previous, next). Both None when the course is not in the formation.
    """
    courses = flatten_formation(formation_id)
    index = next((i for i, c in enumerate(courses) if c.id == course_id), None)
    if index is None:
        return None, None

    prev_course = courses[index - 1] if index > 0 else None
    next_course = courses[index + 1] if index < len(courses) - 1 else None
    return prev_course, next_course


def get_breadcrumb(course: ContentUnit) -> list[str]:
    """Titles from formation down to the course, e.g. for page headers."""
    path = []
    formation = get_cache().formations.get(course.formation_id)
    if formation is None:
        return [course.title]
    path.append(formation.title)

    module = get_module(formation, course.module_id)
    chapter: Chapter | None = None
    if module:
        path.append(module.title)
        chapter = next((c for c in module.chapters if c.id == course.chapter_id), None)
    if chapter:
        path.append(chapter.title)
        if course.sub_chapter_id:
            sub_chapter: SubChapter | None = next(
                (s for s in chapter.sub_chapters if s.id == course.sub_chapter_id), None
            )
            if sub_chapter:
                path.append(sub_chapter.title)

    path.append(course.title)
    return path
