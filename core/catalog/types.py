"""
Type definitions for the content catalog.

Hierarchy: formation -> module -> chapter -> (sub-chapter) -> course.
A chapter holds either sub-chapters or courses, never both.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ContentUnit:
    """A course: the leaf a learner opens and spends time on."""

    id: str
    title: str
    formation_id: str
    module_id: str
    chapter_id: str
    sub_chapter_id: str | None = None
    duration_s: int = 0  # 0 when the catalog has no duration


@dataclass
class SubChapter:
    id: str
    title: str
    courses: list[ContentUnit] = field(default_factory=list)


@dataclass
class Chapter:
    id: str
    title: str
    courses: list[ContentUnit] = field(default_factory=list)
    sub_chapters: list[SubChapter] = field(default_factory=list)

    def all_courses(self) -> list[ContentUnit]:
        """Courses in declared order, read from sub-chapters when there are any."""
        if self.sub_chapters:
            return [course for sub in self.sub_chapters for course in sub.courses]
        return list(self.courses)


@dataclass
class Module:
    id: str
    title: str
    chapters: list[Chapter] = field(default_factory=list)
    is_common_core: bool = False
    required_s: int | None = None  # time needed to unlock the module quiz

    def all_courses(self) -> list[ContentUnit]:
        return [course for chapter in self.chapters for course in chapter.all_courses()]


@dataclass
class Formation:
    id: str
    title: str
    modules: list[Module] = field(default_factory=list)

    def all_courses(self) -> list[ContentUnit]:
        return [course for module in self.modules for course in module.all_courses()]


HierarchyNode = Formation | Module | Chapter | SubChapter
