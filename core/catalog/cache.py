"""In-process catalog cache.

The catalog is static at runtime: it is loaded once at startup (or on an
explicit refresh) and read everywhere else through get_cache().
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .types import ContentUnit, Formation

logger = logging.getLogger(__name__)


class CatalogNotInitializedError(Exception):
    """Raised when the catalog is read before it has been loaded."""

    pass


@dataclass
class CatalogCache:
    formations: dict[str, Formation]
    last_refreshed: datetime
    courses: dict[str, ContentUnit] = field(default_factory=dict)

    def __post_init__(self):
        if not self.courses:
            for formation in self.formations.values():
                for course in formation.all_courses():
                    existing = self.courses.get(course.id)
                    if existing is not None:
                        logger.warning(
                            f"Duplicate course {course.id} in formations "
                            f"{existing.formation_id} and {course.formation_id}, "
                            f"keeping {course.formation_id}"
                        )
                    self.courses[course.id] = course


_cache: CatalogCache | None = None


def get_cache() -> CatalogCache:
    if _cache is None:
        raise CatalogNotInitializedError("Catalog has not been loaded")
    return _cache


def set_cache(cache: CatalogCache) -> None:
    global _cache
    _cache = cache


def clear_cache() -> None:
    global _cache
    _cache = None
