"""Content catalog: formations, modules, chapters and courses."""

from .cache import (
    CatalogCache,
    CatalogNotInitializedError,
    clear_cache,
    get_cache,
    set_cache,
)
from .loader import load_catalog, parse_formation, refresh_catalog
from .navigation import (
    CourseNotFoundError,
    FormationNotFoundError,
    flatten_formation,
    get_breadcrumb,
    get_course,
    get_hierarchy_node,
    get_module,
    get_next_prev_course,
    load_formation,
)
from .types import Chapter, ContentUnit, Formation, HierarchyNode, Module, SubChapter

__all__ = [
    "CatalogCache",
    "CatalogNotInitializedError",
    "clear_cache",
    "get_cache",
    "set_cache",
    "load_catalog",
    "parse_formation",
    "refresh_catalog",
    "CourseNotFoundError",
    "FormationNotFoundError",
    "flatten_formation",
    "get_breadcrumb",
    "get_course",
    "get_hierarchy_node",
    "get_module",
    "get_next_prev_course",
    "load_formation",
    "Chapter",
    "ContentUnit",
    "Formation",
    "HierarchyNode",
    "Module",
    "SubChapter",
]
