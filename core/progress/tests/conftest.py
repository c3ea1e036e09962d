# core/progress/tests/conftest.py
"""Fixtures for progress tests: small in-code catalogs."""

import pytest
from datetime import datetime

from core.catalog import clear_cache, set_cache
from core.catalog.cache import CatalogCache
from core.catalog.types import Chapter, ContentUnit, Formation, Module


def make_course(course_id, duration_s=0, *, module_id="m1", formation_id="f1"):
    return ContentUnit(
        id=course_id,
        title=course_id.upper(),
        formation_id=formation_id,
        module_id=module_id,
        chapter_id=f"{module_id}-ch",
        duration_s=duration_s,
    )


def make_module(module_id, courses, *, common_core=False, required_s=None):
    return Module(
        id=module_id,
        title=module_id,
        chapters=[Chapter(id=f"{module_id}-ch", title="Chapter", courses=courses)],
        is_common_core=common_core,
        required_s=required_s,
    )


@pytest.fixture
def formation():
    """Formation f1: common-core module m1 (a, b, c) and module m2 (d, e)."""
    m1 = make_module(
        "m1",
        [make_course("a", 100), make_course("b", 200), make_course("c", 300)],
        common_core=True,
    )
    m2 = make_module(
        "m2",
        [make_course("d", 300, module_id="m2"), make_course("e", 300, module_id="m2")],
    )
    return Formation(id="f1", title="Formation 1", modules=[m1, m2])


@pytest.fixture
def catalog(formation):
    set_cache(CatalogCache(formations={formation.id: formation}, last_refreshed=datetime.now()))
    yield formation
    clear_cache()
