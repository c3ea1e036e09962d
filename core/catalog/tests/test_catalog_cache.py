"""Tests for the catalog cache."""

import logging

import pytest
from datetime import datetime

from core.catalog.cache import (
    CatalogCache,
    CatalogNotInitializedError,
    clear_cache,
    get_cache,
    set_cache,
)
from core.catalog.loader import parse_formation


class TestCatalogCache:
    def setup_method(self):
        clear_cache()

    def teardown_method(self):
        clear_cache()

    def test_get_cache_raises_when_not_initialized(self):
        with pytest.raises(CatalogNotInitializedError):
            get_cache()

    def test_set_and_get_cache(self):
        cache = CatalogCache(formations={}, last_refreshed=datetime.now())
        set_cache(cache)

        assert get_cache() is cache

    def test_clear_cache(self):
        set_cache(CatalogCache(formations={}, last_refreshed=datetime.now()))
        clear_cache()

        with pytest.raises(CatalogNotInitializedError):
            get_cache()

    def test_builds_course_index(self, formation_data):
        formation = parse_formation(formation_data)
        cache = CatalogCache(formations={formation.id: formation}, last_refreshed=datetime.now())

        assert cache.courses["c3"].title == "Course 3"
        assert len(cache.courses) == 6


def _one_course_formation(formation_id, course_id):
    return {
        "id": formation_id,
        "modules": [
            {"id": "m", "chapters": [{"id": "ch", "courses": [{"id": course_id}]}]}
        ],
    }


def test_duplicate_course_ids_are_logged(caplog):
    first = parse_formation(_one_course_formation("f1", "shared"))
    second = parse_formation(_one_course_formation("f2", "shared"))

    with caplog.at_level(logging.WARNING):
        cache = CatalogCache(
            formations={"f1": first, "f2": second}, last_refreshed=datetime.now()
        )

    assert cache.courses["shared"].formation_id == "f2"
    assert "Duplicate course shared" in caplog.text
