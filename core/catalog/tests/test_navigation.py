"""Tests for catalog lookups and flattened-order navigation."""

import pytest

from core.catalog.navigation import (
    FormationNotFoundError,
    flatten_formation,
    get_breadcrumb,
    get_course,
    get_hierarchy_node,
    get_module,
    get_next_prev_course,
    load_formation,
)
from core.catalog.types import Chapter, Module, SubChapter


class TestLookups:
    def test_load_formation(self, catalog):
        assert load_formation("iobsp").title == "IOBSP"

    def test_load_unknown_formation_raises(self, catalog):
        with pytest.raises(FormationNotFoundError):
            load_formation("nope")

    def test_get_course(self, catalog):
        course = get_course("c5")
        assert course.module_id == "m2"
        assert get_course("missing") is None

    def test_flatten_unknown_formation_is_empty(self, catalog):
        assert flatten_formation("nope") == []

    def test_get_hierarchy_node(self, catalog):
        assert isinstance(get_hierarchy_node("m2"), Module)
        assert isinstance(get_hierarchy_node("m1-c2"), Chapter)
        assert isinstance(get_hierarchy_node("m1-c1-s2"), SubChapter)
        assert get_hierarchy_node("iobsp").id == "iobsp"
        assert get_hierarchy_node("missing") is None

    def test_get_module(self, catalog):
        formation = load_formation("iobsp")
        assert get_module(formation, "m1").is_common_core
        assert get_module(formation, "m9") is None


class TestNextPrev:
    def test_middle_course(self, catalog):
        prev_course, next_course = get_next_prev_course("c3", "iobsp")
        assert prev_course.id == "c2"
        assert next_course.id == "c4"

    def test_crosses_module_boundary(self, catalog):
        prev_course, next_course = get_next_prev_course("c4", "iobsp")
        assert prev_course.id == "c3"
        assert next_course.id == "c5"

    def test_first_and_last(self, catalog):
        assert get_next_prev_course("c1", "iobsp")[0] is None
        assert get_next_prev_course("c6", "iobsp")[1] is None

    def test_course_not_in_formation(self, catalog):
        assert get_next_prev_course("missing", "iobsp") == (None, None)


def test_breadcrumb_includes_sub_chapter(catalog):
    assert get_breadcrumb(get_course("c2")) == [
        "IOBSP",
        "Module 1 : Tronc commun",
        "Chapter with sub-chapters",
        "Sub 1",
        "Course 2",
    ]


def test_breadcrumb_without_sub_chapter(catalog):
    assert get_breadcrumb(get_course("c6")) == ["IOBSP", "Module 2", "Only chapter", "Course 6"]
