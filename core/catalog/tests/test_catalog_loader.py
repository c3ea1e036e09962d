"""Tests for catalog JSON parsing and loading."""

import json
import logging

from core.catalog.cache import get_cache, clear_cache
from core.catalog.loader import load_catalog, parse_formation, refresh_catalog


class TestParseFormation:
    def test_parses_hierarchy(self, formation_data):
        formation = parse_formation(formation_data)

        assert formation.id == "iobsp"
        assert [m.id for m in formation.modules] == ["m1", "m2"]
        chapter = formation.modules[0].chapters[0]
        assert [s.id for s in chapter.sub_chapters] == ["m1-c1-s1", "m1-c1-s2"]
        assert chapter.courses == []

    def test_flattened_order_is_depth_first(self, formation_data):
        formation = parse_formation(formation_data)

        assert [c.id for c in formation.all_courses()] == ["c1", "c2", "c3", "c4", "c5", "c6"]

    def test_courses_carry_parent_pointers(self, formation_data):
        formation = parse_formation(formation_data)
        courses = {c.id: c for c in formation.all_courses()}

        assert courses["c2"].formation_id == "iobsp"
        assert courses["c2"].module_id == "m1"
        assert courses["c2"].chapter_id == "m1-c1"
        assert courses["c2"].sub_chapter_id == "m1-c1-s1"
        assert courses["c4"].sub_chapter_id is None

    def test_missing_duration_is_zero(self, formation_data):
        formation = parse_formation(formation_data)
        courses = {c.id: c for c in formation.all_courses()}

        assert courses["c5"].duration_s == 500
        assert courses["c6"].duration_s == 0

    def test_explicit_common_core_flag(self, formation_data):
        formation = parse_formation(formation_data)

        assert formation.modules[0].is_common_core is True
        assert formation.modules[1].is_common_core is False
        assert formation.modules[0].required_s == 600
        assert formation.modules[1].required_s is None

    def test_explicit_flag_wins_over_name(self):
        """A module named "Tronc commun" but flagged false is not common core."""
        formation = parse_formation(
            {
                "id": "f",
                "modules": [{"id": "m", "name": "Tronc commun", "commonCore": False}],
            }
        )
        assert formation.modules[0].is_common_core is False

    def test_legacy_name_marker_when_flag_absent(self):
        formation = parse_formation(
            {
                "id": "f",
                "modules": [
                    {"id": "m1", "name": "Module 1 - TRONC COMMUN"},
                    {"id": "m2", "name": "Module 2"},
                ],
            }
        )
        assert formation.modules[0].is_common_core is True
        assert formation.modules[1].is_common_core is False

    def test_empty_marker_disables_name_matching(self):
        formation = parse_formation(
            {"id": "f", "modules": [{"id": "m1", "name": "Tronc commun"}]},
            common_core_marker="",
        )
        assert formation.modules[0].is_common_core is False

    def test_chapter_with_both_shapes_keeps_sub_chapters(self, caplog):
        data = {
            "id": "f",
            "modules": [
                {
                    "id": "m",
                    "chapters": [
                        {
                            "id": "ch",
                            "subChapters": [{"id": "s", "courses": [{"id": "a"}]}],
                            "courses": [{"id": "b"}],
                        }
                    ],
                }
            ],
        }
        with caplog.at_level(logging.WARNING):
            formation = parse_formation(data)

        assert [c.id for c in formation.all_courses()] == ["a"]
        assert "ignoring its direct courses" in caplog.text


class TestLoadCatalog:
    def setup_method(self):
        clear_cache()

    def teardown_method(self):
        clear_cache()

    def test_loads_single_object_and_list_files(self, tmp_path, formation_data):
        (tmp_path / "one.json").write_text(json.dumps(formation_data))
        (tmp_path / "many.json").write_text(
            json.dumps([{"id": "f2", "name": "F2", "modules": []}])
        )

        cache = load_catalog(tmp_path)

        assert set(cache.formations) == {"iobsp", "f2"}
        assert set(cache.courses) == {"c1", "c2", "c3", "c4", "c5", "c6"}

    def test_missing_directory_gives_empty_catalog(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            cache = load_catalog(tmp_path / "nope")

        assert cache.formations == {}
        assert "not found" in caplog.text

    def test_refresh_installs_cache(self, tmp_path, formation_data):
        (tmp_path / "iobsp.json").write_text(json.dumps(formation_data))

        cache = refresh_catalog(tmp_path)

        assert get_cache() is cache


def test_legacy_required_hours_seconds_key():
    formation = parse_formation(
        {
            "id": "f",
            "modules": [
                {"id": "m1", "requiredHoursSeconds": 3600},
                {"id": "m2", "requiredSeconds": 600, "requiredHoursSeconds": 3600},
            ],
        }
    )
    assert formation.modules[0].required_s == 3600
    assert formation.modules[1].required_s == 600
