# core/catalog/tests/conftest.py
"""Fixtures for catalog tests."""

import pytest

from core.catalog import clear_cache, parse_formation, set_cache
from core.catalog.cache import CatalogCache
from datetime import datetime


FORMATION_DATA = {
    "id": "iobsp",
    "name": "IOBSP",
    "modules": [
        {
            "id": "m1",
            "name": "Module 1 : Tronc commun",
            "commonCore": True,
            "requiredSeconds": 600,
            "chapters": [
                {
                    "id": "m1-c1",
                    "name": "Chapter with sub-chapters",
                    "subChapters": [
                        {
                            "id": "m1-c1-s1",
                            "name": "Sub 1",
                            "courses": [
                                {"id": "c1", "name": "Course 1", "durationSeconds": 100},
                                {"id": "c2", "name": "Course 2", "durationSeconds": 200},
                            ],
                        },
                        {
                            "id": "m1-c1-s2",
                            "name": "Sub 2",
                            "courses": [{"id": "c3", "name": "Course 3", "durationSeconds": 300}],
                        },
                    ],
                },
                {
                    "id": "m1-c2",
                    "name": "Chapter with courses",
                    "courses": [{"id": "c4", "name": "Course 4", "durationSeconds": 400}],
                },
            ],
        },
        {
            "id": "m2",
            "name": "Module 2",
            "chapters": [
                {
                    "id": "m2-c1",
                    "name": "Only chapter",
                    "courses": [
                        {"id": "c5", "name": "Course 5", "durationSeconds": 500},
                        {"id": "c6", "name": "Course 6"},
                    ],
                }
            ],
        },
    ],
}


@pytest.fixture
def formation_data():
    return FORMATION_DATA


@pytest.fixture
def catalog():
    """Install a one-formation catalog for the duration of a test."""
    formation = parse_formation(FORMATION_DATA)
    cache = CatalogCache(formations={formation.id: formation}, last_refreshed=datetime.now())
    set_cache(cache)
    yield cache
    clear_cache()
