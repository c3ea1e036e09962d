# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Installs a small catalog and an in-memory progress store so API tests run
without catalog files or a database.
"""

import pytest
import pytest_asyncio
from datetime import datetime

from httpx import ASGITransport, AsyncClient

from core.catalog import CatalogCache, clear_cache, parse_formation, set_cache
from core.progress import MemoryProgressStore, set_store
from core.session import registry


FORMATION = {
    "id": "iobsp",
    "name": "IOBSP",
    "modules": [
        {
            "id": "m1",
            "name": "Module 1 : Tronc commun",
            "commonCore": True,
            "requiredSeconds": 150,
            "chapters": [
                {
                    "id": "m1-c1",
                    "name": "Réglementation",
                    "subChapters": [
                        {
                            "id": "m1-c1-s1",
                            "name": "Intermédiaires",
                            "courses": [
                                {"id": "c1", "name": "Définitions", "durationSeconds": 100},
                                {"id": "c2", "name": "Catégories", "durationSeconds": 200},
                            ],
                        }
                    ],
                }
            ],
        },
        {
            "id": "m2",
            "name": "Module 2",
            "chapters": [
                {
                    "id": "m2-c1",
                    "name": "Produits",
                    "courses": [{"id": "c3", "name": "Crédit renouvelable", "durationSeconds": 300}],
                }
            ],
        },
    ],
}


@pytest.fixture(autouse=True)
def api_test_catalog():
    """Set up the test catalog for every test in web_api/tests/."""
    formation = parse_formation(FORMATION)
    cache = CatalogCache(formations={formation.id: formation}, last_refreshed=datetime.now())
    set_cache(cache)

    yield cache

    clear_cache()


@pytest.fixture(autouse=True)
def store():
    """Fresh in-memory store, and no open sessions left over between tests."""
    store = MemoryProgressStore()
    set_store(store)
    registry._open_sessions.clear()
    registry._learner_locks.clear()

    yield store

    registry._open_sessions.clear()
    registry._learner_locks.clear()
    set_store(None)


@pytest_asyncio.fixture
async def client():
    from main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def learner():
    return {"X-Learner-Id": "learner-1"}
