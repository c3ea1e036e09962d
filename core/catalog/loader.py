# core/catalog/loader.py
"""Load formation definitions from JSON files.

File format (one formation object, or a list of them, per file):

    {
      "id": "iobsp",
      "name": "IOBSP - Formation Longue",
      "modules": [
        {
          "id": "module-1",
          "name": "Module 1: Tronc commun",
          "commonCore": true,
          "requiredSeconds": 7200,
          "chapters": [
            {"id": "chapter-1", "name": "...", "subChapters": [{"id": ..., "courses": [...]}]},
            {"id": "chapter-2", "name": "...", "courses": [{"id": ..., "name": ..., "durationSeconds": 1800}]}
          ]
        }
      ]
    }
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from core.config import CATALOG_DIR, COMMON_CORE_NAME_MARKER

from .cache import CatalogCache, set_cache
from .types import Chapter, ContentUnit, Formation, Module, SubChapter

logger = logging.getLogger(__name__)


def _is_common_core(data: dict, marker: str) -> bool:
    if "commonCore" in data:
        return bool(data["commonCore"])
    # Legacy catalogs only encode this in the display name
    return bool(marker) and marker.lower() in data.get("name", "").lower()


def _parse_course(
    data: dict,
    *,
    formation_id: str,
    module_id: str,
    chapter_id: str,
    sub_chapter_id: str | None,
) -> ContentUnit:
    return ContentUnit(
        id=data["id"],
        title=data.get("name", data["id"]),
        formation_id=formation_id,
        module_id=module_id,
        chapter_id=chapter_id,
        sub_chapter_id=sub_chapter_id,
        duration_s=int(data.get("durationSeconds") or 0),
    )


def _parse_chapter(data: dict, *, formation_id: str, module_id: str) -> Chapter:
    chapter_id = data["id"]
    sub_chapters = [
        SubChapter(
            id=sub["id"],
            title=sub.get("name", sub["id"]),
            courses=[
                _parse_course(
                    c,
                    formation_id=formation_id,
                    module_id=module_id,
                    chapter_id=chapter_id,
                    sub_chapter_id=sub["id"],
                )
                for c in sub.get("courses", [])
            ],
        )
        for sub in data.get("subChapters") or []
    ]

    courses = []
    if sub_chapters:
        if data.get("courses"):
            logger.warning(
                f"Chapter {chapter_id} has both sub-chapters and courses; "
                "ignoring its direct courses"
            )
    else:
        courses = [
            _parse_course(
                c,
                formation_id=formation_id,
                module_id=module_id,
                chapter_id=chapter_id,
                sub_chapter_id=None,
            )
            for c in data.get("courses", [])
        ]

    return Chapter(
        id=chapter_id,
        title=data.get("name", chapter_id),
        courses=courses,
        sub_chapters=sub_chapters,
    )


def parse_formation(data: dict, *, common_core_marker: str = COMMON_CORE_NAME_MARKER) -> Formation:
    """
    Parse a formation dict into catalog dataclasses.

    Args:
        data: Formation dict in the catalog JSON format
        common_core_marker: Name marker used when a module has no "commonCore" field

    Returns:
        Formation with every course carrying its hierarchy pointers
    """
    formation_id = data["id"]
    modules = []
    for module_data in data.get("modules", []):
        module_id = module_data["id"]
        required = module_data.get("requiredSeconds")
        if required is None:
            # Legacy key, also in seconds
            required = module_data.get("requiredHoursSeconds")
        modules.append(
            Module(
                id=module_id,
                title=module_data.get("name", module_id),
                chapters=[
                    _parse_chapter(c, formation_id=formation_id, module_id=module_id)
                    for c in module_data.get("chapters", [])
                ],
                is_common_core=_is_common_core(module_data, common_core_marker),
                required_s=int(required) if required is not None else None,
            )
        )
    return Formation(
        id=formation_id,
        title=data.get("name", formation_id),
        modules=modules,
    )


def load_catalog(catalog_dir: Path = CATALOG_DIR) -> CatalogCache:
    """
    Load every formation JSON file in a directory.

    Args:
        catalog_dir: Directory containing *.json formation files

    Returns:
        CatalogCache with all formations (empty when the directory is missing)
    """
    formations: dict[str, Formation] = {}
    catalog_dir = Path(catalog_dir)

    if not catalog_dir.exists():
        logger.warning(f"Catalog directory {catalog_dir} not found, catalog is empty")
        return CatalogCache(formations={}, last_refreshed=datetime.now())

    for path in sorted(catalog_dir.glob("*.json")):
        with open(path) as f:
            data = json.load(f)
        items = data if isinstance(data, list) else [data]
        for item in items:
            formation = parse_formation(item)
            if formation.id in formations:
                logger.warning(f"Duplicate formation {formation.id} in {path.name}, overriding")
            formations[formation.id] = formation

    cache = CatalogCache(formations=formations, last_refreshed=datetime.now())
    logger.info(
        f"Loaded {len(formations)} formations ({len(cache.courses)} courses) from {catalog_dir}"
    )
    return cache


def refresh_catalog(catalog_dir: Path = CATALOG_DIR) -> CatalogCache:
    """Reload the catalog from disk and install it as the active cache."""
    cache = load_catalog(catalog_dir)
    set_cache(cache)
    return cache
