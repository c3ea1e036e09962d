"""
Runtime settings for progress tracking.

All values come from environment variables (loaded from .env.local when
present) and fall back to the product defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(".env.local")


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _float_env(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


DATABASE_URL = os.environ.get("DATABASE_URL", "")

# Formation JSON files (one formation, or a list of formations, per file)
CATALOG_DIR = Path(os.environ.get("CATALOG_DIR", Path(__file__).parent.parent / "catalog"))

# Inactivity: warning fires at INACTIVITY_TIMEOUT_S - INACTIVITY_WARNING_S
INACTIVITY_TIMEOUT_S = _int_env("INACTIVITY_TIMEOUT_S", 15 * 60)
INACTIVITY_WARNING_S = _int_env("INACTIVITY_WARNING_S", 30)

TICK_INTERVAL_S = _int_env("TICK_INTERVAL_S", 1)
FLUSH_INTERVAL_S = _int_env("FLUSH_INTERVAL_S", 30)

# Used by the elapsed-time counter when the catalog has no duration for a course
DEFAULT_COURSE_DURATION_S = _int_env("DEFAULT_COURSE_DURATION_S", 3600)

# Legacy catalogs flag the common core by module name only.
# Only consulted when a module has no explicit "commonCore" field.
COMMON_CORE_NAME_MARKER = os.environ.get("COMMON_CORE_NAME_MARKER", "tronc commun")

# Share of a module's total duration a learner must spend before its quiz unlocks
QUIZ_UNLOCK_RATIO = _float_env("QUIZ_UNLOCK_RATIO", 0.8)

SENTRY_DSN = os.environ.get("SENTRY_DSN")
