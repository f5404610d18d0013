"""
Centralized configuration for dayshape.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

from dayshape import paths

# ============================================================
# Owner defaults
# ============================================================

DEFAULT_OWNER: str = os.environ.get("DAYSHAPE_OWNER", "local")
"""Owner used by the CLI when none is given."""

DEFAULT_REGION: str = os.environ.get("DAYSHAPE_REGION", "DE")
"""Holiday region assigned to newly seeded owners."""

DEFAULT_WEEK_START: int = int(os.environ.get("DAYSHAPE_WEEK_START", "0"))
"""First weekday shown in week views (0 = Monday)."""

DEFAULT_VIEW: str = os.environ.get("DAYSHAPE_DEFAULT_VIEW", "week")
"""Landing view for newly seeded owners."""

VIEWS: tuple[str, ...] = ("day", "week", "month", "year")

# ============================================================
# Reference data
# ============================================================

HOLIDAYS_FILE: str = os.environ.get(
    "DAYSHAPE_HOLIDAYS_FILE", str(paths.package_data_dir() / "public_holidays.yaml")
)
"""YAML file with per-region public holidays."""

# ============================================================
# Resolution
# ============================================================

HALF_DAY_BOUNDARY: int = 12 * 60
"""Minute of day splitting AM from PM for half-day overrides."""

# ============================================================
# Runtime
# ============================================================

STATS_CACHE_TTL: int = int(os.environ.get("DAYSHAPE_STATS_CACHE_TTL", "3600"))
"""Seconds a memoized year statistics result stays valid."""

LOG_LEVEL: str = os.environ.get("DAYSHAPE_LOG_LEVEL", "INFO")
