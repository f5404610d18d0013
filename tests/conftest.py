"""
Test configuration: repo root on sys.path, live-DB guard, planner fixtures.

Every test runs against a temp-file SQLite store. Connecting to the user's
real database raises immediately.
"""

import sqlite3
import sys
from datetime import date
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dayshape.cache import CacheManager  # noqa: E402
from dayshape.planner import HolidayCalendar, PlannerService, PublicHoliday  # noqa: E402
from dayshape.state_store import StateStore  # noqa: E402


# =============================================================================
# DETERMINISM GUARD: Block live database access
# =============================================================================

HOME_DB_ABSOLUTE = Path.home() / ".dayshape" / "data" / "dayshape.db"

_FORBIDDEN_DB_PATTERNS = [
    str(HOME_DB_ABSOLUTE),
    ".dayshape/data/dayshape.db",
]

_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block live DB access."""
    db_str = str(database)
    for pattern in _FORBIDDEN_DB_PATTERNS:
        if pattern in db_str:
            raise RuntimeError(
                f"DETERMINISM VIOLATION: Test attempted to access live DB at {database}.\n"
                "Tests must use the tmp_path store fixture."
            )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def guard_live_db_access(monkeypatch, tmp_path):
    """Block the live DB and point DAYSHAPE_HOME at a temp dir."""
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)
    monkeypatch.setenv("DAYSHAPE_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("DAYSHAPE_DB", raising=False)


# =============================================================================
# PLANNER FIXTURES
# =============================================================================

OWNER = "alice"


@pytest.fixture
def owner():
    return OWNER


@pytest.fixture
def store(tmp_path):
    """Fresh temp-file store."""
    return StateStore(tmp_path / "planner.db")


@pytest.fixture
def holidays():
    """Small deterministic DE calendar."""
    return HolidayCalendar(
        [
            PublicHoliday("DE", date(2026, 4, 3), "Good Friday"),
            PublicHoliday("DE", date(2026, 4, 6), "Easter Monday"),
        ],
        recurring={
            "DE": [
                ("New Year's Day", 1, 1),
                ("Christmas Day", 12, 25),
                ("St. Stephen's Day", 12, 26),
            ]
        },
    )


@pytest.fixture
def service(store, holidays):
    return PlannerService(store, holidays=holidays, cache=CacheManager())


@pytest.fixture
def seeded(service, owner):
    """Service with the owner's baseline day types seeded, region DE."""
    service.seed_baseline(owner, region="DE")
    return service


@pytest.fixture
def workday(seeded, owner):
    """Seeded service with Work Day and Off Day templates."""
    seeded.add_block(owner, "Sleep", "23:00", "06:30", day_type="work_day")
    seeded.add_block(owner, "Commute", "08:00", "08:45", day_type="work_day")
    seeded.add_block(owner, "Deep Work", "09:00", "12:00", day_type="work_day")
    seeded.add_block(owner, "Meetings", "13:00", "17:00", day_type="work_day")
    seeded.add_block(owner, "Brunch", "10:00", "11:00", day_type="off_day")
    seeded.add_block(owner, "Hike", "14:00", "17:00", day_type="off_day")
    return seeded
