"""
Planner package: data model, activity resolver, statistics and the
validated-writer service.

Usage:
    from dayshape.planner import PlannerService

    service = PlannerService()
    service.seed_baseline("alice")
    day = service.resolve_day("alice", "2026-12-24")
"""

from .holidays import HolidayCalendar, PublicHoliday
from .models import (
    ActivityBlock,
    Category,
    DayKind,
    DayType,
    Period,
    ResolvedBlock,
    UserSettings,
    UserState,
    block_duration,
    find_overlaps,
    format_minute,
    parse_minute,
)
from .repository import PlannerRepository, load_holidays, save_holidays
from .resolver import (
    ResolvedDay,
    WeekdayDescriptor,
    resolve_activities,
    resolve_calendar_week,
    resolve_day,
    resolve_day_type,
    resolve_range,
    resolve_week,
)
from .service import PlannerService
from .statistics import (
    MonthSummary,
    WeekSummary,
    YearStatistics,
    resolve_month,
    resolve_year_statistics,
    summarize_week,
)
from .transfer import export_owner_state, import_owner_state

__all__ = [
    "ActivityBlock",
    "Category",
    "DayKind",
    "DayType",
    "HolidayCalendar",
    "MonthSummary",
    "Period",
    "PlannerRepository",
    "PlannerService",
    "PublicHoliday",
    "ResolvedBlock",
    "ResolvedDay",
    "UserSettings",
    "UserState",
    "WeekSummary",
    "WeekdayDescriptor",
    "YearStatistics",
    "block_duration",
    "export_owner_state",
    "find_overlaps",
    "format_minute",
    "import_owner_state",
    "load_holidays",
    "parse_minute",
    "resolve_activities",
    "resolve_calendar_week",
    "resolve_day",
    "resolve_day_type",
    "resolve_month",
    "resolve_range",
    "resolve_week",
    "resolve_year_statistics",
    "save_holidays",
    "summarize_week",
]
