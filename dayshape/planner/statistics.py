"""
Aggregation of resolved days into week, month and year statistics.

Counting unit is the half day: a date with am/pm overrides (and no full
override) contributes half a day to each half's type. Counts come back as
ints when whole and as x.5 floats otherwise.

An am and a pm override naming the same type count as one whole day of
that type, even though resolve_day_type (full overrides only) still reports
the holiday or weekday type for that date.

Year buckets key off stable day type keys, never display names:
    public_holiday -> holidays
    vacation       -> vacation
    sick_day       -> sick
    other work-like-> work_days
    other off-like -> off_days
"""

import calendar
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta

from dayshape.planner.models import (
    PUBLIC_HOLIDAY,
    SICK_DAY,
    VACATION,
    WEEKDAY_NAMES,
    DayType,
    UserState,
)
from dayshape.planner.resolver import explain_day_type, resolve_week


def _halves_to_days(halves: int) -> int | float:
    return halves // 2 if halves % 2 == 0 else halves / 2


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _weighted_types(resolution) -> list[tuple[DayType, int]]:
    """(day type, halves) pairs covering one resolved date."""
    if resolution.am_type.id == resolution.pm_type.id:
        return [(resolution.am_type, 2)]
    return [(resolution.am_type, 1), (resolution.pm_type, 1)]


# =============================================================================
# MONTH
# =============================================================================


@dataclass(frozen=True)
class MonthDay:
    date: date
    day_type: DayType
    am_type: DayType
    pm_type: DayType
    source: str
    holiday_name: str | None = None

    @property
    def is_work_like(self) -> bool:
        return self.day_type.is_work_like

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "weekday": self.date.weekday(),
            "day_type": self.day_type.key,
            "am_type": self.am_type.key,
            "pm_type": self.pm_type.key,
            "is_work_like": self.is_work_like,
            "source": self.source,
            "holiday_name": self.holiday_name,
        }


@dataclass(frozen=True)
class MonthSummary:
    year: int
    month: int
    days: tuple[MonthDay, ...]
    work_count: int | float
    off_count: int | float
    total_days: int
    work_percent: int

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "month": self.month,
            "days": [d.to_dict() for d in self.days],
            "work_count": self.work_count,
            "off_count": self.off_count,
            "total_days": self.total_days,
            "work_percent": self.work_percent,
        }


def resolve_month(year: int, month: int, state: UserState) -> MonthSummary:
    """Per-day classification of a month, with work/off counts."""
    total_days = calendar.monthrange(year, month)[1]
    days = []
    work_halves = 0
    off_halves = 0

    for day in range(1, total_days + 1):
        d = date(year, month, day)
        resolution = explain_day_type(d, state)
        days.append(
            MonthDay(
                date=d,
                day_type=resolution.day_type,
                am_type=resolution.am_type,
                pm_type=resolution.pm_type,
                source=resolution.source,
                holiday_name=resolution.holiday_name,
            )
        )
        for day_type, halves in _weighted_types(resolution):
            if day_type.is_work_like:
                work_halves += halves
            else:
                off_halves += halves

    return MonthSummary(
        year=year,
        month=month,
        days=tuple(days),
        work_count=_halves_to_days(work_halves),
        off_count=_halves_to_days(off_halves),
        total_days=total_days,
        work_percent=_round_half_up(work_halves / (2 * total_days) * 100),
    )


# =============================================================================
# YEAR
# =============================================================================


@dataclass(frozen=True)
class YearStatistics:
    year: int
    total: int
    work_days: int | float = 0
    holidays: int | float = 0
    vacation: int | float = 0
    sick: int | float = 0
    off_days: int | float = 0
    by_day_type: dict[str, int | float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "total": self.total,
            "work_days": self.work_days,
            "holidays": self.holidays,
            "vacation": self.vacation,
            "sick": self.sick,
            "off_days": self.off_days,
            "by_day_type": dict(self.by_day_type),
        }


def _bucket(day_type: DayType) -> str:
    if day_type.key == PUBLIC_HOLIDAY:
        return "holidays"
    if day_type.key == VACATION:
        return "vacation"
    if day_type.key == SICK_DAY:
        return "sick"
    if day_type.is_work_like:
        return "work_days"
    return "off_days"


def resolve_year_statistics(year: int, state: UserState) -> YearStatistics:
    """Tally every date of the year into day type buckets."""
    first = date(year, 1, 1)
    last = date(year, 12, 31)
    buckets: Counter[str] = Counter()
    by_key: Counter[str] = Counter()

    current = first
    while current <= last:
        for day_type, halves in _weighted_types(explain_day_type(current, state)):
            buckets[_bucket(day_type)] += halves
            by_key[day_type.key] += halves
        current += timedelta(days=1)

    return YearStatistics(
        year=year,
        total=(last - first).days + 1,
        work_days=_halves_to_days(buckets["work_days"]),
        holidays=_halves_to_days(buckets["holidays"]),
        vacation=_halves_to_days(buckets["vacation"]),
        sick=_halves_to_days(buckets["sick"]),
        off_days=_halves_to_days(buckets["off_days"]),
        by_day_type={key: _halves_to_days(h) for key, h in sorted(by_key.items())},
    )


# =============================================================================
# GENERIC WEEK
# =============================================================================


@dataclass(frozen=True)
class WeekSummary:
    """Planned minutes across the generic week."""

    minutes_by_weekday: dict[str, int]
    minutes_by_category: dict[str | None, int]
    total_minutes: int
    work_like_days: int

    def to_dict(self) -> dict:
        return {
            "minutes_by_weekday": dict(self.minutes_by_weekday),
            "minutes_by_category": {
                (k if k is not None else "uncategorized"): v
                for k, v in self.minutes_by_category.items()
            },
            "total_minutes": self.total_minutes,
            "work_like_days": self.work_like_days,
        }


def summarize_week(state: UserState) -> WeekSummary:
    by_weekday: dict[str, int] = {}
    by_category: Counter = Counter()
    work_like = 0

    for descriptor in resolve_week(state):
        minutes = 0
        for block in descriptor.blocks:
            minutes += block.duration_minutes
            by_category[block.category] += block.duration_minutes
        by_weekday[WEEKDAY_NAMES[descriptor.weekday]] = minutes
        if descriptor.day_type.is_work_like:
            work_like += 1

    return WeekSummary(
        minutes_by_weekday=by_weekday,
        minutes_by_category=dict(by_category),
        total_minutes=sum(by_weekday.values()),
        work_like_days=work_like,
    )
