"""
Activity Resolver: which day type and which blocks apply to a date.

Day type precedence, first match wins:
1. Full-day override for the date
2. Public holiday in the owner's region  -> "public_holiday" day type
3. Weekday configuration base type
4. Hard default: Mon-Fri work-like default, Sat-Sun off-like default

Block selection:
- Off-like day types always get the off-like default ("Off Day") template.
  Weekday customizations are workday-contextual and never apply.
- Work-like day types get the weekday's custom list verbatim when it has
  one, otherwise the day type's own template.
- A day type without a template resolves to an empty schedule.

Half-day overrides (am/pm) never change the whole-day type. They only
recompose the block list: blocks starting before HALF_DAY_BOUNDARY come
from the AM type's schedule, the rest from the PM type's schedule.

Everything here is a pure function of a UserState snapshot.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from dayshape import config
from dayshape.planner.models import (
    PUBLIC_HOLIDAY,
    WEEKDAY_NAMES,
    ActivityBlock,
    DayKind,
    DayType,
    Period,
    ResolvedBlock,
    UserState,
    sort_blocks,
)


@dataclass(frozen=True)
class DayTypeResolution:
    """Resolved classification for a date, with the rule that decided it."""

    day_type: DayType
    source: str  # "override" | "holiday" | "weekday" | "default"
    am_type: DayType
    pm_type: DayType
    holiday_name: str | None = None

    @property
    def is_split(self) -> bool:
        return self.am_type.id != self.pm_type.id


@dataclass(frozen=True)
class ResolvedDay:
    date: date
    day_type: DayType
    source: str
    am_type: DayType
    pm_type: DayType
    blocks: tuple[ResolvedBlock, ...]
    holiday_name: str | None = None

    @property
    def is_split(self) -> bool:
        return self.am_type.id != self.pm_type.id

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "weekday": self.date.weekday(),
            "weekday_name": WEEKDAY_NAMES[self.date.weekday()],
            "day_type": self.day_type.to_dict(),
            "source": self.source,
            "am_type": self.am_type.key,
            "pm_type": self.pm_type.key,
            "holiday_name": self.holiday_name,
            "blocks": [b.to_dict() for b in self.blocks],
        }


@dataclass(frozen=True)
class WeekdayDescriptor:
    """A generic weekday ("what does a Tuesday look like")."""

    weekday: int
    weekday_name: str
    day_type: DayType
    has_custom: bool
    blocks: tuple[ResolvedBlock, ...]
    is_weekend: bool

    def to_dict(self) -> dict:
        return {
            "weekday": self.weekday,
            "weekday_name": self.weekday_name,
            "day_type": self.day_type.to_dict(),
            "has_custom": self.has_custom,
            "is_weekend": self.is_weekend,
            "blocks": [b.to_dict() for b in self.blocks],
        }


# =============================================================================
# DAY TYPE
# =============================================================================


def weekday_day_type(weekday: int, state: UserState) -> DayType:
    """Configured base type for a weekday, else the hard default."""
    weekday_config = state.weekdays.get(weekday)
    if weekday_config is not None:
        return state.get_day_type(weekday_config.base_day_type_id)
    kind = DayKind.WORK_LIKE if weekday < 5 else DayKind.OFF_LIKE
    return state.default_day_type(kind)


def explain_day_type(d: date, state: UserState) -> DayTypeResolution:
    """Resolve the whole-day type and both half-day types for a date."""
    holiday_name = state.holidays.holiday_name(state.settings.region, d)

    full = state.override_for(d, Period.FULL)
    if full is not None:
        day_type = state.get_day_type(full.day_type_id)
        return DayTypeResolution(day_type, "override", day_type, day_type, holiday_name)

    if holiday_name is not None:
        day_type = state.require_day_type(PUBLIC_HOLIDAY)
        source = "holiday"
    elif d.weekday() in state.weekdays:
        day_type = weekday_day_type(d.weekday(), state)
        source = "weekday"
    else:
        day_type = weekday_day_type(d.weekday(), state)
        source = "default"

    am = state.override_for(d, Period.AM)
    pm = state.override_for(d, Period.PM)
    am_type = state.get_day_type(am.day_type_id) if am else day_type
    pm_type = state.get_day_type(pm.day_type_id) if pm else day_type
    return DayTypeResolution(day_type, source, am_type, pm_type, holiday_name)


def resolve_day_type(d: date, state: UserState) -> DayType:
    """
    Day type for a date (full-day granularity).

    Half-day overrides are ignored here, even when am and pm name the same
    type; statistics count such a date as a whole day of that type.

    Raises:
        ConfigurationError: a needed baseline day type is missing
    """
    return explain_day_type(d, state).day_type


# =============================================================================
# ACTIVITIES
# =============================================================================


def _copy_blocks(blocks: tuple[ActivityBlock, ...], state: UserState, source: str):
    resolved = []
    for block in sort_blocks(blocks):
        category = state.category_for(block.category_id)
        resolved.append(
            ResolvedBlock(
                name=block.name,
                start_minute=block.start_minute,
                end_minute=block.end_minute,
                category=category.name if category else None,
                color=block.color or (category.color if category else None),
                sort_order=block.sort_order,
                source=source,
            )
        )
    return resolved


def activities_for(day_type: DayType, weekday: int, state: UserState) -> list[ResolvedBlock]:
    """Blocks a day of *day_type* falling on *weekday* gets."""
    if not day_type.is_work_like:
        off_day = state.default_day_type(DayKind.OFF_LIKE)
        return _copy_blocks(state.template_blocks(off_day.id), state, "template")

    weekday_config = state.weekdays.get(weekday)
    if weekday_config is not None and weekday_config.has_custom:
        return _copy_blocks(weekday_config.custom_blocks, state, "weekday")

    return _copy_blocks(state.template_blocks(day_type.id), state, "template")


def _compose(resolution: DayTypeResolution, weekday: int, state: UserState):
    whole_id = resolution.day_type.id
    if resolution.am_type.id == whole_id and resolution.pm_type.id == whole_id:
        return activities_for(resolution.day_type, weekday, state)

    boundary = config.HALF_DAY_BOUNDARY
    morning = [
        b for b in activities_for(resolution.am_type, weekday, state) if b.start_minute < boundary
    ]
    afternoon = [
        b for b in activities_for(resolution.pm_type, weekday, state) if b.start_minute >= boundary
    ]
    return sort_blocks(morning + afternoon)


def resolve_day(d: date, state: UserState) -> ResolvedDay:
    """Day type, half-day types and composed blocks for a concrete date."""
    resolution = explain_day_type(d, state)
    return ResolvedDay(
        date=d,
        day_type=resolution.day_type,
        source=resolution.source,
        am_type=resolution.am_type,
        pm_type=resolution.pm_type,
        blocks=tuple(_compose(resolution, d.weekday(), state)),
        holiday_name=resolution.holiday_name,
    )


def resolve_activities(d: date, state: UserState) -> list[ResolvedBlock]:
    """Ordered, read-only blocks for a concrete date."""
    return list(resolve_day(d, state).blocks)


# =============================================================================
# WEEKS
# =============================================================================


def resolve_week(state: UserState) -> list[WeekdayDescriptor]:
    """
    The generic week, Monday (0) to Sunday (6).

    Ignores date overrides and holidays: this is what each weekday looks
    like by default.
    """
    week = []
    for weekday in range(7):
        day_type = weekday_day_type(weekday, state)
        weekday_config = state.weekdays.get(weekday)
        week.append(
            WeekdayDescriptor(
                weekday=weekday,
                weekday_name=WEEKDAY_NAMES[weekday],
                day_type=day_type,
                has_custom=bool(weekday_config and weekday_config.has_custom),
                blocks=tuple(activities_for(day_type, weekday, state)),
                is_weekend=weekday >= 5,
            )
        )
    return week


def week_start_date(d: date, week_start: int) -> date:
    """First day of the week containing d, for a week starting on week_start."""
    return d - timedelta(days=(d.weekday() - week_start) % 7)


def resolve_calendar_week(d: date, state: UserState) -> list[ResolvedDay]:
    """The seven actual dates of the week containing d, overrides applied."""
    first = week_start_date(d, state.settings.week_start)
    return [resolve_day(first + timedelta(days=i), state) for i in range(7)]


def resolve_range(start: date, end: date, state: UserState) -> list[ResolvedDay]:
    """Resolved days from start to end inclusive."""
    days = []
    current = start
    while current <= end:
        days.append(resolve_day(current, state))
        current += timedelta(days=1)
    return days
