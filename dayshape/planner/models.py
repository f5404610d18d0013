"""
Planner data model.

Entities mirror the store tables (see dayshape.schema) as frozen dataclasses.
A UserState is an immutable snapshot of one owner's planning data plus the
injected holiday calendar; the resolver only ever reads from it.

Times are minute-of-day integers (0..1439). A block whose end is before its
start spans midnight.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from dayshape.errors import ConfigurationError, ValidationError
from dayshape.planner.holidays import HolidayCalendar

# =============================================================================
# CONSTANTS
# =============================================================================

MINUTES_PER_DAY = 1440

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Stable day type keys. Statistics bucket on these, never on display names.
WORK_DAY = "work_day"
OFF_DAY = "off_day"
PUBLIC_HOLIDAY = "public_holiday"
VACATION = "vacation"
SICK_DAY = "sick_day"

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
_KEY_RE = re.compile(r"^[a-z][a-z0-9_]*$")


class DayKind(Enum):
    """Polarity of a day type: whether weekday customization applies."""

    WORK_LIKE = "work"
    OFF_LIKE = "off"


class Period(Enum):
    """Granularity of a date override."""

    FULL = "full"
    AM = "am"
    PM = "pm"


# (key, name, kind, is_default, color)
BASELINE_DAY_TYPES: tuple[tuple[str, str, DayKind, bool, str], ...] = (
    (WORK_DAY, "Work Day", DayKind.WORK_LIKE, True, "#1976d2"),
    (OFF_DAY, "Off Day", DayKind.OFF_LIKE, True, "#43a047"),
    (PUBLIC_HOLIDAY, "Public Holiday", DayKind.OFF_LIKE, False, "#e53935"),
    (VACATION, "Vacation", DayKind.OFF_LIKE, False, "#fb8c00"),
    (SICK_DAY, "Sick Day", DayKind.OFF_LIKE, False, "#8e24aa"),
)


# =============================================================================
# VALUE PARSING
# =============================================================================


def parse_minute(value) -> int:
    """
    Minute of day from an int (0..1439) or an "HH:MM" string.

    Raises:
        ValidationError: value is not representable as a minute of day
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid time value: {value!r}")
    if isinstance(value, int):
        minute = value
    elif isinstance(value, str):
        match = _HHMM_RE.match(value.strip())
        if not match:
            raise ValidationError(f"Invalid time value: {value!r} (expected HH:MM)")
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            raise ValidationError(f"Invalid time value: {value!r}")
        minute = hours * 60 + minutes
    else:
        raise ValidationError(f"Invalid time value: {value!r}")

    if not 0 <= minute < MINUTES_PER_DAY:
        raise ValidationError(f"Minute of day out of range: {minute}")
    return minute


def format_minute(minute: int) -> str:
    """1380 -> "23:00"."""
    return f"{minute // 60:02d}:{minute % 60:02d}"


def block_duration(start_minute: int, end_minute: int) -> int:
    """
    Duration in minutes. End before start means the block spans midnight:
    (1440 - start) + end.
    """
    if end_minute >= start_minute:
        return end_minute - start_minute
    return (MINUTES_PER_DAY - start_minute) + end_minute


def parse_weekday(value) -> int:
    """Weekday index 0..6 from an int or an English day name ("Tuesday", "tue")."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid weekday: {value!r}")
    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise ValidationError(f"Invalid weekday index: {value} (expected 0..6)")
    if isinstance(value, str):
        text = value.strip().lower()
        if text.isdigit():
            return parse_weekday(int(text))
        for index, name in enumerate(WEEKDAY_NAMES):
            if text in (name.lower(), name[:3].lower()):
                return index
    raise ValidationError(f"Invalid weekday: {value!r}")


def parse_period(value) -> Period:
    if isinstance(value, Period):
        return value
    try:
        return Period(str(value).lower())
    except ValueError as e:
        raise ValidationError(f"Invalid period: {value!r} (expected full, am or pm)") from e


def parse_kind(value) -> DayKind:
    if isinstance(value, DayKind):
        return value
    try:
        return DayKind(str(value).lower())
    except ValueError as e:
        raise ValidationError(f"Invalid day kind: {value!r} (expected work or off)") from e


def parse_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from e


def require_name(value, what: str = "name") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{what} must be a non-empty string")
    return value.strip()


def validate_color(value) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not _COLOR_RE.match(value):
        raise ValidationError(f"Invalid color: {value!r} (expected #RRGGBB)")
    return value.lower()


def validate_key(value) -> str:
    if not isinstance(value, str) or not _KEY_RE.match(value):
        raise ValidationError(f"Invalid day type key: {value!r} (expected lower_snake_case)")
    return value


# =============================================================================
# ENTITIES
# =============================================================================


@dataclass(frozen=True)
class Category:
    id: str
    owner_id: str
    name: str
    color: str
    label: str | None = None

    @property
    def display_label(self) -> str:
        return self.label or self.name


@dataclass(frozen=True)
class DayType:
    id: str
    owner_id: str
    key: str
    name: str
    kind: DayKind
    is_default: bool = False
    color: str | None = None
    sort_order: int = 0

    @property
    def is_work_like(self) -> bool:
        return self.kind is DayKind.WORK_LIKE

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "kind": self.kind.value,
            "is_work_like": self.is_work_like,
            "color": self.color,
        }


@dataclass(frozen=True)
class ActivityBlock:
    """A block as stored: owned by a template or by a weekday config."""

    id: str
    owner_id: str
    name: str
    start_minute: int
    end_minute: int
    category_id: str | None = None
    color: str | None = None
    sort_order: int = 0
    template_id: str | None = None
    weekday_config_id: str | None = None

    @property
    def duration_minutes(self) -> int:
        return block_duration(self.start_minute, self.end_minute)

    @property
    def crosses_midnight(self) -> bool:
        return self.end_minute < self.start_minute


@dataclass(frozen=True)
class DayTemplate:
    id: str
    day_type_id: str
    blocks: tuple[ActivityBlock, ...] = ()


@dataclass(frozen=True)
class WeekdayConfig:
    id: str
    weekday: int
    base_day_type_id: str
    has_custom: bool = False
    custom_blocks: tuple[ActivityBlock, ...] = ()


@dataclass(frozen=True)
class DayOverride:
    id: str
    date: date
    period: Period
    day_type_id: str
    note: str | None = None


@dataclass(frozen=True)
class UserSettings:
    owner_id: str
    region: str | None = None
    week_start: int = 0
    default_view: str = "week"
    onboarding_complete: bool = False

    def to_dict(self) -> dict:
        return {
            "region": self.region,
            "week_start": self.week_start,
            "default_view": self.default_view,
            "onboarding_complete": self.onboarding_complete,
        }


@dataclass(frozen=True)
class ResolvedBlock:
    """Read-only copy of a block as it applies to a resolved day."""

    name: str
    start_minute: int
    end_minute: int
    category: str | None = None
    color: str | None = None
    sort_order: int = 0
    source: str = "template"

    @property
    def duration_minutes(self) -> int:
        return block_duration(self.start_minute, self.end_minute)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "start": format_minute(self.start_minute),
            "end": format_minute(self.end_minute),
            "duration_minutes": self.duration_minutes,
            "category": self.category,
            "color": self.color,
            "source": self.source,
        }


# =============================================================================
# ORDERING AND OVERLAPS
# =============================================================================


def sort_blocks(blocks):
    """Display order within a container: start ascending, then sort_order."""
    return sorted(blocks, key=lambda b: (b.start_minute, b.sort_order))


def _segments(block) -> list[tuple[int, int]]:
    start, end = block.start_minute, block.end_minute
    if start == end:
        return []
    if end > start:
        return [(start, end)]
    return [(start, MINUTES_PER_DAY), (0, end)]


def blocks_overlap(a, b) -> bool:
    """
    True when two blocks share any minute. The day is circular, so an
    overnight block overlaps early-morning blocks. Zero-length blocks never
    overlap.
    """
    return any(
        a0 < b1 and b0 < a1 for a0, a1 in _segments(a) for b0, b1 in _segments(b)
    )


def find_overlaps(blocks) -> list[tuple]:
    """All overlapping pairs, in display order. Detection only; never enforced."""
    ordered = sort_blocks(blocks)
    pairs = []
    for i, a in enumerate(ordered):
        for b in ordered[i + 1 :]:
            if blocks_overlap(a, b):
                pairs.append((a, b))
    return pairs


# =============================================================================
# USER STATE SNAPSHOT
# =============================================================================


@dataclass(frozen=True)
class UserState:
    """Everything the resolver needs for one owner."""

    owner_id: str
    settings: UserSettings
    day_types: dict[str, DayType] = field(default_factory=dict)
    categories: dict[str, Category] = field(default_factory=dict)
    templates: dict[str, DayTemplate] = field(default_factory=dict)  # by day_type_id
    weekdays: dict[int, WeekdayConfig] = field(default_factory=dict)
    overrides: dict[tuple[date, Period], DayOverride] = field(default_factory=dict)
    holidays: HolidayCalendar = field(default_factory=HolidayCalendar)

    def get_day_type(self, day_type_id: str) -> DayType:
        try:
            return self.day_types[day_type_id]
        except KeyError as e:
            raise ConfigurationError(
                f"Owner {self.owner_id!r} references unknown day type id {day_type_id!r}"
            ) from e

    def find_day_type(self, key: str) -> DayType | None:
        for day_type in self.day_types.values():
            if day_type.key == key:
                return day_type
        return None

    def require_day_type(self, key: str) -> DayType:
        """Look up a baseline day type by key; its absence is a seeding bug."""
        day_type = self.find_day_type(key)
        if day_type is None:
            raise ConfigurationError(
                f"Owner {self.owner_id!r} has no {key!r} day type; seed the baseline set first"
            )
        return day_type

    def default_day_type(self, kind: DayKind) -> DayType:
        """The owner's default work-like or off-like day type."""
        for day_type in self.day_types.values():
            if day_type.kind is kind and day_type.is_default:
                return day_type
        return self.require_day_type(WORK_DAY if kind is DayKind.WORK_LIKE else OFF_DAY)

    def template_blocks(self, day_type_id: str) -> tuple[ActivityBlock, ...]:
        template = self.templates.get(day_type_id)
        return template.blocks if template else ()

    def override_for(self, d: date, period: Period) -> DayOverride | None:
        return self.overrides.get((d, period))

    def category_for(self, category_id: str | None) -> Category | None:
        if category_id is None:
            return None
        return self.categories.get(category_id)
