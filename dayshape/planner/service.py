"""
Planner Service - the engine facade.

Reads resolve against a fresh UserState snapshot. Writes are validated
mutations: every input is checked before the first row changes, multi-row
writes run inside one store transaction, and each write drops the owner's
cached statistics.

Invariants enforced here:
- A block lives in exactly one container (day template or weekday config)
- A weekday config exists at most once per owner and weekday
- Switching a weekday's base type discards its customization
- Overrides are unique per (date, period); full and half-day rows for the
  same date replace each other
"""

import logging
from datetime import datetime

from dayshape import config
from dayshape.cache import CacheManager, cached_per_owner, invalidates_owner
from dayshape.errors import ValidationError
from dayshape.planner import resolver, statistics, transfer
from dayshape.planner.holidays import HolidayCalendar, PublicHoliday
from dayshape.planner.models import (
    BASELINE_DAY_TYPES,
    OFF_DAY,
    PUBLIC_HOLIDAY,
    WORK_DAY,
    ActivityBlock,
    Category,
    DayKind,
    DayOverride,
    DayType,
    Period,
    UserSettings,
    UserState,
    find_overlaps,
    parse_date,
    parse_kind,
    parse_minute,
    parse_period,
    parse_weekday,
    require_name,
    validate_color,
    validate_key,
)
from dayshape.planner.repository import (
    PlannerRepository,
    load_holidays,
    new_id,
    row_to_override,
    save_holidays,
)
from dayshape.state_store import StateStore, get_store

logger = logging.getLogger(__name__)

# Day types the resolver cannot work without.
REQUIRED_DAY_TYPES = (WORK_DAY, OFF_DAY, PUBLIC_HOLIDAY)

_UNSET = object()


def _now() -> str:
    return datetime.now().isoformat()


class PlannerService:
    """
    Owner-scoped planning operations.

    Usage:
        service = PlannerService(store)
        service.seed_baseline("alice", region="DE")
        service.set_date_override("alice", date(2026, 12, 24), "vacation")
        service.activities("alice", date(2026, 12, 24))
    """

    def __init__(
        self,
        store: StateStore | None = None,
        holidays: HolidayCalendar | None = None,
        cache: CacheManager | None = None,
    ):
        self.store = store or get_store()
        if holidays is None:
            holidays = HolidayCalendar.from_yaml(config.HOLIDAYS_FILE).merged(
                load_holidays(self.store)
            )
        self.repo = PlannerRepository(self.store, holidays)
        self.cache = cache or CacheManager(default_ttl=config.STATS_CACHE_TTL)

    @property
    def holidays(self) -> HolidayCalendar:
        return self.repo.holidays

    # =========================================================================
    # Reads
    # =========================================================================

    def state(self, owner_id: str) -> UserState:
        return self.repo.load_state(owner_id)

    def day_type(self, owner_id: str, d) -> DayType:
        return resolver.resolve_day_type(parse_date(d), self.state(owner_id))

    def resolve_day(self, owner_id: str, d) -> resolver.ResolvedDay:
        return resolver.resolve_day(parse_date(d), self.state(owner_id))

    def activities(self, owner_id: str, d) -> list:
        return resolver.resolve_activities(parse_date(d), self.state(owner_id))

    def week(self, owner_id: str) -> list[resolver.WeekdayDescriptor]:
        return resolver.resolve_week(self.state(owner_id))

    def calendar_week(self, owner_id: str, d) -> list[resolver.ResolvedDay]:
        return resolver.resolve_calendar_week(parse_date(d), self.state(owner_id))

    def month(self, owner_id: str, year: int, month: int) -> statistics.MonthSummary:
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month: {month}")
        return statistics.resolve_month(year, month, self.state(owner_id))

    @cached_per_owner("year")
    def year_statistics(self, owner_id: str, year: int) -> statistics.YearStatistics:
        """Memoized per (owner, year); any write for the owner invalidates it."""
        logger.debug("Computing year statistics for %s/%s", owner_id, year)
        return statistics.resolve_year_statistics(year, self.state(owner_id))

    def week_summary(self, owner_id: str) -> statistics.WeekSummary:
        return statistics.summarize_week(self.state(owner_id))

    def list_blocks(self, owner_id: str, day_type=None, weekday=None) -> list[ActivityBlock]:
        """Stored blocks of one container, in display order."""
        template_id, config_id = self._container_ids(owner_id, day_type, weekday)
        if template_id is None and config_id is None:
            return []
        return self.repo.container_blocks(owner_id, template_id, config_id)

    def overlaps(self, owner_id: str, day_type=None, weekday=None) -> list[tuple]:
        """Overlapping block pairs within one container. Detection only."""
        return find_overlaps(self.list_blocks(owner_id, day_type=day_type, weekday=weekday))

    def list_overrides(self, owner_id: str, start=None, end=None) -> list[DayOverride]:
        overrides = [
            row_to_override(row)
            for row in self.store.find("day_overrides", order_by="date, period", owner_id=owner_id)
        ]
        if start is not None:
            overrides = [o for o in overrides if o.date >= parse_date(start)]
        if end is not None:
            overrides = [o for o in overrides if o.date <= parse_date(end)]
        return overrides

    def missing_baseline(self, owner_id: str) -> list[str]:
        """Required day type keys the owner lacks."""
        keys = {dt.key for dt in self.repo.list_day_types(owner_id)}
        return [key for key in REQUIRED_DAY_TYPES if key not in keys]

    # =========================================================================
    # Baseline
    # =========================================================================

    @invalidates_owner
    def seed_baseline(self, owner_id: str, region: str | None = None) -> list[DayType]:
        """
        Create the baseline day types and settings row. Idempotent: existing
        rows are left untouched.
        """
        require_name(owner_id, "owner_id")
        existing = {dt.key: dt for dt in self.repo.list_day_types(owner_id)}
        defaults_taken = {dt.kind for dt in existing.values() if dt.is_default}
        now = _now()

        with self.store.transaction():
            for order, (key, name, kind, is_default, color) in enumerate(BASELINE_DAY_TYPES):
                if key in existing:
                    continue
                self.store.insert(
                    "day_types",
                    {
                        "id": new_id(),
                        "owner_id": owner_id,
                        "type_key": key,
                        "name": name,
                        "kind": kind.value,
                        "is_default": int(is_default and kind not in defaults_taken),
                        "color": color,
                        "sort_order": order,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
            if self.store.find_one("user_settings", owner_id=owner_id) is None:
                self.store.insert(
                    "user_settings",
                    {
                        "owner_id": owner_id,
                        "region": (region or config.DEFAULT_REGION).upper(),
                        "week_start": config.DEFAULT_WEEK_START,
                        "default_view": config.DEFAULT_VIEW,
                        "onboarding_complete": 0,
                        "updated_at": now,
                    },
                )

        logger.info("Seeded baseline day types for %s", owner_id)
        return self.repo.list_day_types(owner_id)

    # =========================================================================
    # Categories
    # =========================================================================

    @invalidates_owner
    def create_category(
        self, owner_id: str, name: str, color: str | None = None, label: str | None = None
    ) -> Category:
        name = require_name(name)
        color = validate_color(color) or "#9e9e9e"
        if self.store.find_one("categories", owner_id=owner_id, name=name):
            raise ValidationError(f"Category {name!r} already exists")

        now = _now()
        category_id = self.store.insert(
            "categories",
            {
                "id": new_id(),
                "owner_id": owner_id,
                "name": name,
                "label": label,
                "color": color,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info("Created category %s", name)
        return self.repo.require_category(owner_id, category_id)

    @invalidates_owner
    def update_category(
        self, owner_id: str, category_id: str, name=None, label=_UNSET, color=None
    ) -> Category:
        """Color and label are always editable; the name only while unreferenced."""
        category = self.repo.require_category(owner_id, category_id)
        changes: dict = {}

        if name is not None and require_name(name) != category.name:
            name = require_name(name)
            if self.store.count("activity_blocks", category_id=category_id):
                raise ValidationError(
                    f"Category {category.name!r} is referenced by blocks; its name is immutable"
                )
            if self.store.find_one("categories", owner_id=owner_id, name=name):
                raise ValidationError(f"Category {name!r} already exists")
            changes["name"] = name
        if label is not _UNSET:
            changes["label"] = label
        if color is not None:
            changes["color"] = validate_color(color)

        if changes:
            changes["updated_at"] = _now()
            self.store.update("categories", category_id, changes)
        return self.repo.require_category(owner_id, category_id)

    @invalidates_owner
    def delete_category(self, owner_id: str, category_id: str) -> int:
        """Delete a category, nulling it on dependent blocks. Returns blocks touched."""
        category = self.repo.require_category(owner_id, category_id)
        with self.store.transaction():
            touched = self.store.update_where(
                "activity_blocks", {"category_id": None}, category_id=category_id
            )
            self.store.delete("categories", category_id)
        logger.info("Deleted category %s (%d blocks uncategorized)", category.name, touched)
        return touched

    # =========================================================================
    # Day types
    # =========================================================================

    @invalidates_owner
    def create_day_type(
        self,
        owner_id: str,
        key: str,
        name: str,
        kind,
        color: str | None = None,
        is_default: bool = False,
    ) -> DayType:
        key = validate_key(key)
        name = require_name(name)
        kind = parse_kind(kind)
        color = validate_color(color)
        if self.store.find_one("day_types", owner_id=owner_id, type_key=key):
            raise ValidationError(f"Day type key {key!r} already exists")
        if self.store.find_one("day_types", owner_id=owner_id, name=name):
            raise ValidationError(f"Day type {name!r} already exists")

        now = _now()
        with self.store.transaction():
            if is_default:
                self.store.update_where(
                    "day_types", {"is_default": 0}, owner_id=owner_id, kind=kind.value
                )
            self.store.insert(
                "day_types",
                {
                    "id": new_id(),
                    "owner_id": owner_id,
                    "type_key": key,
                    "name": name,
                    "kind": kind.value,
                    "is_default": int(is_default),
                    "color": color,
                    "sort_order": self.store.count("day_types", owner_id=owner_id),
                    "created_at": now,
                    "updated_at": now,
                },
            )
        logger.info("Created day type %s (%s)", key, kind.value)
        return self.repo.require_day_type(owner_id, key)

    @invalidates_owner
    def update_day_type(
        self, owner_id: str, ref: str, name=None, color=_UNSET, sort_order=None, kind=None
    ) -> DayType:
        day_type = self.repo.require_day_type(owner_id, ref)
        changes: dict = {}

        if name is not None:
            name = require_name(name)
            other = self.store.find_one("day_types", owner_id=owner_id, name=name)
            if other and other["id"] != day_type.id:
                raise ValidationError(f"Day type {name!r} already exists")
            changes["name"] = name
        if color is not _UNSET:
            changes["color"] = validate_color(color)
        if sort_order is not None:
            changes["sort_order"] = int(sort_order)
        if kind is not None:
            kind = parse_kind(kind)
            if kind is not day_type.kind and day_type.is_default:
                raise ValidationError(
                    f"{day_type.name!r} is the default {day_type.kind.value} day type; "
                    "make another type the default before changing its kind"
                )
            changes["kind"] = kind.value

        if changes:
            changes["updated_at"] = _now()
            self.store.update("day_types", day_type.id, changes)
        return self.repo.require_day_type(owner_id, day_type.key)

    @invalidates_owner
    def set_default_day_type(self, owner_id: str, ref: str) -> DayType:
        """Make a day type the default for its kind, clearing the previous one."""
        day_type = self.repo.require_day_type(owner_id, ref)
        with self.store.transaction():
            self.store.update_where(
                "day_types", {"is_default": 0}, owner_id=owner_id, kind=day_type.kind.value
            )
            self.store.update("day_types", day_type.id, {"is_default": 1, "updated_at": _now()})
        logger.info("Default %s day type is now %s", day_type.kind.value, day_type.key)
        return self.repo.require_day_type(owner_id, day_type.key)

    @invalidates_owner
    def delete_day_type(self, owner_id: str, ref: str) -> None:
        day_type = self.repo.require_day_type(owner_id, ref)
        if day_type.key in REQUIRED_DAY_TYPES:
            raise ValidationError(f"{day_type.name!r} is a required baseline day type")
        if day_type.is_default:
            raise ValidationError(f"{day_type.name!r} is a default day type")
        if self.store.count("weekday_configs", base_day_type_id=day_type.id):
            raise ValidationError(f"{day_type.name!r} is a weekday base type")
        if self.store.count("day_overrides", day_type_id=day_type.id):
            raise ValidationError(f"{day_type.name!r} is used by date overrides")

        template = self.repo.template_row(owner_id, day_type.id)
        with self.store.transaction():
            if template:
                self.store.delete_where("activity_blocks", template_id=template["id"])
                self.store.delete("day_templates", template["id"])
            self.store.delete("day_types", day_type.id)
        logger.info("Deleted day type %s", day_type.key)

    # =========================================================================
    # Get-or-create
    # =========================================================================

    @invalidates_owner
    def ensure_template(self, owner_id: str, day_type_ref: str) -> str:
        """Template id for a day type, creating the template on first use."""
        day_type = self.repo.require_day_type(owner_id, day_type_ref)
        row = self.repo.template_row(owner_id, day_type.id)
        if row:
            return row["id"]

        template_id = self.store.insert(
            "day_templates",
            {"id": new_id(), "owner_id": owner_id, "day_type_id": day_type.id, "created_at": _now()},
        )
        logger.info("Created template for %s", day_type.key)
        return template_id

    @invalidates_owner
    def ensure_weekday_config(self, owner_id: str, weekday) -> dict:
        """Weekday config row, created with the hard-default base type on first use."""
        weekday = parse_weekday(weekday)
        row = self.repo.weekday_row(owner_id, weekday)
        if row:
            return row

        kind = DayKind.WORK_LIKE if weekday < 5 else DayKind.OFF_LIKE
        base = self.state(owner_id).default_day_type(kind)
        self.store.insert(
            "weekday_configs",
            {
                "id": new_id(),
                "owner_id": owner_id,
                "weekday": weekday,
                "base_day_type_id": base.id,
                "has_custom": 0,
                "updated_at": _now(),
            },
        )
        return self.repo.weekday_row(owner_id, weekday)

    # =========================================================================
    # Activity blocks
    # =========================================================================

    def _container_ids(self, owner_id: str, day_type, weekday) -> tuple[str | None, str | None]:
        if (day_type is None) == (weekday is None):
            raise ValidationError("Exactly one of day_type or weekday must be given")
        if day_type is not None:
            found = self.repo.require_day_type(owner_id, day_type)
            row = self.repo.template_row(owner_id, found.id)
            return (row["id"] if row else None), None
        row = self.repo.weekday_row(owner_id, parse_weekday(weekday))
        return None, (row["id"] if row else None)

    @invalidates_owner
    def add_block(
        self,
        owner_id: str,
        name: str,
        start,
        end,
        day_type: str | None = None,
        weekday=None,
        category_id: str | None = None,
        color: str | None = None,
        sort_order: int | None = None,
    ) -> ActivityBlock:
        """
        Attach a block to a day type's template or to a customized weekday.

        Overlapping blocks are allowed; use overlaps() to detect them.
        """
        if (day_type is None) == (weekday is None):
            raise ValidationError("Exactly one of day_type or weekday must be given")
        name = require_name(name)
        start_minute = parse_minute(start)
        end_minute = parse_minute(end)
        color = validate_color(color)
        if category_id is not None:
            self.repo.require_category(owner_id, category_id)

        if day_type is not None:
            template_id = self.ensure_template(owner_id, day_type)
            container = {"template_id": template_id, "weekday_config_id": None}
            siblings = self.repo.container_blocks(owner_id, template_id=template_id)
        else:
            weekday = parse_weekday(weekday)
            row = self.repo.weekday_row(owner_id, weekday)
            if row is None or not row["has_custom"]:
                raise ValidationError(
                    f"Weekday {weekday} is not customized; copy the template to it first"
                )
            container = {"template_id": None, "weekday_config_id": row["id"]}
            siblings = self.repo.container_blocks(owner_id, weekday_config_id=row["id"])

        if sort_order is None:
            sort_order = max((b.sort_order for b in siblings), default=-1) + 1

        now = _now()
        block_id = self.store.insert(
            "activity_blocks",
            {
                "id": new_id(),
                "owner_id": owner_id,
                **container,
                "name": name,
                "category_id": category_id,
                "start_minute": start_minute,
                "end_minute": end_minute,
                "color": color,
                "sort_order": int(sort_order),
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info("Added block %r %s-%s", name, start_minute, end_minute)
        return self.repo.require_block(owner_id, block_id)

    @invalidates_owner
    def update_block(
        self,
        owner_id: str,
        block_id: str,
        name=None,
        start=None,
        end=None,
        category_id=_UNSET,
        color=_UNSET,
        sort_order=None,
    ) -> ActivityBlock:
        self.repo.require_block(owner_id, block_id)
        changes: dict = {}

        if name is not None:
            changes["name"] = require_name(name)
        if start is not None:
            changes["start_minute"] = parse_minute(start)
        if end is not None:
            changes["end_minute"] = parse_minute(end)
        if category_id is not _UNSET:
            if category_id is not None:
                self.repo.require_category(owner_id, category_id)
            changes["category_id"] = category_id
        if color is not _UNSET:
            changes["color"] = validate_color(color)
        if sort_order is not None:
            changes["sort_order"] = int(sort_order)

        if changes:
            changes["updated_at"] = _now()
            self.store.update("activity_blocks", block_id, changes)
        return self.repo.require_block(owner_id, block_id)

    @invalidates_owner
    def delete_block(self, owner_id: str, block_id: str) -> None:
        block = self.repo.require_block(owner_id, block_id)
        self.store.delete("activity_blocks", block_id)
        logger.info("Deleted block %r", block.name)

    # =========================================================================
    # Weekday configuration
    # =========================================================================

    @invalidates_owner
    def copy_template_to_weekday(self, owner_id: str, weekday) -> list[ActivityBlock]:
        """
        Snapshot the weekday's resolved base-template blocks into its custom
        list and mark it custom. Rejected when already custom: reset first.
        """
        weekday = parse_weekday(weekday)
        row = self.repo.weekday_row(owner_id, weekday)
        if row and row["has_custom"]:
            raise ValidationError(
                f"Weekday {weekday} is already customized; reset it before copying again"
            )

        row = self.ensure_weekday_config(owner_id, weekday)
        state = self.state(owner_id)
        base = state.get_day_type(row["base_day_type_id"])
        source = base if base.is_work_like else state.default_day_type(DayKind.OFF_LIKE)
        template_blocks = state.template_blocks(source.id)

        now = _now()
        with self.store.transaction():
            for block in template_blocks:
                self.store.insert(
                    "activity_blocks",
                    {
                        "id": new_id(),
                        "owner_id": owner_id,
                        "template_id": None,
                        "weekday_config_id": row["id"],
                        "name": block.name,
                        "category_id": block.category_id,
                        "start_minute": block.start_minute,
                        "end_minute": block.end_minute,
                        "color": block.color,
                        "sort_order": block.sort_order,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
            self.store.update("weekday_configs", row["id"], {"has_custom": 1, "updated_at": now})

        logger.info("Weekday %d customized from %s (%d blocks)", weekday, source.key, len(template_blocks))
        return self.repo.container_blocks(owner_id, weekday_config_id=row["id"])

    @invalidates_owner
    def reset_weekday(self, owner_id: str, weekday) -> int:
        """Revert a weekday to template inheritance. Returns blocks purged."""
        weekday = parse_weekday(weekday)
        row = self.repo.weekday_row(owner_id, weekday)
        if row is None:
            return 0
        with self.store.transaction():
            purged = self.store.delete_where("activity_blocks", weekday_config_id=row["id"])
            self.store.update("weekday_configs", row["id"], {"has_custom": 0, "updated_at": _now()})
        logger.info("Weekday %d reset (%d custom blocks purged)", weekday, purged)
        return purged

    @invalidates_owner
    def set_weekday_base_type(self, owner_id: str, weekday, day_type_ref: str) -> dict:
        """Change a weekday's base type. Always clears its customization."""
        weekday = parse_weekday(weekday)
        day_type = self.repo.require_day_type(owner_id, day_type_ref)
        row = self.ensure_weekday_config(owner_id, weekday)

        with self.store.transaction():
            purged = self.store.delete_where("activity_blocks", weekday_config_id=row["id"])
            self.store.update(
                "weekday_configs",
                row["id"],
                {"base_day_type_id": day_type.id, "has_custom": 0, "updated_at": _now()},
            )
        logger.info(
            "Weekday %d base type -> %s (%d custom blocks purged)", weekday, day_type.key, purged
        )
        return self.repo.weekday_row(owner_id, weekday)

    # =========================================================================
    # Date overrides
    # =========================================================================

    @invalidates_owner
    def set_date_override(
        self, owner_id: str, d, day_type_ref: str, period="full", note: str | None = None
    ) -> DayOverride:
        """Upsert the override for (date, period)."""
        d = parse_date(d)
        period = parse_period(period)
        day_type = self.repo.require_day_type(owner_id, day_type_ref)
        iso = d.isoformat()

        with self.store.transaction():
            if period is Period.FULL:
                self.store.delete_where("day_overrides", owner_id=owner_id, date=iso, period="am")
                self.store.delete_where("day_overrides", owner_id=owner_id, date=iso, period="pm")
            else:
                self.store.delete_where("day_overrides", owner_id=owner_id, date=iso, period="full")

            existing = self.store.find_one(
                "day_overrides", owner_id=owner_id, date=iso, period=period.value
            )
            if existing:
                self.store.update(
                    "day_overrides", existing["id"], {"day_type_id": day_type.id, "note": note}
                )
            else:
                self.store.insert(
                    "day_overrides",
                    {
                        "id": new_id(),
                        "owner_id": owner_id,
                        "date": iso,
                        "period": period.value,
                        "day_type_id": day_type.id,
                        "note": note,
                        "created_at": _now(),
                    },
                )

        logger.info("Override %s/%s -> %s", iso, period.value, day_type.key)
        row = self.store.find_one("day_overrides", owner_id=owner_id, date=iso, period=period.value)
        return row_to_override(row)

    @invalidates_owner
    def clear_date_override(self, owner_id: str, d, period=None) -> int:
        """Delete the override row(s) for a date. Returns rows removed."""
        d = parse_date(d)
        if period is None:
            removed = self.store.delete_where("day_overrides", owner_id=owner_id, date=d.isoformat())
        else:
            removed = self.store.delete_where(
                "day_overrides",
                owner_id=owner_id,
                date=d.isoformat(),
                period=parse_period(period).value,
            )
        logger.info("Cleared %d override(s) on %s", removed, d.isoformat())
        return removed

    # =========================================================================
    # Settings
    # =========================================================================

    @invalidates_owner
    def update_settings(
        self,
        owner_id: str,
        region=_UNSET,
        week_start=None,
        default_view=None,
        onboarding_complete=None,
    ) -> UserSettings:
        changes: dict = {}
        if region is not _UNSET:
            if region is not None:
                region = require_name(region, "region").upper()
            changes["region"] = region
        if week_start is not None:
            changes["week_start"] = parse_weekday(week_start)
        if default_view is not None:
            if default_view not in config.VIEWS:
                raise ValidationError(
                    f"Invalid default view: {default_view!r} (expected one of {config.VIEWS})"
                )
            changes["default_view"] = default_view
        if onboarding_complete is not None:
            changes["onboarding_complete"] = int(bool(onboarding_complete))

        changes["updated_at"] = _now()
        if self.store.find_one("user_settings", owner_id=owner_id) is None:
            self.store.insert("user_settings", {"owner_id": owner_id, **changes})
        else:
            self.store.update_where("user_settings", changes, owner_id=owner_id)
        logger.info("Updated settings: %s", sorted(k for k in changes if k != "updated_at"))
        return self.repo.get_settings(owner_id)

    # =========================================================================
    # Holidays (global)
    # =========================================================================

    def save_holidays(self, holidays: list[PublicHoliday]) -> int:
        """Persist holidays to the shared table and refresh the in-memory calendar."""
        count = save_holidays(self.store, holidays)
        self.repo.holidays = self.repo.holidays.merged(HolidayCalendar(holidays))
        self.cache.clear()
        return count

    # =========================================================================
    # Export / import
    # =========================================================================

    def export_state(self, owner_id: str) -> dict:
        return transfer.export_owner_state(self.repo, owner_id)

    @invalidates_owner
    def import_state(self, owner_id: str, payload: dict) -> dict:
        """Replace the owner's state with *payload*, all or nothing."""
        return transfer.import_owner_state(self.store, owner_id, payload)
