"""
Planner Repository - reads planner rows from the StateStore and maps them to
model objects.

The repository never writes scheduling data; validated writes live in
PlannerService. The only writes here are to the global public_holidays
reference table.
"""

import logging
import uuid
from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from dayshape.errors import NotFoundError
from dayshape.planner.holidays import HolidayCalendar, PublicHoliday
from dayshape.planner.models import (
    ActivityBlock,
    Category,
    DayKind,
    DayOverride,
    DayTemplate,
    DayType,
    Period,
    UserSettings,
    UserState,
    WeekdayConfig,
    sort_blocks,
)
from dayshape.state_store import StateStore

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex


# =============================================================================
# ROW MAPPERS
# =============================================================================


def row_to_category(row: dict) -> Category:
    return Category(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        color=row["color"],
        label=row.get("label"),
    )


def row_to_day_type(row: dict) -> DayType:
    return DayType(
        id=row["id"],
        owner_id=row["owner_id"],
        key=row["type_key"],
        name=row["name"],
        kind=DayKind(row["kind"]),
        is_default=bool(row["is_default"]),
        color=row.get("color"),
        sort_order=row.get("sort_order") or 0,
    )


def row_to_block(row: dict) -> ActivityBlock:
    return ActivityBlock(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        start_minute=row["start_minute"],
        end_minute=row["end_minute"],
        category_id=row.get("category_id"),
        color=row.get("color"),
        sort_order=row.get("sort_order") or 0,
        template_id=row.get("template_id"),
        weekday_config_id=row.get("weekday_config_id"),
    )


def row_to_override(row: dict) -> DayOverride:
    return DayOverride(
        id=row["id"],
        date=date.fromisoformat(row["date"]),
        period=Period(row["period"]),
        day_type_id=row["day_type_id"],
        note=row.get("note"),
    )


def row_to_settings(row: dict | None, owner_id: str) -> UserSettings:
    if row is None:
        return UserSettings(owner_id=owner_id)
    return UserSettings(
        owner_id=owner_id,
        region=row.get("region"),
        week_start=row.get("week_start") or 0,
        default_view=row.get("default_view") or "week",
        onboarding_complete=bool(row.get("onboarding_complete")),
    )


# =============================================================================
# REPOSITORY
# =============================================================================


class PlannerRepository:
    """Owner-scoped reads over the planner tables."""

    def __init__(self, store: StateStore, holidays: HolidayCalendar | None = None):
        self.store = store
        self.holidays = holidays if holidays is not None else HolidayCalendar()

    # ==================== Snapshot ====================

    def load_state(self, owner_id: str, holidays: HolidayCalendar | None = None) -> UserState:
        """Read everything the resolver needs for one owner."""
        day_types = {
            row["id"]: row_to_day_type(row)
            for row in self.store.find("day_types", order_by="sort_order, name", owner_id=owner_id)
        }
        categories = {
            row["id"]: row_to_category(row)
            for row in self.store.find("categories", order_by="name", owner_id=owner_id)
        }

        blocks_by_template: dict[str, list[ActivityBlock]] = defaultdict(list)
        blocks_by_weekday: dict[str, list[ActivityBlock]] = defaultdict(list)
        for row in self.store.find("activity_blocks", owner_id=owner_id):
            block = row_to_block(row)
            if block.template_id:
                blocks_by_template[block.template_id].append(block)
            else:
                blocks_by_weekday[block.weekday_config_id].append(block)

        templates = {}
        for row in self.store.find("day_templates", owner_id=owner_id):
            templates[row["day_type_id"]] = DayTemplate(
                id=row["id"],
                day_type_id=row["day_type_id"],
                blocks=tuple(sort_blocks(blocks_by_template.get(row["id"], []))),
            )

        weekdays = {}
        for row in self.store.find("weekday_configs", owner_id=owner_id):
            has_custom = bool(row["has_custom"])
            weekdays[row["weekday"]] = WeekdayConfig(
                id=row["id"],
                weekday=row["weekday"],
                base_day_type_id=row["base_day_type_id"],
                has_custom=has_custom,
                custom_blocks=tuple(sort_blocks(blocks_by_weekday.get(row["id"], []))),
            )

        overrides = {}
        for row in self.store.find("day_overrides", owner_id=owner_id):
            override = row_to_override(row)
            overrides[(override.date, override.period)] = override

        return UserState(
            owner_id=owner_id,
            settings=self.get_settings(owner_id),
            day_types=day_types,
            categories=categories,
            templates=templates,
            weekdays=weekdays,
            overrides=overrides,
            holidays=holidays if holidays is not None else self.holidays,
        )

    # ==================== Single lookups ====================

    def get_settings(self, owner_id: str) -> UserSettings:
        return row_to_settings(self.store.find_one("user_settings", owner_id=owner_id), owner_id)

    def list_day_types(self, owner_id: str) -> list[DayType]:
        rows = self.store.find("day_types", order_by="sort_order, name", owner_id=owner_id)
        return [row_to_day_type(row) for row in rows]

    def find_day_type(self, owner_id: str, ref: str) -> DayType | None:
        """Look up a day type by key, then by display name."""
        row = self.store.find_one("day_types", owner_id=owner_id, type_key=ref)
        if row is None:
            row = self.store.find_one("day_types", owner_id=owner_id, name=ref)
        return row_to_day_type(row) if row else None

    def require_day_type(self, owner_id: str, ref: str) -> DayType:
        day_type = self.find_day_type(owner_id, ref)
        if day_type is None:
            raise NotFoundError("DayType", ref)
        return day_type

    def list_categories(self, owner_id: str) -> list[Category]:
        rows = self.store.find("categories", order_by="name", owner_id=owner_id)
        return [row_to_category(row) for row in rows]

    def require_category(self, owner_id: str, category_id: str) -> Category:
        row = self.store.find_one("categories", owner_id=owner_id, id=category_id)
        if row is None:
            raise NotFoundError("Category", category_id)
        return row_to_category(row)

    def require_block(self, owner_id: str, block_id: str) -> ActivityBlock:
        row = self.store.find_one("activity_blocks", owner_id=owner_id, id=block_id)
        if row is None:
            raise NotFoundError("ActivityBlock", block_id)
        return row_to_block(row)

    def template_row(self, owner_id: str, day_type_id: str) -> dict | None:
        return self.store.find_one("day_templates", owner_id=owner_id, day_type_id=day_type_id)

    def weekday_row(self, owner_id: str, weekday: int) -> dict | None:
        return self.store.find_one("weekday_configs", owner_id=owner_id, weekday=weekday)

    def container_blocks(
        self, owner_id: str, template_id: str | None = None, weekday_config_id: str | None = None
    ) -> list[ActivityBlock]:
        if template_id is not None:
            rows = self.store.find("activity_blocks", owner_id=owner_id, template_id=template_id)
        else:
            rows = self.store.find(
                "activity_blocks", owner_id=owner_id, weekday_config_id=weekday_config_id
            )
        return sort_blocks(row_to_block(row) for row in rows)


# =============================================================================
# PUBLIC HOLIDAY TABLE
# =============================================================================


def load_holidays(store: StateStore, region: str | None = None) -> HolidayCalendar:
    """HolidayCalendar from the public_holidays table (optionally one region)."""
    if region:
        rows = store.find("public_holidays", region=region.upper())
    else:
        rows = store.find("public_holidays")
    return HolidayCalendar.from_rows(rows)


def save_holidays(store: StateStore, holidays: Iterable[PublicHoliday]) -> int:
    """Upsert holidays keyed by (region, date). Returns count written."""
    count = 0
    with store.transaction():
        for holiday in holidays:
            region = holiday.region.upper()
            store.upsert(
                "public_holidays",
                {
                    "id": new_id(),
                    "region": region,
                    "date": holiday.date.isoformat(),
                    "name": holiday.name,
                },
            )
            count += 1
    logger.info("Saved %d public holidays", count)
    return count
