"""
Owner state export and import.

The exported document is plain JSON. Day types are referenced by their
stable key and categories by name, so ids never leave the database:

    {
      "format": "dayshape",
      "version": 1,
      "settings": {...},
      "categories": [{"name", "label", "color"}],
      "day_types": [{"key", "name", "kind", "is_default", "color",
                     "sort_order", "template": [block, ...]}],
      "weekdays": [{"weekday", "base_day_type", "has_custom",
                    "blocks": [block, ...]}],
      "overrides": [{"date", "period", "day_type", "note"}]
    }

where block is {"name", "start": "HH:MM", "end": "HH:MM", "category",
"color", "sort_order"}.

Import validates the whole document first. Malformed values raise
ValidationError, references that do not resolve within the document raise
IntegrityError. Only then is the owner's state replaced, inside one
transaction.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from dayshape import config
from dayshape.errors import IntegrityError, ValidationError
from dayshape.planner.models import (
    OFF_DAY,
    PUBLIC_HOLIDAY,
    WORK_DAY,
    DayKind,
    Period,
    format_minute,
    parse_date,
    parse_kind,
    parse_minute,
    parse_period,
    parse_weekday,
    require_name,
    validate_color,
    validate_key,
)
from dayshape.planner.repository import PlannerRepository, new_id
from dayshape.schema import OWNER_TABLES_DELETE_ORDER
from dayshape.state_store import StateStore

logger = logging.getLogger(__name__)

EXPORT_FORMAT = "dayshape"
EXPORT_VERSION = 1

_REQUIRED_KEYS = (WORK_DAY, OFF_DAY, PUBLIC_HOLIDAY)


# =============================================================================
# EXPORT
# =============================================================================


def _export_blocks(blocks, category_names: dict[str, str]) -> list[dict]:
    return [
        {
            "name": block.name,
            "start": format_minute(block.start_minute),
            "end": format_minute(block.end_minute),
            "category": category_names.get(block.category_id),
            "color": block.color,
            "sort_order": block.sort_order,
        }
        for block in blocks
    ]


def export_owner_state(repo: PlannerRepository, owner_id: str) -> dict:
    """Serialize one owner's planning state to a JSON-compatible dict."""
    state = repo.load_state(owner_id)
    category_names = {c.id: c.name for c in state.categories.values()}

    day_types = []
    for day_type in sorted(state.day_types.values(), key=lambda dt: (dt.sort_order, dt.key)):
        day_types.append(
            {
                "key": day_type.key,
                "name": day_type.name,
                "kind": day_type.kind.value,
                "is_default": day_type.is_default,
                "color": day_type.color,
                "sort_order": day_type.sort_order,
                "template": _export_blocks(state.template_blocks(day_type.id), category_names),
            }
        )

    weekdays = []
    for weekday in sorted(state.weekdays):
        weekday_config = state.weekdays[weekday]
        weekdays.append(
            {
                "weekday": weekday,
                "base_day_type": state.get_day_type(weekday_config.base_day_type_id).key,
                "has_custom": weekday_config.has_custom,
                "blocks": _export_blocks(weekday_config.custom_blocks, category_names),
            }
        )

    overrides = [
        {
            "date": override.date.isoformat(),
            "period": override.period.value,
            "day_type": state.get_day_type(override.day_type_id).key,
            "note": override.note,
        }
        for _, override in sorted(
            state.overrides.items(), key=lambda item: (item[0][0], item[0][1].value)
        )
    ]

    payload = {
        "format": EXPORT_FORMAT,
        "version": EXPORT_VERSION,
        "exported_at": datetime.now().isoformat(),
        "owner_id": owner_id,
        "settings": state.settings.to_dict(),
        "categories": [
            {"name": c.name, "label": c.label, "color": c.color}
            for c in sorted(state.categories.values(), key=lambda c: c.name)
        ],
        "day_types": day_types,
        "weekdays": weekdays,
        "overrides": overrides,
    }
    logger.info(
        "Exported %d day types, %d weekdays, %d overrides for %s",
        len(day_types),
        len(weekdays),
        len(overrides),
        owner_id,
    )
    return payload


# =============================================================================
# VALIDATION
# =============================================================================


def _require_list(payload: dict, field: str) -> list:
    value = payload.get(field, [])
    if not isinstance(value, list):
        raise ValidationError(f"'{field}' must be a list")
    return value


def _require_dict(value, what: str) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(f"{what} must be an object")
    return value


def _parse_sort_order(value, what: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{what} sort_order must be an integer")
    return value


def _parse_blocks(entries, where: str, category_names: set[str], problems: list[str]) -> list[dict]:
    if not isinstance(entries, list):
        raise ValidationError(f"{where}: blocks must be a list")

    parsed = []
    for index, entry in enumerate(entries):
        entry = _require_dict(entry, f"{where} block {index}")
        category = entry.get("category")
        if category is not None and category not in category_names:
            problems.append(f"{where} block {index} references unknown category {category!r}")
        parsed.append(
            {
                "name": require_name(entry.get("name"), f"{where} block {index} name"),
                "start_minute": parse_minute(entry.get("start")),
                "end_minute": parse_minute(entry.get("end")),
                "category": category,
                "color": validate_color(entry.get("color")),
                "sort_order": _parse_sort_order(entry.get("sort_order"), f"{where} block {index}"),
            }
        )
    return parsed


def validate_payload(payload) -> dict:
    """
    Check an export document end to end and return it normalized.

    Raises:
        ValidationError: malformed structure or values
        IntegrityError: references that do not resolve inside the document
    """
    payload = _require_dict(payload, "Import payload")
    if payload.get("format") != EXPORT_FORMAT:
        raise ValidationError(f"Unknown import format: {payload.get('format')!r}")
    if payload.get("version") != EXPORT_VERSION:
        raise ValidationError(f"Unsupported export version: {payload.get('version')!r}")

    problems: list[str] = []

    settings = _require_dict(payload.get("settings") or {}, "settings")
    default_view = settings.get("default_view") or config.DEFAULT_VIEW
    if default_view not in config.VIEWS:
        raise ValidationError(f"Invalid default view: {default_view!r}")
    region = settings.get("region")
    normalized_settings = {
        "region": require_name(region, "region").upper() if region is not None else None,
        "week_start": parse_weekday(settings.get("week_start") or 0),
        "default_view": default_view,
        "onboarding_complete": bool(settings.get("onboarding_complete")),
    }

    categories = []
    category_names: set[str] = set()
    for index, entry in enumerate(_require_list(payload, "categories")):
        entry = _require_dict(entry, f"category {index}")
        name = require_name(entry.get("name"), f"category {index} name")
        if name in category_names:
            problems.append(f"duplicate category {name!r}")
        category_names.add(name)
        categories.append(
            {
                "name": name,
                "label": entry.get("label"),
                "color": validate_color(entry.get("color")) or "#9e9e9e",
            }
        )

    day_types = []
    type_keys: set[str] = set()
    type_names: set[str] = set()
    defaults: dict[DayKind, int] = {}
    for index, entry in enumerate(_require_list(payload, "day_types")):
        entry = _require_dict(entry, f"day type {index}")
        key = validate_key(entry.get("key"))
        name = require_name(entry.get("name"), f"day type {key} name")
        kind = parse_kind(entry.get("kind"))
        if key in type_keys:
            problems.append(f"duplicate day type key {key!r}")
        if name in type_names:
            problems.append(f"duplicate day type name {name!r}")
        type_keys.add(key)
        type_names.add(name)
        if entry.get("is_default"):
            defaults[kind] = defaults.get(kind, 0) + 1
        day_types.append(
            {
                "key": key,
                "name": name,
                "kind": kind,
                "is_default": bool(entry.get("is_default")),
                "color": validate_color(entry.get("color")),
                "sort_order": _parse_sort_order(entry.get("sort_order"), f"day type {key}"),
                "template": _parse_blocks(
                    entry.get("template") or [], f"day type {key}", category_names, problems
                ),
            }
        )

    for key in _REQUIRED_KEYS:
        if key not in type_keys:
            problems.append(f"missing required day type {key!r}")
    for kind, count in defaults.items():
        if count > 1:
            problems.append(f"{count} default {kind.value} day types")

    weekdays = []
    seen_weekdays: set[int] = set()
    for index, entry in enumerate(_require_list(payload, "weekdays")):
        entry = _require_dict(entry, f"weekday entry {index}")
        weekday = parse_weekday(entry.get("weekday"))
        if weekday in seen_weekdays:
            problems.append(f"duplicate weekday {weekday}")
        seen_weekdays.add(weekday)
        base = entry.get("base_day_type")
        if base not in type_keys:
            problems.append(f"weekday {weekday} references unknown day type {base!r}")
        has_custom = bool(entry.get("has_custom"))
        blocks = _parse_blocks(
            entry.get("blocks") or [], f"weekday {weekday}", category_names, problems
        )
        if blocks and not has_custom:
            problems.append(f"weekday {weekday} has blocks but is not customized")
        weekdays.append(
            {"weekday": weekday, "base_day_type": base, "has_custom": has_custom, "blocks": blocks}
        )

    overrides = []
    periods_by_date: dict = {}
    for index, entry in enumerate(_require_list(payload, "overrides")):
        entry = _require_dict(entry, f"override {index}")
        d = parse_date(entry.get("date"))
        period = parse_period(entry.get("period") or "full")
        day_type = entry.get("day_type")
        if day_type not in type_keys:
            problems.append(f"override {d.isoformat()} references unknown day type {day_type!r}")
        periods = periods_by_date.setdefault(d, set())
        if period in periods:
            problems.append(f"duplicate override {d.isoformat()}/{period.value}")
        periods.add(period)
        overrides.append({"date": d, "period": period, "day_type": day_type, "note": entry.get("note")})

    for d, periods in periods_by_date.items():
        if Period.FULL in periods and len(periods) > 1:
            problems.append(f"override {d.isoformat()} mixes full and half-day periods")

    if problems:
        raise IntegrityError(problems)

    return {
        "settings": normalized_settings,
        "categories": categories,
        "day_types": day_types,
        "weekdays": weekdays,
        "overrides": overrides,
    }


# =============================================================================
# IMPORT
# =============================================================================


def _block_rows(owner_id: str, blocks: list[dict], category_ids: dict, now: str, **container):
    return [
        {
            "id": new_id(),
            "owner_id": owner_id,
            "template_id": container.get("template_id"),
            "weekday_config_id": container.get("weekday_config_id"),
            "name": block["name"],
            "category_id": category_ids.get(block["category"]),
            "start_minute": block["start_minute"],
            "end_minute": block["end_minute"],
            "color": block["color"],
            "sort_order": block["sort_order"],
            "created_at": now,
            "updated_at": now,
        }
        for block in blocks
    ]


def import_owner_state(store: StateStore, owner_id: str, payload) -> dict:
    """
    Replace one owner's planning state with an exported document.

    Nothing is written unless the whole document validates; the purge and
    the inserts share one transaction.

    Returns:
        Counts of imported rows per entity.
    """
    doc = validate_payload(payload)
    now = datetime.now().isoformat()

    category_ids: dict[str, str] = {}
    type_ids: dict[str, str] = {}
    counts = {"categories": 0, "day_types": 0, "blocks": 0, "weekdays": 0, "overrides": 0}

    with store.transaction():
        for table in OWNER_TABLES_DELETE_ORDER:
            store.delete_where(table, owner_id=owner_id)

        store.insert("user_settings", {"owner_id": owner_id, **doc["settings"], "updated_at": now})

        for category in doc["categories"]:
            category_ids[category["name"]] = store.insert(
                "categories",
                {"id": new_id(), "owner_id": owner_id, **category, "created_at": now, "updated_at": now},
            )
            counts["categories"] += 1

        for day_type in doc["day_types"]:
            type_id = store.insert(
                "day_types",
                {
                    "id": new_id(),
                    "owner_id": owner_id,
                    "type_key": day_type["key"],
                    "name": day_type["name"],
                    "kind": day_type["kind"].value,
                    "is_default": int(day_type["is_default"]),
                    "color": day_type["color"],
                    "sort_order": day_type["sort_order"],
                    "created_at": now,
                    "updated_at": now,
                },
            )
            type_ids[day_type["key"]] = type_id
            counts["day_types"] += 1

            if day_type["template"]:
                template_id = store.insert(
                    "day_templates",
                    {"id": new_id(), "owner_id": owner_id, "day_type_id": type_id, "created_at": now},
                )
                counts["blocks"] += store.insert_many(
                    "activity_blocks",
                    _block_rows(owner_id, day_type["template"], category_ids, now, template_id=template_id),
                )

        for weekday in doc["weekdays"]:
            config_id = store.insert(
                "weekday_configs",
                {
                    "id": new_id(),
                    "owner_id": owner_id,
                    "weekday": weekday["weekday"],
                    "base_day_type_id": type_ids[weekday["base_day_type"]],
                    "has_custom": int(weekday["has_custom"]),
                    "updated_at": now,
                },
            )
            counts["weekdays"] += 1
            counts["blocks"] += store.insert_many(
                "activity_blocks",
                _block_rows(owner_id, weekday["blocks"], category_ids, now, weekday_config_id=config_id),
            )

        for override in doc["overrides"]:
            store.insert(
                "day_overrides",
                {
                    "id": new_id(),
                    "owner_id": owner_id,
                    "date": override["date"].isoformat(),
                    "period": override["period"].value,
                    "day_type_id": type_ids[override["day_type"]],
                    "note": override["note"],
                    "created_at": now,
                },
            )
            counts["overrides"] += 1

    logger.info("Imported state for %s: %s", owner_id, counts)
    return counts


# =============================================================================
# FILES
# =============================================================================


def write_payload(payload: dict, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(payload, f, indent=2, sort_keys=False)
    return path


def load_payload(path: str | Path) -> dict:
    """Read an export document. Unparseable JSON is a ValidationError."""
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path} is not valid JSON: {e}") from e
