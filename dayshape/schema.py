"""
Declarative Schema Definition.

Every table, column and index for dayshape lives here. Nothing else defines
schema. The schema_engine reads this and converges any database to match.

Adding a column = add one line here. The engine handles the rest.

Column definitions use CREATE TABLE syntax. The schema_engine knows how
to derive ALTER TABLE ADD COLUMN DDL (strips PK, adjusts NOT NULL, etc.).
"""

from collections import OrderedDict

# =============================================================================
# Schema version - bump when you change this file
# =============================================================================
SCHEMA_VERSION = 3

# =============================================================================
# Table Definitions
#
# Format: TABLES[name] = {
#     "columns": [(col_name, col_ddl), ...],
#     "unique": [(col, ...), ...],      # optional table-level UNIQUE
#     "checks": [expr, ...],            # optional table-level CHECK
# }
# =============================================================================

TABLES: dict[str, dict] = OrderedDict()

# ---------------------------------------------------------------------------
# Owner settings
# ---------------------------------------------------------------------------
TABLES["user_settings"] = {
    "columns": [
        ("owner_id", "TEXT PRIMARY KEY"),
        ("region", "TEXT"),
        ("week_start", "INTEGER NOT NULL DEFAULT 0"),
        ("default_view", "TEXT NOT NULL DEFAULT 'week'"),
        ("onboarding_complete", "INTEGER NOT NULL DEFAULT 0"),
        ("updated_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
}

# ---------------------------------------------------------------------------
# Categories (label + color tags on blocks)
# ---------------------------------------------------------------------------
TABLES["categories"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("owner_id", "TEXT NOT NULL"),
        ("name", "TEXT NOT NULL"),
        ("label", "TEXT"),
        ("color", "TEXT NOT NULL DEFAULT '#9e9e9e'"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
        ("updated_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
    "unique": [("owner_id", "name")],
}

# ---------------------------------------------------------------------------
# Day types and their templates
# ---------------------------------------------------------------------------
TABLES["day_types"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("owner_id", "TEXT NOT NULL"),
        ("type_key", "TEXT NOT NULL"),
        ("name", "TEXT NOT NULL"),
        ("kind", "TEXT NOT NULL CHECK (kind IN ('work', 'off'))"),
        ("is_default", "INTEGER NOT NULL DEFAULT 0"),
        ("color", "TEXT"),
        ("sort_order", "INTEGER NOT NULL DEFAULT 0"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
        ("updated_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
    "unique": [("owner_id", "type_key"), ("owner_id", "name")],
}

TABLES["day_templates"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("owner_id", "TEXT NOT NULL"),
        ("day_type_id", "TEXT NOT NULL REFERENCES day_types(id) ON DELETE CASCADE"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
    "unique": [("day_type_id",)],
}

# ---------------------------------------------------------------------------
# Weekday configuration (one per owner and weekday)
# ---------------------------------------------------------------------------
TABLES["weekday_configs"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("owner_id", "TEXT NOT NULL"),
        ("weekday", "INTEGER NOT NULL CHECK (weekday BETWEEN 0 AND 6)"),
        ("base_day_type_id", "TEXT NOT NULL REFERENCES day_types(id)"),
        ("has_custom", "INTEGER NOT NULL DEFAULT 0"),
        ("updated_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
    "unique": [("owner_id", "weekday")],
}

# ---------------------------------------------------------------------------
# Activity blocks: owned by a template OR a weekday config, never both
# ---------------------------------------------------------------------------
TABLES["activity_blocks"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("owner_id", "TEXT NOT NULL"),
        ("template_id", "TEXT REFERENCES day_templates(id) ON DELETE CASCADE"),
        ("weekday_config_id", "TEXT REFERENCES weekday_configs(id) ON DELETE CASCADE"),
        ("name", "TEXT NOT NULL"),
        ("category_id", "TEXT REFERENCES categories(id) ON DELETE SET NULL"),
        ("start_minute", "INTEGER NOT NULL CHECK (start_minute BETWEEN 0 AND 1439)"),
        ("end_minute", "INTEGER NOT NULL CHECK (end_minute BETWEEN 0 AND 1439)"),
        ("color", "TEXT"),
        ("sort_order", "INTEGER NOT NULL DEFAULT 0"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
        ("updated_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
    "checks": ["(template_id IS NULL) <> (weekday_config_id IS NULL)"],
}

# ---------------------------------------------------------------------------
# Date overrides (full day or half day)
# ---------------------------------------------------------------------------
TABLES["day_overrides"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("owner_id", "TEXT NOT NULL"),
        ("date", "TEXT NOT NULL"),
        ("period", "TEXT NOT NULL DEFAULT 'full' CHECK (period IN ('full', 'am', 'pm'))"),
        ("day_type_id", "TEXT NOT NULL REFERENCES day_types(id)"),
        ("note", "TEXT"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
    "unique": [("owner_id", "date", "period")],
}

# ---------------------------------------------------------------------------
# Public holidays (global reference data, not owned)
# ---------------------------------------------------------------------------
TABLES["public_holidays"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("region", "TEXT NOT NULL"),
        ("date", "TEXT NOT NULL"),
        ("name", "TEXT NOT NULL"),
    ],
    "unique": [("region", "date")],
}


# =============================================================================
# Indexes
#
# Format: (index_name, table, columns_expr, where_clause_or_None)
# =============================================================================

INDEXES: list[tuple[str, str, str, str | None]] = [
    ("idx_categories_owner", "categories", "owner_id", None),
    ("idx_day_types_owner", "day_types", "owner_id", None),
    ("idx_day_templates_owner", "day_templates", "owner_id", None),
    ("idx_weekday_configs_owner", "weekday_configs", "owner_id", None),
    ("idx_blocks_template", "activity_blocks", "template_id", "template_id IS NOT NULL"),
    (
        "idx_blocks_weekday",
        "activity_blocks",
        "weekday_config_id",
        "weekday_config_id IS NOT NULL",
    ),
    ("idx_blocks_category", "activity_blocks", "category_id", None),
    ("idx_overrides_owner_date", "day_overrides", "owner_id, date", None),
    ("idx_holidays_region_date", "public_holidays", "region, date", None),
]

# Deletion order that respects foreign keys when purging an owner.
OWNER_TABLES_DELETE_ORDER: tuple[str, ...] = (
    "activity_blocks",
    "day_overrides",
    "weekday_configs",
    "day_templates",
    "day_types",
    "categories",
    "user_settings",
)
