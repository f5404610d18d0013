"""
Centralized SQL construction with validated identifiers.

All dynamic SQL assembly lives here. Table and column names are validated
against _SAFE_IDENTIFIER_RE before interpolation. Values are always passed
as parameterized ? and never interpolated.

SQLite does not support parameterized identifiers (? works only for values),
so every f-string in this file is a validated-identifier interpolation.
"""

# ruff: noqa: S608

from __future__ import annotations

import re

_SAFE_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def validate(name: str) -> str:
    """Validate that *name* is a safe SQL identifier.

    Returns the name unchanged if valid; raises ValueError otherwise.
    """
    if not isinstance(name, str) or not _SAFE_IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


# ────────────────────────────────────────────────────────────
# PRAGMA helpers
# ────────────────────────────────────────────────────────────


def pragma_table_info(table: str) -> str:
    return f"PRAGMA table_info([{validate(table)}])"


def pragma_user_version_set(version: int) -> str:
    if not isinstance(version, int) or version < 0:
        raise ValueError(f"Invalid schema version: {version!r}")
    return f"PRAGMA user_version = {version}"


# ────────────────────────────────────────────────────────────
# DML: SELECT, INSERT, UPDATE, DELETE, COUNT
# ────────────────────────────────────────────────────────────


def where_equals(columns: list[str]) -> str:
    """Build ``a = ? AND b = ?`` for validated column names."""
    return " AND ".join(f"{validate(col)} = ?" for col in columns)


def select(
    table: str,
    columns: str = "*",
    where: str | None = None,
    order_by: str | None = None,
) -> str:
    """Build SELECT with validated table name.

    *where* is a raw WHERE clause without the keyword and must use ``?``
    for all values.
    """
    sql = f"SELECT {columns} FROM {validate(table)}"
    if where:
        sql += f" WHERE {where}"
    if order_by:
        sql += f" ORDER BY {order_by}"
    return sql


def select_count(table: str, where: str | None = None) -> str:
    sql = f"SELECT COUNT(*) as c FROM {validate(table)}"
    if where:
        sql += f" WHERE {where}"
    return sql


def insert(table: str, columns: list[str]) -> str:
    """Build a plain INSERT; unique violations surface as sqlite3.IntegrityError."""
    validate(table)
    for col in columns:
        validate(col)
    cols = ",".join(columns)
    placeholders = ",".join(["?" for _ in columns])
    return f"INSERT INTO {table} ({cols}) VALUES ({placeholders})"


def insert_or_replace(table: str, columns: list[str]) -> str:
    validate(table)
    for col in columns:
        validate(col)
    cols = ",".join(columns)
    placeholders = ",".join(["?" for _ in columns])
    return f"INSERT OR REPLACE INTO {table} ({cols}) VALUES ({placeholders})"


def update(table: str, set_columns: list[str], where: str = "id = ?") -> str:
    validate(table)
    for col in set_columns:
        validate(col)
    sets = ",".join(f"{col} = ?" for col in set_columns)
    return f"UPDATE {table} SET {sets} WHERE {where}"


def delete(table: str, where: str = "id = ?") -> str:
    return f"DELETE FROM {validate(table)} WHERE {where}"
