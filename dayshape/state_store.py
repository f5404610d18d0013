"""
State Store - the key-value style read/write contract behind the planner.

Every planner component reads from and writes to a StateStore. SQLite for
persistence; rows come back as plain dicts.
"""

import json
import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dayshape import db as db_module
from dayshape import safe_sql

logger = logging.getLogger(__name__)


def _encode(value):
    return json.dumps(value) if isinstance(value, dict | list) else value


class StateStore:
    """
    Row store over one SQLite file.

    Writes outside ``transaction()`` commit immediately. Inside it they share
    one connection and commit together, or roll back together on error.
    The transaction connection is per thread; other threads keep using
    their own short-lived connections.
    """

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = str(db_path or db_module.get_db_path_str())
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()

        db_module.ensure_migrations(self.db_path)
        logger.debug("StateStore ready, DB path: %s", self.db_path)

    @property
    def _tx_conn(self) -> sqlite3.Connection | None:
        return getattr(self._local, "conn", None)

    @contextmanager
    def _get_conn(self) -> Iterator[sqlite3.Connection]:
        tx_conn = self._tx_conn
        if tx_conn is not None:
            yield tx_conn
            return

        conn = db_module.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator["StateStore"]:
        """
        Group writes atomically.

        Usage:
            with store.transaction():
                store.delete_where("day_overrides", owner_id=owner)
                store.insert("day_overrides", row)
        """
        if self._tx_conn is not None:
            # Nested: join the outer transaction.
            yield self
            return

        conn = db_module.connect(self.db_path)
        self._local.conn = conn
        try:
            yield self
            conn.commit()
        except BaseException:
            conn.rollback()
            logger.warning("Transaction rolled back on %s", self.db_path)
            raise
        finally:
            self._local.conn = None
            conn.close()

    # ==================== CRUD Operations ====================

    def insert(self, table: str, data: dict) -> str:
        """Insert a row. Returns ID."""
        columns = list(data.keys())
        values = [_encode(v) for v in data.values()]

        with self._get_conn() as conn:
            conn.execute(safe_sql.insert(table, columns), values)

        return data.get("id", "")

    def upsert(self, table: str, data: dict) -> str:
        """Insert or replace a row by its primary/unique key."""
        columns = list(data.keys())
        values = [_encode(v) for v in data.values()]

        with self._get_conn() as conn:
            conn.execute(safe_sql.insert_or_replace(table, columns), values)

        return data.get("id", "")

    def insert_many(self, table: str, items: list[dict]) -> int:
        """Insert multiple rows. Returns count."""
        if not items:
            return 0

        columns = list(items[0].keys())
        sql = safe_sql.insert(table, columns)

        with self._get_conn() as conn:
            for item in items:
                conn.execute(sql, [_encode(item[c]) for c in columns])

        return len(items)

    def get(self, table: str, id: str) -> dict | None:
        """Get a single row by ID."""
        with self._get_conn() as conn:
            row = conn.execute(safe_sql.select(table, where="id = ?"), [id]).fetchone()
            return dict(row) if row else None

    def find(self, table: str, order_by: str | None = None, **equals) -> list[dict]:
        """Rows whose columns equal the given keyword values."""
        where = safe_sql.where_equals(list(equals)) if equals else None
        sql = safe_sql.select(table, where=where, order_by=order_by)
        return self.query(sql, list(equals.values()))

    def find_one(self, table: str, **equals) -> dict | None:
        rows = self.find(table, **equals)
        return rows[0] if rows else None

    def update(self, table: str, id: str, data: dict) -> bool:
        """Update a row by ID."""
        if not data:
            return False

        values = [_encode(v) for v in data.values()]
        values.append(id)

        with self._get_conn() as conn:
            result = conn.execute(safe_sql.update(table, list(data.keys())), values)
            return result.rowcount > 0

    def update_where(self, table: str, data: dict, **equals) -> int:
        """Update every row matching *equals*. Returns affected count."""
        if not data or not equals:
            return 0

        sql = safe_sql.update(table, list(data.keys()), where=safe_sql.where_equals(list(equals)))
        values = [_encode(v) for v in data.values()] + list(equals.values())

        with self._get_conn() as conn:
            return conn.execute(sql, values).rowcount

    def delete(self, table: str, id: str) -> bool:
        """Delete a row by ID."""
        with self._get_conn() as conn:
            result = conn.execute(safe_sql.delete(table), [id])
            return result.rowcount > 0

    def delete_where(self, table: str, **equals) -> int:
        """Delete every row matching *equals*. Returns affected count."""
        if not equals:
            raise ValueError("delete_where requires at least one condition")

        sql = safe_sql.delete(table, where=safe_sql.where_equals(list(equals)))
        with self._get_conn() as conn:
            return conn.execute(sql, list(equals.values())).rowcount

    def query(self, sql: str, params: list | None = None) -> list[dict]:
        """Execute raw query. Returns list of dicts."""
        with self._get_conn() as conn:
            rows = conn.execute(sql, params or []).fetchall()
            return [dict(row) for row in rows]

    def count(self, table: str, **equals) -> int:
        """Count rows matching *equals*."""
        where = safe_sql.where_equals(list(equals)) if equals else None
        sql = safe_sql.select_count(table, where=where)

        with self._get_conn() as conn:
            row = conn.execute(sql, list(equals.values())).fetchone()
            return row["c"] if row else 0


# Process-wide accessor for the default database
_stores: dict[str, StateStore] = {}
_stores_lock = threading.Lock()


def get_store(db_path: str | Path | None = None) -> StateStore:
    """Get the shared store for *db_path* (default: the configured DB)."""
    key = str(db_path or db_module.get_db_path_str())
    with _stores_lock:
        if key not in _stores:
            _stores[key] = StateStore(key)
        return _stores[key]
