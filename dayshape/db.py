"""
Centralized Database Access for dayshape.

Single source of truth for:
- DB path resolution
- Connection factory
- Schema convergence (delegated to schema_engine)

Schema is declared in dayshape.schema. Convergence logic lives in
dayshape.schema_engine. This module wires them together.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from dayshape import paths, schema, schema_engine

logger = logging.getLogger(__name__)

# ============================================================
# DB PATH RESOLUTION
# ============================================================


def get_db_path() -> Path:
    """
    Get the canonical DB path.

    Resolution order:
    1. DAYSHAPE_DB env var (explicit override)
    2. ~/.dayshape/data/dayshape.db
    """
    return paths.db_path()


def get_db_path_str() -> str:
    return str(get_db_path())


# ============================================================
# CONNECTION FACTORY
# ============================================================


def connect(db_path: str | Path) -> sqlite3.Connection:
    """Open a connection with row factory and FK enforcement."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


@contextmanager
def get_connection(db_path: str | Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Get a database connection with proper setup.

    Usage:
        with get_connection() as conn:
            conn.execute(...)
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = connect(path)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


# ============================================================
# SCHEMA INTROSPECTION
# ============================================================


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
    return cursor.fetchone() is not None


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from PRAGMA user_version."""
    cursor = conn.execute("PRAGMA user_version")
    return cursor.fetchone()[0]


# ============================================================
# SCHEMA CONVERGENCE
# ============================================================

_converged_paths: set[str] = set()


def run_migrations(conn: sqlite3.Connection) -> dict:
    """Converge the database schema to match dayshape.schema declarations."""
    previous_version = get_schema_version(conn)
    results = schema_engine.converge(conn)
    results["previous_version"] = previous_version
    return results


def ensure_migrations(db_path: str | Path | None = None) -> dict:
    """
    Converge the schema of *db_path* once per process. Safe to call repeatedly.
    """
    path = str(Path(db_path) if db_path else get_db_path())
    if path in _converged_paths:
        return {"status": "skipped"}

    logger.info("Resolved DB path: %s", path)
    logger.info("Target SCHEMA_VERSION: %s", schema.SCHEMA_VERSION)

    with get_connection(path) as conn:
        results = run_migrations(conn)

    if results.get("tables_created"):
        logger.info("Tables created: %s", results["tables_created"])
    if results.get("columns_added"):
        logger.info("Columns added: %s", results["columns_added"])
    if results.get("errors"):
        logger.warning("Convergence errors: %s", results["errors"])

    _converged_paths.add(path)
    return results
