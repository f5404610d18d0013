from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "DAYSHAPE_HOME"
APP_ENV_DB = "DAYSHAPE_DB"


def package_data_dir() -> Path:
    """
    Reference data shipped inside the dayshape package.
    Contains public_holidays.yaml.
    """
    return Path(__file__).parent.resolve() / "data"


def app_home() -> Path:
    """
    User-writable home for dayshape.
    Override with DAYSHAPE_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".dayshape").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical DB path for dayshape.

    Resolution order:
    1. DAYSHAPE_DB env var (explicit override)
    2. ~/.dayshape/data/dayshape.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "dayshape.db"


def export_dir() -> Path:
    """Default directory for owner state exports."""
    d = app_home() / "exports"
    d.mkdir(parents=True, exist_ok=True)
    return d
