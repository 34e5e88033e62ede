"""Building the database from timebill settings.

A database is chosen by, in order: an explicit SQLite path, an explicit
SQLAlchemy URL, ``TIMEBILL_DB_PATH``, ``TIMEBILL_DATABASE_URL``, and finally
``~/.timebill/timebill.db``.
"""

import os
from pathlib import Path
from typing import Optional

from timebill.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "TIMEBILL_DB_PATH"
DATABASE_URL_ENV = "TIMEBILL_DATABASE_URL"


def default_database_path() -> Path:
    """Return ``~/.timebill/timebill.db``, creating its directory."""
    data_dir = Path.home() / ".timebill"
    data_dir.mkdir(exist_ok=True)
    return data_dir / "timebill.db"


def sqlite_url(database_path: str | Path) -> str:
    return f"sqlite:///{database_path}"


def resolve_database_url(
    database_path: Optional[str] = None, database_url: Optional[str] = None
) -> str:
    """Pick the SQLAlchemy URL to connect to (see module docstring)."""
    if database_path:
        return sqlite_url(database_path)
    if database_url:
        return database_url
    if os.environ.get(DB_PATH_ENV):
        return sqlite_url(os.environ[DB_PATH_ENV])
    if os.environ.get(DATABASE_URL_ENV):
        return os.environ[DATABASE_URL_ENV]
    return sqlite_url(default_database_path())


def create_database(
    database_path: Optional[str] = None, database_url: Optional[str] = None
) -> SQLAlchemyDatabase:
    """Create the configured database.

    Args:
        database_path: SQLite file; wins over every other setting
        database_url: Any SQLAlchemy URL, e.g. ``postgresql://user@host/timebill``
    """
    return SQLAlchemyDatabase(resolve_database_url(database_path, database_url))


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database at ``database_path`` or the configured default."""
    return create_database(database_path=database_path)
