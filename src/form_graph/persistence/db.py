"""Engine and schema helpers for the relational store.

The report engine only reads the form plugin tables.  ``init_db`` exists so
that local development databases and the test suite can create those tables
on SQLite; production databases already have them.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine

from ..config import get_settings
from .models import SourceTables, source_tables


def _ensure_sqlite_dir(dsn: str) -> None:
    if not dsn.startswith("sqlite:///"):
        return
    path = dsn.split("sqlite:///", 1)[1]
    if path and path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)


def get_engine(dsn: str | None = None) -> Engine:
    """Create a SQLAlchemy engine from ``dsn`` or the configured DSN."""

    settings = get_settings()
    url = dsn or settings.db_dsn
    _ensure_sqlite_dir(url)
    return create_engine(url, echo=settings.db_echo)


def init_db(engine: Engine, prefix: str | None = None) -> SourceTables:
    """Create the source tables if they do not exist yet."""

    tables = source_tables(prefix if prefix is not None else get_settings().table_prefix)
    tables.metadata.create_all(engine, checkfirst=True)
    return tables


@contextmanager
def session(engine: Engine | None = None) -> Iterator[Connection]:
    engine = engine or get_engine()
    with engine.begin() as conn:
        yield conn


__all__ = ["get_engine", "init_db", "session"]
