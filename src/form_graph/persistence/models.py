"""Table definitions for the form plugin tables the reports read from."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)


@dataclass(frozen=True)
class SourceTables:
    """The ``gf_form``, ``gf_entry`` and ``gf_form_view`` tables for one prefix."""

    metadata: MetaData
    forms: Table
    entries: Table
    views: Table


@lru_cache()
def source_tables(prefix: str = "wp_") -> SourceTables:
    metadata = MetaData()
    forms = Table(
        f"{prefix}gf_form",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("title", String(150), nullable=False),
        Column("date_created", DateTime),
        Column("is_active", Integer, nullable=False, default=1),
        Column("is_trash", Integer, nullable=False, default=0),
    )
    entries = Table(
        f"{prefix}gf_entry",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("form_id", Integer, nullable=False),
        Column("date_created", DateTime, nullable=False),
        Column("status", String(20), nullable=False, default="active"),
        Index(f"ix_{prefix}gf_entry_form_date", "form_id", "date_created"),
    )
    views = Table(
        f"{prefix}gf_form_view",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("form_id", Integer, nullable=False),
        Column("date_created", DateTime, nullable=False),
        Column("ip", String(39)),
        Column("count", Integer, nullable=False, default=1),
        Index(f"ix_{prefix}gf_form_view_form_date", "form_id", "date_created"),
    )
    return SourceTables(metadata=metadata, forms=forms, entries=entries, views=views)


__all__ = ["SourceTables", "source_tables"]
