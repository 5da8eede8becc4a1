"""Relational store access for the form plugin tables."""

from .db import get_engine, init_db, session
from .models import SourceTables, source_tables
from .repo import EntriesRepository, FormsRepository, FormViewsRepository

__all__ = [
    "get_engine",
    "init_db",
    "session",
    "SourceTables",
    "source_tables",
    "EntriesRepository",
    "FormsRepository",
    "FormViewsRepository",
]
