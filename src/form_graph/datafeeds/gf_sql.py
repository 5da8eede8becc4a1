"""SQL readers for form submissions, form views and form titles."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..config import get_settings
from ..persistence.models import SourceTables, source_tables
from ..reports.errors import DataSourceError
from ..reports.periods import DateRange
from ..reports.series import Observation


def _resolve_tables(prefix: Optional[str]) -> SourceTables:
    return source_tables(prefix if prefix is not None else get_settings().table_prefix)


def _frame_to_observations(df: pd.DataFrame) -> List[Observation]:
    if df.empty:
        return []
    return [
        Observation(ts.to_pydatetime(), int(n))
        for ts, n in zip(df["ts"].tolist(), df["n"].tolist())
        if not pd.isna(ts)
    ]


class _SqlReader:
    what = "rows"

    def __init__(self, engine: Engine, prefix: Optional[str] = None):
        self.engine = engine
        self.tables = _resolve_tables(prefix)

    def _read(self, stmt, form_id: int) -> List[Observation]:
        try:
            df = pd.read_sql(stmt, self.engine, parse_dates=["ts"])
        # pandas re-raises driver failures as its own DatabaseError
        except (SQLAlchemyError, pd.errors.DatabaseError) as exc:
            raise DataSourceError(
                f"Could not read {self.what} for form {form_id}: {exc}", form_id=form_id
            ) from exc
        return _frame_to_observations(df)


class SqlSubmissionSource(_SqlReader):
    """Active entries per ``date_created`` for one form."""

    what = "submissions"

    def fetch(self, form_id: int, date_range: DateRange) -> List[Observation]:
        entries = self.tables.entries
        stmt = (
            select(entries.c.date_created.label("ts"), func.count().label("n"))
            .where(
                entries.c.form_id == form_id,
                entries.c.status == "active",
                entries.c.date_created >= date_range.first_instant,
                entries.c.date_created <= date_range.last_instant,
            )
            .group_by(entries.c.date_created)
            .order_by(entries.c.date_created)
        )
        return self._read(stmt, form_id)


class SqlViewSource(_SqlReader):
    """Form view counters for one form."""

    what = "views"

    def fetch(self, form_id: int, date_range: DateRange) -> List[Observation]:
        views = self.tables.views
        stmt = (
            select(views.c.date_created.label("ts"), views.c["count"].label("n"))
            .where(
                views.c.form_id == form_id,
                views.c.date_created >= date_range.first_instant,
                views.c.date_created <= date_range.last_instant,
            )
            .order_by(views.c.date_created)
        )
        return self._read(stmt, form_id)


class SqlFormDirectory:
    """Form titles for labels and selectors."""

    def __init__(self, engine: Engine, prefix: Optional[str] = None):
        self.engine = engine
        self.tables = _resolve_tables(prefix)

    def resolve(self, form_id: int) -> str:
        forms = self.tables.forms
        stmt = select(forms.c.title).where(forms.c.id == form_id)
        with self.engine.connect() as conn:
            title = conn.execute(stmt).scalar_one_or_none()
        if title is None:
            raise LookupError(f"Form {form_id} not found")
        return str(title)

    def list_forms(self, active_only: bool = True) -> List[Dict[str, Any]]:
        forms = self.tables.forms
        stmt = select(forms.c.id, forms.c.title).where(forms.c.is_trash == 0)
        if active_only:
            stmt = stmt.where(forms.c.is_active == 1)
        stmt = stmt.order_by(forms.c.title, forms.c.id)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as exc:
            raise DataSourceError(f"Could not list forms: {exc}") from exc
        return [{"id": int(row.id), "title": row.title} for row in rows]


__all__ = ["SqlSubmissionSource", "SqlViewSource", "SqlFormDirectory"]
