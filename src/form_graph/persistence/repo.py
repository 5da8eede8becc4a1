"""Insert helpers for the form plugin tables (fixtures and demo data)."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Sequence, Tuple

from sqlalchemy import delete, insert
from sqlalchemy.engine import Connection

from .models import SourceTables, source_tables


class _Repository:
    def __init__(self, conn: Connection, tables: SourceTables | None = None):
        self.conn = conn
        self.tables = tables or source_tables()


class FormsRepository(_Repository):
    """Operations for the ``gf_form`` table."""

    def upsert(self, form_id: int, title: str, *, is_active: bool = True, is_trash: bool = False) -> None:
        table = self.tables.forms
        self.conn.execute(delete(table).where(table.c.id == form_id))
        self.conn.execute(
            insert(table).values(
                id=form_id,
                title=title,
                date_created=datetime.now(),
                is_active=int(is_active),
                is_trash=int(is_trash),
            )
        )


class EntriesRepository(_Repository):
    """Operations for the ``gf_entry`` table."""

    def bulk_insert(
        self,
        form_id: int,
        timestamps: Iterable[datetime],
        status: str = "active",
    ) -> int:
        rows = [
            {"form_id": form_id, "date_created": ts, "status": status}
            for ts in timestamps
        ]
        if not rows:
            return 0
        self.conn.execute(insert(self.tables.entries), rows)
        return len(rows)


class FormViewsRepository(_Repository):
    """Operations for the ``gf_form_view`` table."""

    def bulk_insert(self, form_id: int, rows: Sequence[Tuple[datetime, int]]) -> int:
        payload: List[dict] = [
            {"form_id": form_id, "date_created": ts, "count": int(count)}
            for ts, count in rows
        ]
        if not payload:
            return 0
        self.conn.execute(insert(self.tables.views), payload)
        return len(payload)


__all__ = ["FormsRepository", "EntriesRepository", "FormViewsRepository"]
