"""Command line interface entry points."""
from __future__ import annotations

import json
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from urllib import error, request

import typer

from ..config import get_settings
from ..logging import configure_logging
from ..reports.errors import ReportError
from ..reports.periods import Granularity

app = typer.Typer()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Overrides FG_LOG_LEVEL"),
) -> None:
    """Form submission and conversion reports."""

    configure_logging(log_level or get_settings().log_level)


def _engine(dsn: Optional[str]):
    from ..persistence import db

    return db.get_engine(dsn) if dsn else db.get_engine()


@app.command("report")
def report(
    forms: List[int] = typer.Option(..., "--form", "-f", help="Form id, repeat for several forms"),
    grouping: Granularity = typer.Option(Granularity.DAILY, "--grouping", "-g"),
    start: Optional[str] = typer.Option(None, "--start", help="YYYY-MM-DD"),
    end: Optional[str] = typer.Option(None, "--end", help="YYYY-MM-DD"),
    date_range: str = typer.Option("custom", "--range", help="7, 30, 90, 365 or custom"),
    as_json: bool = typer.Option(False, "--json/--table"),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Overrides FG_DB_DSN"),
) -> None:
    """Build a report from the configured database and print it."""

    import pandas as pd

    from ..api.app import default_builder, run_report
    from ..api.schemas import parse_report_request

    payload: Dict[str, Any] = {
        "form_ids": forms,
        "grouping": grouping.value,
        "start_date": start or "",
        "end_date": end or "",
        "date_range": date_range,
    }
    try:
        req = parse_report_request(payload)
        result = run_report(req, default_builder(_engine(dsn)))
    except ReportError as exc:
        typer.echo(f"{exc.kind}: {exc.message}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_payload(), separators=(",", ":")))
        return

    table = pd.DataFrame(
        {d.label: list(d.data) for d in result.datasets},
        index=list(result.labels),
    )
    typer.echo(table.to_string())
    summary = result.summary
    conversion = result.conversion_summary
    typer.echo("")
    typer.echo(f"total: {summary.grand_total}")
    typer.echo(f"average: {summary.overall_average}")
    typer.echo(f"peak: {summary.peak_label or '-'} [{summary.peak_value}]")
    typer.echo(
        f"conversion: {conversion.conversion_rate}% "
        f"({conversion.total_submissions}/{conversion.total_views})"
    )


@app.command("forms")
def forms_list(
    include_inactive: bool = typer.Option(False, "--all/--active"),
    dsn: Optional[str] = typer.Option(None, "--dsn"),
) -> None:
    """List forms that can be reported on."""

    from ..api.app import list_forms

    try:
        rows = list_forms(_engine(dsn), active_only=not include_inactive)
    except ReportError as exc:
        typer.echo(f"{exc.kind}: {exc.message}")
        raise typer.Exit(1)
    if not rows:
        typer.echo("No forms found")
        return
    typer.echo("id | title")
    for row in rows:
        typer.echo(f"{row['id']} | {row['title']}")


@app.command("init-db")
def init_db(dsn: Optional[str] = typer.Option(None, "--dsn")) -> None:
    """Create the form tables on a development database."""

    from ..persistence import db

    tables = db.init_db(_engine(dsn))
    typer.echo(", ".join(t.name for t in (tables.forms, tables.entries, tables.views)))


@app.command("seed-demo")
def seed_demo(
    days: int = typer.Option(30, "--days", min=1),
    dsn: Optional[str] = typer.Option(None, "--dsn"),
) -> None:
    """Insert two demo forms with a month of entries and views."""

    from ..persistence import EntriesRepository, FormsRepository, FormViewsRepository, db

    engine = _engine(dsn)
    tables = db.init_db(engine)
    today = date.today()
    inserted = 0
    with db.session(engine) as conn:
        forms_repo = FormsRepository(conn, tables)
        entries_repo = EntriesRepository(conn, tables)
        views_repo = FormViewsRepository(conn, tables)
        for form_id, title, weight in ((1, "Contact Form", 3), (2, "Newsletter Signup", 5)):
            forms_repo.upsert(form_id, title)
            for offset in range(days):
                day = datetime.combine(today - timedelta(days=offset), datetime.min.time())
                n = (offset * weight) % 7
                stamps = [day + timedelta(hours=9 + i) for i in range(n)]
                inserted += entries_repo.bulk_insert(form_id, stamps)
                views_repo.bulk_insert(form_id, [(day + timedelta(hours=8), n * 4 + weight)])
    typer.echo(f"inserted {inserted} entries")


@app.command("fetch")
def fetch(
    forms: List[int] = typer.Option(..., "--form", "-f"),
    grouping: str = typer.Option("daily", "--grouping", "-g"),
    start: str = typer.Option("", "--start"),
    end: str = typer.Option("", "--end"),
    date_range: str = typer.Option("custom", "--range"),
    url: str = typer.Option("http://127.0.0.1:8000", "--url"),
) -> None:
    """Request a report from the HTTP API and print the JSON response."""

    body = {
        "form_ids": forms,
        "grouping": grouping,
        "start_date": start,
        "end_date": end,
        "date_range": date_range,
    }
    req = request.Request(
        url.rstrip("/") + "/reports",
        data=json.dumps(body).encode(),
        headers={"Content-Type": "application/json"},
    )
    try:
        with request.urlopen(req) as resp:
            payload = json.loads(resp.read().decode())
    except error.HTTPError as e:
        detail = e.read().decode() if e.fp is not None else ""
        typer.echo(f"HTTP {e.code}: {detail or e.reason}")
        raise typer.Exit(1)
    except error.URLError as e:
        typer.echo(f"Connection error: {e.reason}")
        raise typer.Exit(1)
    typer.echo(json.dumps(payload.get("data", {}), separators=(",", ":")))


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
) -> None:
    """Run the HTTP API with uvicorn."""

    import uvicorn

    uvicorn.run("form_graph.api.app:app", host=host, port=port)


if __name__ == "__main__":
    app()
