"""Report helpers and their FastAPI wrappers.

The synchronous helpers keep the test suite light-weight while the FastAPI
application exposes the same capabilities over HTTP.
"""
from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from ..config import get_settings
from ..datafeeds.gf_sql import SqlFormDirectory, SqlSubmissionSource, SqlViewSource
from ..persistence import db
from ..reports.builder import MultiEntityReport, ReportBuilder
from ..reports.errors import (
    ComputationError,
    DataSourceError,
    InvalidRequest,
    NoData,
    ReportError,
)
from . import schemas

logger = logging.getLogger(__name__)


@lru_cache()
def _engine_for(dsn: str) -> Engine:
    return db.get_engine(dsn)


def default_engine() -> Engine:
    return _engine_for(get_settings().db_dsn)


def default_builder(engine: Engine | None = None) -> ReportBuilder:
    """Wire the SQL readers into a :class:`ReportBuilder` using settings."""

    settings = get_settings()
    engine = engine or default_engine()
    prefix = settings.table_prefix
    return ReportBuilder(
        SqlSubmissionSource(engine, prefix),
        SqlViewSource(engine, prefix),
        SqlFormDirectory(engine, prefix),
        max_workers=settings.max_workers,
        tz=settings.tzinfo,
    )


def run_report(
    request: schemas.ReportRequest,
    builder: ReportBuilder | None = None,
    today: date | None = None,
) -> MultiEntityReport:
    builder = builder or default_builder()
    return builder.build(request.form_ids, request.grouping, request.resolved_range(today))


def generate_report(
    payload: Mapping[str, Any],
    builder: ReportBuilder | None = None,
    today: date | None = None,
) -> Dict[str, Any]:
    """Validate ``payload``, build the report and return its JSON payload."""

    request = schemas.parse_report_request(payload)
    return run_report(request, builder, today).to_payload()


def list_forms(engine: Engine | None = None, active_only: bool = True) -> List[Dict[str, Any]]:
    """Return ``{"id", "title"}`` rows for form selectors."""

    directory = SqlFormDirectory(engine or default_engine(), get_settings().table_prefix)
    return directory.list_forms(active_only=active_only)


_STATUS_CODES = {
    InvalidRequest: 400,
    NoData: 404,
    DataSourceError: 502,
    ComputationError: 500,
}


def status_code_for(exc: ReportError) -> int:
    for kind, code in _STATUS_CODES.items():
        if isinstance(exc, kind):
            return code
    return 500


def error_payload(exc: ReportError) -> Dict[str, Any]:
    error = schemas.ErrorResponse(message=exc.message, kind=exc.kind)
    return asdict(schemas.ReportResponse(success=False, data=asdict(error)))


fastapi_app = FastAPI(title="Form Graph API", version="0.1.0")


@fastapi_app.exception_handler(ReportError)
async def report_error_handler(request: Request, exc: ReportError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error("Report request failed (%s): %s", exc.kind, exc.message)
    return JSONResponse(status_code=code, content=error_payload(exc))


@fastapi_app.post('/reports', response_model=Dict[str, Any])
def reports_endpoint(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """HTTP endpoint wrapping :func:`generate_report`."""

    data = generate_report(payload)
    return asdict(schemas.ReportResponse(success=True, data=data))


@fastapi_app.get('/forms', response_model=List[schemas.FormOption])
def forms_endpoint(include_inactive: Optional[bool] = False) -> List[Dict[str, Any]]:
    """List forms available for reporting."""

    return list_forms(active_only=not include_inactive)


app = fastapi_app
