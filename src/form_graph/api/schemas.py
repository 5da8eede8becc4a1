"""API request/response models."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..reports.errors import InvalidRequest
from ..reports.periods import CUSTOM_PRESET, DateRange, Granularity, resolve_preset


SELECT_FORM_MESSAGE = "Please select a form"
INVALID_RANGE_MESSAGE = "Invalid date range"


class ReportRequest(BaseModel):
    """Validated, immutable report request."""

    model_config = ConfigDict(frozen=True)

    form_ids: Tuple[int, ...] = Field(..., min_length=1)
    grouping: Granularity = Granularity.DAILY
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    date_range: str = CUSTOM_PRESET

    @field_validator("form_ids", mode="before")
    @classmethod
    def _coerce_form_ids(cls, value: Any) -> Any:
        if value is None or value == "":
            raise ValueError(SELECT_FORM_MESSAGE)
        if isinstance(value, bool):
            raise ValueError(SELECT_FORM_MESSAGE)
        if isinstance(value, (int, str)):
            value = [v for v in str(value).split(",") if v.strip()]
        elif not isinstance(value, (list, tuple)):
            raise ValueError(SELECT_FORM_MESSAGE)
        ids: List[int] = []
        for raw in value:
            try:
                form_id = int(str(raw).strip())
            except ValueError as exc:
                raise ValueError(SELECT_FORM_MESSAGE) from exc
            if form_id <= 0:
                raise ValueError(SELECT_FORM_MESSAGE)
            if form_id not in ids:
                ids.append(form_id)
        if not ids:
            raise ValueError(SELECT_FORM_MESSAGE)
        return tuple(ids)

    @field_validator("grouping", mode="before")
    @classmethod
    def _coerce_grouping(cls, value: Any) -> Granularity:
        return Granularity.parse(value)

    @field_validator("date_range", mode="before")
    @classmethod
    def _coerce_preset(cls, value: Any) -> str:
        if value is None or str(value).strip() == "":
            return CUSTOM_PRESET
        return str(value).strip().lower()

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_dates(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _require_dates(self) -> "ReportRequest":
        if self.date_range.strip().lower() != CUSTOM_PRESET:
            try:
                resolve_preset(self.date_range)
            except ValueError as exc:
                raise ValueError(INVALID_RANGE_MESSAGE) from exc
            return self
        if self.start_date is None or self.end_date is None:
            raise ValueError(INVALID_RANGE_MESSAGE)
        return self

    def resolved_range(self, today: date | None = None) -> DateRange:
        """Return the preset range, or the explicit dates for ``custom``."""

        preset = resolve_preset(self.date_range, today)
        if preset is not None:
            return preset
        return DateRange(self.start_date, self.end_date)


def _first_message(exc: ValidationError) -> str:
    for error in exc.errors():
        loc = error.get("loc") or ()
        if "form_ids" in loc:
            return SELECT_FORM_MESSAGE
        if "start_date" in loc or "end_date" in loc or "date_range" in loc:
            return INVALID_RANGE_MESSAGE
        inner = (error.get("ctx") or {}).get("error")
        if isinstance(inner, Exception):
            return str(inner)
    return "Invalid request"


def parse_report_request(payload: Mapping[str, Any]) -> ReportRequest:
    """Validate a raw payload, raising :class:`InvalidRequest` on failure.

    ``form_id`` is accepted as an alias of ``form_ids`` for single-form
    callers.
    """

    data = dict(payload)
    if "form_ids" not in data and "form_id" in data:
        data["form_ids"] = data.pop("form_id")
    if "form_ids" not in data:
        raise InvalidRequest(SELECT_FORM_MESSAGE)
    try:
        return ReportRequest.model_validate(data)
    except ValidationError as exc:
        raise InvalidRequest(_first_message(exc)) from exc


class FormOption(BaseModel):
    id: int
    title: str


@dataclass
class ReportResponse:
    success: bool
    data: Dict[str, Any]


@dataclass
class ErrorResponse:
    message: str
    kind: str
