"""Failure taxonomy shared by the report engine and its transports."""
from __future__ import annotations


class ReportError(Exception):
    """Base class carrying a human readable message and a failure kind."""

    kind = "report_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message, "kind": self.kind}


class InvalidRequest(ReportError):
    """Missing form selection, missing dates or an otherwise malformed request."""

    kind = "invalid_request"


class DataSourceError(ReportError):
    """A submission or view reader failed for one form."""

    kind = "data_source_error"

    def __init__(self, message: str, form_id: int | None = None):
        super().__init__(message)
        self.form_id = form_id


class NoData(ReportError):
    """Every selected form was dropped, nothing can be charted."""

    kind = "no_data"


class ComputationError(ReportError):
    """Series and axis disagree in length; signals a caller bug."""

    kind = "computation_error"


__all__ = [
    "ReportError",
    "InvalidRequest",
    "DataSourceError",
    "NoData",
    "ComputationError",
]
