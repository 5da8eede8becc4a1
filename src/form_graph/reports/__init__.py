"""Report aggregation engine: periods, series, conversion and summaries."""

from .builder import (
    ConversionReport,
    EntityOutcome,
    EntityReport,
    MultiEntityReport,
    ReportBuilder,
    build_report,
)
from .conversion import ConversionStats, compute_conversion
from .errors import ComputationError, DataSourceError, InvalidRequest, NoData, ReportError
from .periods import DateRange, Granularity, PeriodAxis, build_axis, period_key_of
from .series import Observation, SeriesStats, compute_stats, densify
from .summary import ReportSummary, reduce_conversion_summary, reduce_summary

__all__ = [
    "ConversionReport",
    "EntityOutcome",
    "EntityReport",
    "MultiEntityReport",
    "ReportBuilder",
    "build_report",
    "ConversionStats",
    "compute_conversion",
    "ComputationError",
    "DataSourceError",
    "InvalidRequest",
    "NoData",
    "ReportError",
    "DateRange",
    "Granularity",
    "PeriodAxis",
    "build_axis",
    "period_key_of",
    "Observation",
    "SeriesStats",
    "compute_stats",
    "densify",
    "ReportSummary",
    "reduce_conversion_summary",
    "reduce_summary",
]
