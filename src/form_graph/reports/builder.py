"""Assemble multi-form submission and conversion reports.

The builder owns every call to the outside world: it pulls submissions and
views per form, resolves display names and applies the partial failure
policy.  A form whose submissions cannot be read or parsed is dropped from
the report; a form whose views cannot be read or parsed keeps its submissions
and gets a zero view series.  Each form is evaluated into an :class:`EntityOutcome` first, and only
then filtered, so the policy can be inspected in isolation.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from .conversion import ConversionStats, compute_conversion
from .errors import ComputationError, NoData
from .periods import DateRange, Granularity, PeriodAxis, build_axis
from .series import Observation, SeriesStats, compute_stats, densify
from .summary import ReportSummary, reduce_conversion_summary, reduce_summary

logger = logging.getLogger(__name__)


class ObservationSource(Protocol):
    def fetch(self, form_id: int, date_range: DateRange) -> Sequence[Observation]:
        ...


class LabelResolver(Protocol):
    def resolve(self, form_id: int) -> str:
        ...


def fallback_label(form_id: int) -> str:
    return f"Form #{form_id}"


@dataclass(frozen=True)
class EntityReport:
    form_id: int
    label: str
    data: Tuple[int, ...]
    stats: SeriesStats

    def to_dict(self) -> Dict[str, Any]:
        return {
            "form_id": self.form_id,
            "label": self.label,
            "data": list(self.data),
            "stats": self.stats.to_dict(),
        }


@dataclass(frozen=True)
class ConversionReport:
    form_id: int
    label: str
    data: Tuple[float, ...]
    stats: ConversionStats

    def to_dict(self) -> Dict[str, Any]:
        return {
            "form_id": self.form_id,
            "label": self.label,
            "data": list(self.data),
            "stats": self.stats.to_dict(),
        }


@dataclass(frozen=True)
class EntityOutcome:
    """Result of evaluating one form: either both reports or the error."""

    form_id: int
    report: Optional[EntityReport] = None
    conversion: Optional[ConversionReport] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None


@dataclass(frozen=True)
class MultiEntityReport:
    granularity: Granularity
    date_range: DateRange
    labels: Tuple[str, ...]
    datasets: Tuple[EntityReport, ...]
    conversion: Tuple[ConversionReport, ...]
    summary: ReportSummary
    conversion_summary: ConversionStats

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON-ready structure consumed by the chart front-end."""

        return {
            "grouping": self.granularity.value,
            "start_date": self.date_range.start.isoformat(),
            "end_date": self.date_range.end.isoformat(),
            "labels": list(self.labels),
            "datasets": [d.to_dict() for d in self.datasets],
            "summary": self.summary.to_dict(),
            "conversion": {
                "datasets": [c.to_dict() for c in self.conversion],
                "summary": self.conversion_summary.to_dict(),
            },
        }


class ReportBuilder:
    """Build :class:`MultiEntityReport` objects from injected collaborators."""

    def __init__(
        self,
        submissions: ObservationSource,
        views: ObservationSource,
        labels: LabelResolver,
        *,
        max_workers: int = 1,
        tz: tzinfo | None = None,
    ):
        self.submissions = submissions
        self.views = views
        self.labels = labels
        self.max_workers = max(1, int(max_workers))
        self.tz = tz

    def build(
        self,
        form_ids: Iterable[int],
        granularity: Granularity | str,
        date_range: DateRange,
    ) -> MultiEntityReport:
        granularity = Granularity.parse(granularity)
        axis = build_axis(granularity, date_range)
        if len(axis) == 0:
            raise NoData("No data found for the selected date range")

        outcomes = self.collect(list(dict.fromkeys(form_ids)), axis, date_range)
        produced = [o for o in outcomes if o.ok]
        if not produced:
            raise NoData("No data found for the selected form(s)")

        # produced series all share ``axis``; the first one anchors the labels
        labels = tuple(axis.labels[: len(produced[0].report.data)])
        datasets = tuple(o.report for o in produced)
        conversion = tuple(o.conversion for o in produced)
        logger.info(
            "Built %s report for %d/%d form(s) over %d period(s)",
            granularity.value,
            len(produced),
            len(outcomes),
            len(axis),
        )
        return MultiEntityReport(
            granularity=granularity,
            date_range=date_range,
            labels=labels,
            datasets=datasets,
            conversion=conversion,
            summary=reduce_summary([(d.stats, d.label) for d in datasets]),
            conversion_summary=reduce_conversion_summary([c.stats for c in conversion]),
        )

    def collect(
        self,
        form_ids: Sequence[int],
        axis: PeriodAxis,
        date_range: DateRange,
    ) -> List[EntityOutcome]:
        """Evaluate every form, returning outcomes in ``form_ids`` order."""

        def evaluate(form_id: int) -> EntityOutcome:
            return self.evaluate(form_id, axis, date_range)

        if self.max_workers == 1 or len(form_ids) <= 1:
            return [evaluate(form_id) for form_id in form_ids]
        workers = min(self.max_workers, len(form_ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="form-report") as pool:
            return list(pool.map(evaluate, form_ids))

    def evaluate(self, form_id: int, axis: PeriodAxis, date_range: DateRange) -> EntityOutcome:
        try:
            submissions = self._densify(self.submissions.fetch(form_id, date_range), axis)
        except ComputationError:
            raise
        except Exception as exc:
            logger.warning("Dropping form %s, submissions unavailable: %s", form_id, exc)
            return EntityOutcome(form_id=form_id, error=exc)

        try:
            views = self._densify(self.views.fetch(form_id, date_range), axis)
        except ComputationError:
            raise
        except Exception as exc:
            logger.warning("Views unavailable for form %s, assuming none: %s", form_id, exc)
            views = [0] * len(axis)

        label = self._resolve_label(form_id)
        rates, conversion_stats = compute_conversion(submissions, views)
        return EntityOutcome(
            form_id=form_id,
            report=EntityReport(
                form_id=form_id,
                label=label,
                data=tuple(submissions),
                stats=compute_stats(submissions, axis.labels),
            ),
            conversion=ConversionReport(
                form_id=form_id,
                label=label,
                data=tuple(rates),
                stats=conversion_stats,
            ),
        )

    def _densify(self, observations: Iterable[Observation], axis: PeriodAxis) -> List[int]:
        """Project ``observations`` onto ``axis``.

        Malformed rows raise from here and are handled by :meth:`evaluate` like
        a failed fetch.  A length mismatch is a programming error and is raised
        as :class:`ComputationError`, which no caller recovers from.
        """

        series = densify(observations, axis, self.tz)
        if len(series) != len(axis):
            raise ComputationError(
                f"Series has {len(series)} values for an axis of {len(axis)} periods"
            )
        return series

    def _resolve_label(self, form_id: int) -> str:
        try:
            label = self.labels.resolve(form_id)
        except Exception as exc:
            logger.debug("No display label for form %s: %s", form_id, exc)
            return fallback_label(form_id)
        return label or fallback_label(form_id)


def build_report(
    form_ids: Iterable[int],
    granularity: Granularity | str,
    date_range: DateRange,
    submission_source: ObservationSource,
    view_source: ObservationSource,
    label_resolver: LabelResolver,
    *,
    max_workers: int = 1,
    tz: tzinfo | None = None,
) -> MultiEntityReport:
    """Functional wrapper around :class:`ReportBuilder`."""

    builder = ReportBuilder(
        submission_source,
        view_source,
        label_resolver,
        max_workers=max_workers,
        tz=tz,
    )
    return builder.build(form_ids, granularity, date_range)


__all__ = [
    "ObservationSource",
    "LabelResolver",
    "EntityReport",
    "ConversionReport",
    "EntityOutcome",
    "MultiEntityReport",
    "ReportBuilder",
    "build_report",
    "fallback_label",
]
