"""Fold per-form statistics into the headline numbers of a report."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Sequence, Tuple

from .conversion import ConversionStats
from .series import SeriesStats, ratio


@dataclass(frozen=True)
class ReportSummary:
    grand_total: int
    overall_average: float
    peak_value: int
    peak_label: str

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def reduce_summary(entries: Sequence[Tuple[SeriesStats, str]]) -> ReportSummary:
    """Combine ``(stats, display label)`` pairs across forms.

    The average is taken over the longest series seen.  The global peak is
    the first form whose peak is strictly greater than every earlier one; its
    label is suffixed with the form name, e.g. ``"Jan 5, 2024 (Contact)"``.
    """

    grand_total = 0
    max_length = 0
    best: Tuple[SeriesStats, str] | None = None
    for stats, label in entries:
        grand_total += stats.total
        max_length = max(max_length, stats.periods)
        if best is None or stats.peak_value > best[0].peak_value:
            best = (stats, label)

    if best is None:
        return ReportSummary(grand_total=0, overall_average=0.0, peak_value=0, peak_label="")
    peak_stats, peak_owner = best
    return ReportSummary(
        grand_total=grand_total,
        overall_average=ratio(grand_total, max_length, 1),
        peak_value=peak_stats.peak_value,
        peak_label=f"{peak_stats.peak_label} ({peak_owner})",
    )


def reduce_conversion_summary(stats: Sequence[ConversionStats]) -> ConversionStats:
    """Sum views and submissions across forms and recompute the rate."""

    total_views = sum(s.total_views for s in stats)
    total_submissions = sum(s.total_submissions for s in stats)
    return ConversionStats(
        total_views=total_views,
        total_submissions=total_submissions,
        conversion_rate=ratio(total_submissions, total_views, 2, scale=100),
    )


__all__ = ["ReportSummary", "reduce_summary", "reduce_conversion_summary"]
