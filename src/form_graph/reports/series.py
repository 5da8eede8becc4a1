"""Gap filling and descriptive statistics for per-form series."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, NamedTuple, Sequence

from .periods import PeriodAxis, TimestampLike, period_key_of


class Observation(NamedTuple):
    """A raw ``(timestamp, count)`` pair as returned by a data source."""

    timestamp: TimestampLike
    count: int = 1


@dataclass(frozen=True)
class SeriesStats:
    total: int
    average: float
    peak_value: int
    peak_label: str
    periods: int = 0

    def to_dict(self) -> Dict[str, object]:
        payload = asdict(self)
        payload.pop("periods")
        return payload


def round_half_up(value: float | Decimal, places: int) -> float:
    """Round to ``places`` decimals with halves going away from zero."""

    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def ratio(numerator: int, denominator: int, places: int, scale: int = 1) -> float:
    """Return ``scale * numerator / denominator`` rounded, 0 when undefined."""

    if not denominator:
        return 0.0
    exact = Decimal(scale * numerator) / Decimal(denominator)
    return round_half_up(exact, places)


def bucket_counts(
    observations: Iterable[Observation],
    axis: PeriodAxis,
    tz: tzinfo | None = None,
) -> Dict[str, int]:
    """Sum observation counts per period key."""

    counts: Dict[str, int] = {}
    granularity = axis.granularity
    for ts, count in observations:
        key = period_key_of(ts, granularity, tz)
        counts[key] = counts.get(key, 0) + int(count)
    return counts


def densify(
    observations: Iterable[Observation],
    axis: PeriodAxis,
    tz: tzinfo | None = None,
) -> List[int]:
    """Project observations onto ``axis``, zero-filling empty periods.

    Observations falling outside the axis are ignored.
    """

    counts = bucket_counts(observations, axis, tz)
    return [counts.get(key, 0) for key in axis.keys]


def compute_stats(series: Sequence[int], labels: Sequence[str]) -> SeriesStats:
    """Return total, average and leftmost peak of a dense series."""

    n = len(series)
    if n == 0:
        return SeriesStats(total=0, average=0.0, peak_value=0, peak_label="", periods=0)
    total = int(sum(series))
    peak_value = max(series)
    peak_index = list(series).index(peak_value)
    peak_label = labels[peak_index] if peak_index < len(labels) else ""
    return SeriesStats(
        total=total,
        average=ratio(total, n, 1),
        peak_value=int(peak_value),
        peak_label=peak_label,
        periods=n,
    )


__all__ = [
    "Observation",
    "SeriesStats",
    "round_half_up",
    "ratio",
    "bucket_counts",
    "densify",
    "compute_stats",
]
