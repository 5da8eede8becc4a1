"""Submission-over-view conversion rates."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from itertools import zip_longest
from typing import Dict, List, Sequence, Tuple

from .series import ratio


@dataclass(frozen=True)
class ConversionStats:
    total_views: int
    total_submissions: int
    conversion_rate: float

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def compute_conversion(
    submissions: Sequence[int],
    views: Sequence[int],
) -> Tuple[List[float], ConversionStats]:
    """Return the per-period conversion percentage and its totals.

    The shorter series is padded with zeros.  A period without views has a
    rate of 0; the overall rate is computed from the totals, not from the
    per-period rates.
    """

    rates: List[float] = []
    total_submissions = 0
    total_views = 0
    for submitted, viewed in zip_longest(submissions, views, fillvalue=0):
        total_submissions += int(submitted)
        total_views += int(viewed)
        rates.append(ratio(submitted, viewed, 2, scale=100))
    stats = ConversionStats(
        total_views=total_views,
        total_submissions=total_submissions,
        conversion_rate=ratio(total_submissions, total_views, 2, scale=100),
    )
    return rates, stats


__all__ = ["ConversionStats", "compute_conversion"]
