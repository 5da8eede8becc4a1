"""Calendar arithmetic for report periods.

A report is drawn on a :class:`PeriodAxis`: the ordered, gap-free list of
buckets covering a :class:`DateRange` at a given :class:`Granularity`.  Raw
timestamps are joined onto the axis through :func:`period_key_of`, which uses
exactly the same bucket boundaries as :func:`build_axis`.

Weekly buckets follow ISO weeks: they start on Monday, and the key carries
the ISO year so that the week of Monday 30 December 2024 is ``2025-W01``.  The
label shows the Monday that opens the bucket.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from functools import cached_property
from typing import Dict, Iterator, List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta


TimestampLike = Union[datetime, date, str]


class Granularity(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: object) -> "Granularity":
        """Return the matching member, falling back to ``DAILY``."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.DAILY


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar range."""

    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    @property
    def first_instant(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def last_instant(self) -> datetime:
        return datetime.combine(self.end, time(23, 59, 59))


@dataclass(frozen=True)
class Period:
    key: str
    label: str
    start: datetime


@dataclass(frozen=True)
class PeriodAxis:
    granularity: Granularity
    periods: Tuple[Period, ...] = ()

    def __len__(self) -> int:
        return len(self.periods)

    def __iter__(self) -> Iterator[Period]:
        return iter(self.periods)

    def __getitem__(self, index: int) -> Period:
        return self.periods[index]

    @property
    def keys(self) -> List[str]:
        return [p.key for p in self.periods]

    @property
    def labels(self) -> List[str]:
        return [p.label for p in self.periods]

    @cached_property
    def _positions(self) -> Dict[str, int]:
        return {p.key: i for i, p in enumerate(self.periods)}

    def index_of(self, key: str) -> Optional[int]:
        return self._positions.get(key)


# ---------------------------------------------------------------------------
# Bucket boundaries


_STEPS = {
    Granularity.HOURLY: timedelta(hours=1),
    Granularity.DAILY: timedelta(days=1),
    Granularity.WEEKLY: timedelta(weeks=1),
    Granularity.MONTHLY: relativedelta(months=1),
}


def _to_naive(value: TimestampLike, tz: tzinfo | None) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        if tz is not None:
            value = value.astimezone(tz)
        return value.replace(tzinfo=None)
    return value


def bucket_start(value: TimestampLike, granularity: Granularity, tz: tzinfo | None = None) -> datetime:
    """Return the first instant of the bucket containing ``value``."""

    ts = _to_naive(value, tz)
    if granularity is Granularity.HOURLY:
        return ts.replace(minute=0, second=0, microsecond=0)
    day = datetime.combine(ts.date(), time.min)
    if granularity is Granularity.WEEKLY:
        return day - timedelta(days=day.weekday())
    if granularity is Granularity.MONTHLY:
        return day.replace(day=1)
    return day


def _key(start: datetime, granularity: Granularity) -> str:
    if granularity is Granularity.HOURLY:
        return start.strftime("%Y-%m-%dT%H")
    if granularity is Granularity.WEEKLY:
        iso_year, iso_week, _ = start.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    if granularity is Granularity.MONTHLY:
        return start.strftime("%Y-%m")
    return start.strftime("%Y-%m-%d")


def _day_label(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def _label(start: datetime, granularity: Granularity) -> str:
    if granularity is Granularity.HOURLY:
        return f"{_day_label(start)} {start:%H}:00"
    if granularity is Granularity.WEEKLY:
        return f"Week of {_day_label(start)}"
    if granularity is Granularity.MONTHLY:
        return start.strftime("%b %Y")
    return _day_label(start)


def period_key_of(value: TimestampLike, granularity: Granularity, tz: tzinfo | None = None) -> str:
    """Return the join key of the bucket containing ``value``.

    Aware timestamps are converted into ``tz`` (when given) before the
    timezone is dropped; naive ones are taken as already local.
    """

    return _key(bucket_start(value, granularity, tz), granularity)


def build_axis(granularity: Granularity, date_range: DateRange) -> PeriodAxis:
    """Return every bucket overlapping ``date_range`` in increasing order."""

    granularity = Granularity.parse(granularity)
    if date_range.is_empty:
        return PeriodAxis(granularity)
    step = _STEPS[granularity]
    current = bucket_start(date_range.start, granularity)
    limit = date_range.last_instant
    periods: List[Period] = []
    while current <= limit:
        periods.append(Period(_key(current, granularity), _label(current, granularity), current))
        current = current + step
    return PeriodAxis(granularity, tuple(periods))


# ---------------------------------------------------------------------------
# Preset ranges offered by the report selector


PRESET_DAYS = {"7": 7, "30": 30, "90": 90, "365": 365}
CUSTOM_PRESET = "custom"


def resolve_preset(preset: str, today: date | None = None) -> DateRange | None:
    """Translate a "last N days" preset into a range ending today.

    Returns ``None`` for ``"custom"`` so that the caller falls back to the
    explicit dates.  Unknown presets raise ``ValueError``.
    """

    value = str(preset).strip().lower()
    if value == CUSTOM_PRESET:
        return None
    if value not in PRESET_DAYS:
        raise ValueError(f"Unknown date range preset: {preset!r}")
    today = today or date.today()
    return DateRange(today - timedelta(days=PRESET_DAYS[value]), today)


__all__ = [
    "Granularity",
    "DateRange",
    "Period",
    "PeriodAxis",
    "bucket_start",
    "period_key_of",
    "build_axis",
    "resolve_preset",
    "PRESET_DAYS",
]
