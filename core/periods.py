"""Calendar helpers: the explicit clock, month labels and inclusive windows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

from core.errors import InvalidWindowError

__all__ = [
    "DateLike",
    "Window",
    "as_timestamp",
    "today",
    "month_label",
    "parse_month_label",
    "month_period",
    "trailing_periods",
    "resolve_window",
    "in_window",
    "in_period",
]

DateLike = Union[date, datetime, pd.Timestamp, str]

MONTH_LABEL_FORMAT = "%b %Y"


def as_timestamp(value: DateLike) -> pd.Timestamp:
    """Return a timezone-naive timestamp for ``value``.

    Raises ``ValueError`` when the value cannot be parsed.
    """

    timestamp = pd.Timestamp(value)
    if pd.isna(timestamp):
        raise ValueError(f"Not a valid date: {value!r}")
    if timestamp.tzinfo is not None:
        timestamp = timestamp.tz_localize(None)
    return timestamp


def today() -> pd.Timestamp:
    """Read the wall clock. Only host applications should call this."""

    return pd.Timestamp.now().normalize()


def month_period(value: DateLike) -> pd.Period:
    return as_timestamp(value).to_period("M")


def month_label(period: pd.Period) -> str:
    return period.strftime(MONTH_LABEL_FORMAT)


def parse_month_label(label: str) -> pd.Period:
    return pd.Period(datetime.strptime(label, MONTH_LABEL_FORMAT), freq="M")


def trailing_periods(now: DateLike, months: int) -> pd.PeriodIndex:
    """Return ``months`` calendar months ending with the month of ``now``."""

    return pd.period_range(end=month_period(now), periods=months, freq="M")


@dataclass(frozen=True)
class Window:
    """A date range inclusive of both ``start`` and ``end`` days."""

    start: pd.Timestamp
    end: pd.Timestamp

    @property
    def end_exclusive(self) -> pd.Timestamp:
        return self.end + pd.Timedelta(days=1)


def resolve_window(
    now: DateLike,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> Window:
    """Return the caller's window, defaulting each missing bound to ``now``'s month."""

    period = month_period(now)
    start_ts = as_timestamp(start).normalize() if start is not None else period.start_time.normalize()
    end_ts = as_timestamp(end).normalize() if end is not None else period.end_time.normalize()
    if start_ts > end_ts:
        raise InvalidWindowError(
            f"Window start {start_ts.date()} is after end {end_ts.date()}"
        )
    return Window(start=start_ts, end=end_ts)


def in_window(dates: pd.Series, window: Window) -> pd.Series:
    """Return a boolean mask of ``dates`` falling on any day of ``window``."""

    return (dates >= window.start) & (dates < window.end_exclusive)


def in_period(dates: pd.Series, period: pd.Period) -> pd.Series:
    return dates.dt.to_period("M") == period
