"""Per-category spending behaviour: anomalies, direction and year-over-year change."""

from __future__ import annotations

import logging
from typing import Literal, Optional

import numpy as np
import pandas as pd

from config import get_settings
from core.errors import guarded
from core.frames import TransactionsInput, expenses_only, prepare_transactions
from core.models import SpendingPattern, YearOverYearComparison
from core.periods import DateLike, as_timestamp

__all__ = [
    "ANOMALY_STD_MULTIPLIER",
    "spending_direction",
    "spending_patterns",
    "year_over_year",
]

logger = logging.getLogger(__name__)

ANOMALY_STD_MULTIPLIER = 2.0
_TREND_THRESHOLD_PCT = 10.0
_MIN_TREND_SAMPLES = 4

Direction = Literal["increasing", "decreasing", "stable"]


def spending_direction(amounts: pd.Series) -> Direction:
    """Compare the average of the later half of ``amounts`` with the earlier half.

    ``amounts`` must already be in chronological order.
    """

    if len(amounts) < _MIN_TREND_SAMPLES:
        return "stable"

    midpoint = len(amounts) // 2
    first_avg = float(amounts.iloc[:midpoint].mean())
    second_avg = float(amounts.iloc[midpoint:].mean())
    if first_avg == 0:
        return "stable"

    change = (second_avg - first_avg) / first_avg * 100
    if change > _TREND_THRESHOLD_PCT:
        return "increasing"
    if change < -_TREND_THRESHOLD_PCT:
        return "decreasing"
    return "stable"


@guarded(lambda *args, **kwargs: [], "spending patterns")
def spending_patterns(
    transactions: TransactionsInput,
    *,
    now: DateLike,
    lookback_months: Optional[int] = None,
) -> list[SpendingPattern]:
    """Summarise each category's expenses over the lookback window.

    A transaction is anomalous when it lies more than two population standard
    deviations from its category mean. ``lookback_months`` defaults to the
    ``pattern_lookback_months`` setting.
    """

    if lookback_months is None:
        lookback_months = get_settings().pattern_lookback_months
    today = as_timestamp(now).normalize()
    cutoff = today - pd.DateOffset(months=lookback_months)
    end = today + pd.Timedelta(days=1)
    frame = expenses_only(prepare_transactions(transactions))
    frame = frame[(frame["date"] >= cutoff) & (frame["date"] < end)]
    frame = frame.sort_values(["date", "id"], kind="mergesort")

    patterns: list[SpendingPattern] = []
    for category, group_df in frame.groupby("category", sort=True):
        amounts = group_df["amount"]
        average = float(amounts.mean())
        std_dev = float(np.std(amounts.to_numpy(dtype=float), ddof=0))
        anomalies = group_df.loc[(amounts - average).abs() > ANOMALY_STD_MULTIPLIER * std_dev, "id"]
        patterns.append(
            {
                "category": str(category),
                "average_amount": average,
                "frequency": int(len(group_df)),
                "std_dev": std_dev,
                "trend": spending_direction(amounts),
                "anomaly_ids": [str(value) for value in anomalies.tolist()],
            }
        )
    logger.debug("Built spending patterns for %d categories", len(patterns))
    return patterns


@guarded(lambda *args, **kwargs: [], "year over year comparison")
def year_over_year(transactions: TransactionsInput, year: int) -> list[YearOverYearComparison]:
    """Compare each category's expense total in ``year`` with the year before."""

    frame = expenses_only(prepare_transactions(transactions))
    years = frame["date"].dt.year
    current = frame[years == year].groupby("category")["amount"].sum()
    previous = frame[years == year - 1].groupby("category")["amount"].sum()

    comparisons: list[YearOverYearComparison] = []
    for category in sorted(set(current.index) | set(previous.index)):
        current_total = float(current.get(category, 0.0))
        previous_total = float(previous.get(category, 0.0))
        change = current_total - previous_total
        comparisons.append(
            {
                "category": str(category),
                "current_year": current_total,
                "previous_year": previous_total,
                "change": change,
                "change_percentage": change / previous_total * 100 if previous_total > 0 else 0.0,
            }
        )

    comparisons.sort(key=lambda row: abs(row["change"]), reverse=True)
    return comparisons
