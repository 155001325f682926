"""Time-windowed spending, income, category and merchant aggregates."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

import numpy as np
import pandas as pd

from config import DEFAULT_INVESTMENT_KEYWORDS
from core.errors import guarded
from core.frames import (
    CategoriesInput,
    TransactionsInput,
    expenses_only,
    prepare_categories,
    prepare_transactions,
)
from core.models import (
    EXPENSE,
    INCOME,
    CategoryAggregate,
    CategoryDetail,
    MerchantAggregate,
    MonthlyTrends,
    PeriodTotal,
    SpendingTrendPoint,
    TrendComparison,
)
from core.periods import (
    DateLike,
    as_timestamp,
    in_period,
    in_window,
    month_label,
    month_period,
    resolve_window,
    trailing_periods,
)

__all__ = [
    "InvestmentRule",
    "keyword_investment_rule",
    "percent_change",
    "compare",
    "spending_trend",
    "spending_overview",
    "category_spending",
    "detailed_category_spending",
    "monthly_trends",
    "merchant_spending",
]

logger = logging.getLogger(__name__)

TREND_MONTHS = 12
OVERVIEW_MIN_MONTHS_BACK = 12

InvestmentRule = Callable[[str], bool]


def keyword_investment_rule(keywords: Iterable[str] = DEFAULT_INVESTMENT_KEYWORDS) -> InvestmentRule:
    """Return a rule flagging descriptions that mention any of ``keywords``."""

    needles = tuple(keyword.lower() for keyword in keywords if keyword)

    def is_investment(description: str) -> bool:
        text = str(description).lower()
        return any(needle in text for needle in needles)

    return is_investment


def percent_change(current: float, previous: float) -> float:
    """Return the change from ``previous`` in percent, 0 on a zero baseline."""

    if not previous or not np.isfinite(previous) or not np.isfinite(current):
        return 0.0
    return float((current - previous) / previous * 100)


def compare(current: float, previous: float) -> TrendComparison:
    return {
        "current": float(current),
        "previous": float(previous),
        "percentage_change": percent_change(current, previous),
    }


def _investment_mask(frame: pd.DataFrame, rule: Optional[InvestmentRule]) -> pd.Series:
    rule = rule or keyword_investment_rule()
    if frame.empty:
        return pd.Series(False, index=frame.index, dtype=bool)
    return frame["description"].map(rule).astype(bool)


def _zero_trend(periods: pd.PeriodIndex) -> list[SpendingTrendPoint]:
    return [{"name": month_label(period), "spending": 0.0} for period in periods]


def _trend_fallback(*_: Any, now: DateLike, months: int = TREND_MONTHS, **__: Any) -> list[SpendingTrendPoint]:
    return _zero_trend(trailing_periods(now, months))


@guarded(_trend_fallback, "spending trend", default=[])
def spending_trend(
    transactions: TransactionsInput,
    *,
    now: DateLike,
    months: int = TREND_MONTHS,
) -> list[SpendingTrendPoint]:
    """Return expense totals for the trailing ``months`` calendar months.

    Every month is present, zero when nothing was spent, labelled ``"Mon YYYY"``
    and ordered oldest first. Transactions dated after the day of ``now`` are
    not counted.
    """

    periods = trailing_periods(now, months)
    frame = expenses_only(prepare_transactions(transactions))
    if frame.empty:
        return _zero_trend(periods)

    start = periods[0].start_time
    end = as_timestamp(now).normalize() + pd.Timedelta(days=1)
    frame = frame[(frame["date"] >= start) & (frame["date"] < end)]

    totals = (
        frame.groupby(frame["date"].dt.to_period("M"))["amount"].sum().reindex(periods, fill_value=0.0)
    )
    result: list[SpendingTrendPoint] = [
        {"name": month_label(period), "spending": float(value)} for period, value in totals.items()
    ]
    logger.debug("Spending trend covers %d months from %s", len(result), result[0]["name"])
    return result


def _overview_fallback(*_: Any, now: DateLike, **__: Any) -> list[PeriodTotal]:
    period = month_period(now)
    return [
        {
            "name": month_label(period),
            "month": period.strftime("%b"),
            "year": int(period.year),
            "spending": 0.0,
            "income": 0.0,
            "savings": 0.0,
        }
    ]


@guarded(_overview_fallback, "spending overview", default=[])
def spending_overview(
    transactions: TransactionsInput,
    *,
    now: DateLike,
    investment_rule: Optional[InvestmentRule] = None,
) -> list[PeriodTotal]:
    """Return per-month spending, income and savings through ``now``'s month.

    The range starts twelve months before the current month, or at the month
    of the earliest transaction when that is older. Savings are income minus
    spending plus any transactions matched by ``investment_rule``.
    """

    frame = prepare_transactions(transactions)
    current = month_period(now)
    first = current - OVERVIEW_MIN_MONTHS_BACK
    if not frame.empty:
        first = min(first, frame["date"].min().to_period("M"))
    periods = pd.period_range(first, current, freq="M")

    frame = frame.assign(period=frame["date"].dt.to_period("M"))
    frame = frame[frame["period"].isin(periods)]

    def monthly_sum(rows: pd.DataFrame) -> pd.Series:
        return rows.groupby("period")["amount"].sum().reindex(periods, fill_value=0.0)

    spending_totals = monthly_sum(frame[frame["kind"] == EXPENSE])
    income_totals = monthly_sum(frame[frame["kind"] == INCOME])
    investments = monthly_sum(frame[_investment_mask(frame, investment_rule)])

    result: list[PeriodTotal] = []
    for period in periods:
        spending = float(spending_totals.at[period])
        income = float(income_totals.at[period])
        result.append(
            {
                "name": month_label(period),
                "month": period.strftime("%b"),
                "year": int(period.year),
                "spending": spending,
                "income": income,
                "savings": income - spending + float(investments.at[period]),
            }
        )
    logger.debug("Spending overview covers %d months", len(result))
    return result


def _zero_categories(categories: CategoriesInput) -> list[CategoryAggregate]:
    return [
        {"name": category.name, "value": 0.0, "target": category.budget}
        for category in prepare_categories(categories)
    ]


def _categories_fallback(*args: Any, categories: CategoriesInput = None, **__: Any) -> list[CategoryAggregate]:
    if categories is None and len(args) > 1:
        categories = args[1]
    return _zero_categories(categories)


@guarded(_categories_fallback, "category spending", default=[])
def category_spending(
    transactions: TransactionsInput,
    categories: CategoriesInput,
    *,
    now: DateLike,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> list[CategoryAggregate]:
    """Return expense totals per category name within the window.

    Each row carries the category's configured budget as its target. When the
    window holds no expenses every known category is returned at zero.
    """

    window = resolve_window(now, start, end)
    frame = expenses_only(prepare_transactions(transactions))
    frame = frame[in_window(frame["date"], window)]

    known = prepare_categories(categories)
    if frame.empty:
        return _zero_categories(known)

    budgets = {category.name: category.budget for category in known}
    totals = frame.groupby("category")["amount"].sum()
    return [
        {"name": str(name), "value": float(value), "target": budgets.get(str(name))}
        for name, value in totals.items()
    ]


@guarded(lambda *args, **kwargs: {}, "detailed category spending")
def detailed_category_spending(
    transactions: TransactionsInput,
    *,
    now: DateLike,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> dict[str, list[CategoryDetail]]:
    """Return the individual expenses behind each category total, oldest first."""

    window = resolve_window(now, start, end)
    frame = expenses_only(prepare_transactions(transactions))
    frame = frame[in_window(frame["date"], window)].sort_values(["date", "id"], kind="mergesort")

    details: dict[str, list[CategoryDetail]] = {}
    for record in frame.to_dict(orient="records"):
        details.setdefault(str(record["category"]), []).append(
            {
                "id": str(record["id"]),
                "name": str(record["description"]),
                "value": float(record["amount"]),
            }
        )
    return details


def _zero_monthly_trends(*_: Any, **__: Any) -> MonthlyTrends:
    return {
        "spending": compare(0.0, 0.0),
        "income": compare(0.0, 0.0),
        "savings": compare(0.0, 0.0),
        "category_spending": {},
    }


@guarded(_zero_monthly_trends, "monthly trends")
def monthly_trends(
    transactions: TransactionsInput,
    categories: CategoriesInput,
    *,
    now: DateLike,
    investment_rule: Optional[InvestmentRule] = None,
) -> MonthlyTrends:
    """Compare ``now``'s calendar month with the one before it."""

    frame = prepare_transactions(transactions)
    current_period = month_period(now)
    previous_period = current_period - 1

    current = frame[in_period(frame["date"], current_period)]
    previous = frame[in_period(frame["date"], previous_period)]

    def totals(month: pd.DataFrame) -> tuple[float, float, float]:
        spending = float(expenses_only(month)["amount"].sum())
        income = float(month.loc[month["kind"] == INCOME, "amount"].sum())
        invested = float(month.loc[_investment_mask(month, investment_rule), "amount"].sum())
        return spending, income, income - spending + invested

    current_spending, current_income, current_savings = totals(current)
    previous_spending, previous_income, previous_savings = totals(previous)

    current_by_category = expenses_only(current).groupby("category")["amount"].sum()
    previous_by_category = expenses_only(previous).groupby("category")["amount"].sum()

    names = [category.name for category in prepare_categories(categories)]
    for name in sorted(set(current_by_category.index) | set(previous_by_category.index)):
        if name not in names:
            names.append(str(name))

    category_trends = {
        name: compare(
            float(current_by_category.get(name, 0.0)),
            float(previous_by_category.get(name, 0.0)),
        )
        for name in names
    }

    return {
        "spending": compare(current_spending, previous_spending),
        "income": compare(current_income, previous_income),
        "savings": compare(current_savings, previous_savings),
        "category_spending": category_trends,
    }


@guarded(lambda *args, **kwargs: [], "merchant spending")
def merchant_spending(
    transactions: TransactionsInput,
    *,
    now: DateLike,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> list[MerchantAggregate]:
    """Return expense totals and counts per raw description, largest first."""

    window = resolve_window(now, start, end)
    frame = expenses_only(prepare_transactions(transactions))
    frame = frame[in_window(frame["date"], window)]
    if frame.empty:
        return []

    grouped = (
        frame.groupby("description")["amount"]
        .agg(total="sum", count="count")
        .reset_index()
        .sort_values(["total", "description"], ascending=[False, True], kind="mergesort")
    )
    return [
        {"name": str(row["description"]), "total": float(row["total"]), "count": int(row["count"])}
        for row in grouped.to_dict(orient="records")
    ]
