"""Budget variance reporting and the composite financial health score."""

from __future__ import annotations

import logging
from typing import Any, Optional

import pandas as pd

from analytics.patterns import spending_patterns
from core.errors import guarded
from core.frames import (
    CategoriesInput,
    TransactionsInput,
    expenses_only,
    prepare_categories,
    prepare_transactions,
)
from core.models import EXPENSE, INCOME, BudgetVariance, BudgetVarianceReport, FinancialHealthScore
from core.periods import DateLike, Window, as_timestamp, in_window, resolve_window

__all__ = [
    "budget_variances",
    "financial_health_score",
]

logger = logging.getLogger(__name__)


def _empty_report(*_: Any, **__: Any) -> BudgetVarianceReport:
    return {"variances": [], "unbudgeted": []}


def _variances(frame: pd.DataFrame, categories: CategoriesInput, window: Window) -> BudgetVarianceReport:
    expenses = expenses_only(frame)
    actuals = expenses[in_window(expenses["date"], window)].groupby("category")["amount"].sum()

    variances: list[BudgetVariance] = []
    unbudgeted: list[str] = []
    for category in prepare_categories(categories):
        if category.kind != EXPENSE:
            continue
        if category.budget is None:
            unbudgeted.append(category.name)
            continue

        budget = float(category.budget)
        actual = float(actuals.get(category.name, 0.0))
        variance = budget - actual
        variances.append(
            {
                "category_id": category.id,
                "category_name": category.name,
                "budget": budget,
                "actual": actual,
                "variance": variance,
                "variance_percentage": variance / budget * 100 if budget else 0.0,
                "is_over_budget": actual > budget,
            }
        )

    variances.sort(key=lambda row: row["variance"])
    return {"variances": variances, "unbudgeted": unbudgeted}


@guarded(_empty_report, "budget variances")
def budget_variances(
    transactions: TransactionsInput,
    categories: CategoriesInput,
    *,
    now: DateLike,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> BudgetVarianceReport:
    """Compare actual spend with each expense category's budget in the window.

    Returns
    -------
    BudgetVarianceReport
        ``variances`` sorted with the most overspent category first, and the
        names of expense categories that have no budget configured.
    """

    window = resolve_window(now, start, end)
    return _variances(prepare_transactions(transactions), categories, window)


def _savings_score(rate: float) -> int:
    if rate >= 20:
        return 40
    if rate >= 10:
        return 30
    if rate >= 5:
        return 20
    if rate >= 0:
        return 10
    return 0


def _empty_health(*_: Any, **__: Any) -> FinancialHealthScore:
    return {
        "overall": 0,
        "savings_rate": 0.0,
        "budget_adherence": 0,
        "expense_stability": 0,
        "insights": [],
    }


@guarded(_empty_health, "financial health score")
def financial_health_score(
    transactions: TransactionsInput,
    categories: CategoriesInput,
    *,
    now: DateLike,
    period_months: int = 1,
) -> FinancialHealthScore:
    """Score savings rate (40), budget adherence (30) and expense stability (30)."""

    frame = prepare_transactions(transactions)
    end = as_timestamp(now).normalize()
    window = resolve_window(now, end - pd.DateOffset(months=period_months), end)
    period = frame[in_window(frame["date"], window)]

    income = float(period.loc[period["kind"] == INCOME, "amount"].sum())
    spending = float(expenses_only(period)["amount"].sum())
    savings_rate = (income - spending) / income * 100 if income > 0 else 0.0

    insights: list[str] = []
    savings_score = _savings_score(savings_rate)
    if savings_rate < 10:
        insights.append(f"Low savings rate ({savings_rate:.1f}%). Aim for at least 10-20%.")
    elif savings_rate >= 20:
        insights.append(f"Excellent savings rate of {savings_rate:.1f}%! Keep it up.")

    variances = _variances(period, categories, window)["variances"]
    over_budget = sum(1 for row in variances if row["is_over_budget"])
    if variances:
        budget_score = (1 - over_budget / len(variances)) * 30
        if over_budget > len(variances) / 2:
            insights.append(
                f"Over budget in {over_budget} of {len(variances)} categories. Review your spending."
            )
    else:
        budget_score = 15.0
        insights.append("Set budgets for your expense categories to better track spending.")

    patterns = spending_patterns(frame, now=now, lookback_months=period_months)
    stability_score = 30.0
    if patterns:
        increasing = sum(1 for pattern in patterns if pattern["trend"] == "increasing")
        instability = increasing / len(patterns)
        stability_score = max(0.0, 30 - instability * 30)
        if instability > 0.3:
            insights.append(f"Spending is increasing in {increasing} categories. Monitor closely.")

    overall = savings_score + budget_score + stability_score
    if overall >= 80:
        insights.append("Your financial health is excellent! Continue these good habits.")
    elif overall >= 60:
        insights.append("Your financial health is good, but there is room for improvement.")
    elif overall >= 40:
        insights.append("Your financial health needs attention. Consider adjusting your budget.")
    else:
        insights.append("Your financial health requires immediate attention. Seek to reduce expenses.")

    return {
        "overall": int(round(overall)),
        "savings_rate": round(savings_rate, 1),
        "budget_adherence": int(round(budget_score)),
        "expense_stability": int(round(stability_score)),
        "insights": insights,
    }
