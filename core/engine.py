"""Core logic for assembling every analytics output from one snapshot."""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from analytics.aggregation import (
    category_spending,
    detailed_category_spending,
    keyword_investment_rule,
    merchant_spending,
    monthly_trends,
    spending_overview,
    spending_trend,
)
from analytics.budgeting import budget_variances
from analytics.forecasting import build_cashflow_forecast
from analytics.recurring import detect_recurring_transactions
from config import Settings, get_settings
from core.errors import guarded
from core.frames import (
    CategoriesInput,
    TransactionsInput,
    empty_transactions_frame,
    prepare_categories,
    prepare_transactions,
)
from core.models import AnalyticsSnapshot, Category
from core.periods import DateLike

__all__ = ["build_analytics"]

logger = logging.getLogger(__name__)


@guarded(lambda *args, **kwargs: empty_transactions_frame(), "transaction snapshot")
def _snapshot_frame(transactions: TransactionsInput) -> pd.DataFrame:
    return prepare_transactions(transactions)


@guarded(lambda *args, **kwargs: [], "category snapshot")
def _snapshot_categories(categories: CategoriesInput) -> list[Category]:
    return prepare_categories(categories)


def build_analytics(
    transactions: TransactionsInput,
    categories: CategoriesInput,
    *,
    now: DateLike,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    settings: Optional[Settings] = None,
) -> AnalyticsSnapshot:
    """Compute every dashboard output for a transaction and category snapshot.

    Parameters
    ----------
    transactions:
        Transactions as dataclasses, mappings or a prepared frame.
    categories:
        Known categories with optional monthly budgets.
    now:
        Anchor for the default window and the trailing-month views.
    start, end:
        Optional inclusive window; each defaults to ``now``'s calendar month.
    settings:
        Overrides for the cached environment settings.

    Returns
    -------
    AnalyticsSnapshot
        Plain records only; nothing refers back to the input objects.
    """

    settings = settings or get_settings()
    frame = _snapshot_frame(transactions)
    known = _snapshot_categories(categories)
    investment_rule = keyword_investment_rule(settings.normalized_investment_keywords)

    logger.info(
        "Building analytics for %d transactions and %d categories",
        len(frame),
        len(known),
    )

    overview = spending_overview(frame, now=now, investment_rule=investment_rule)
    return {
        "spending_trend": spending_trend(frame, now=now, months=settings.trend_months),
        "spending_overview": overview,
        "category_spending": category_spending(frame, known, now=now, start=start, end=end),
        "detailed_category_spending": detailed_category_spending(frame, now=now, start=start, end=end),
        "monthly_trends": monthly_trends(frame, known, now=now, investment_rule=investment_rule),
        "merchant_spending": merchant_spending(frame, now=now, start=start, end=end),
        "potential_recurring_transactions": detect_recurring_transactions(
            frame, min_occurrences=settings.min_recurring_transactions
        ),
        "budget_variances": budget_variances(frame, known, now=now, start=start, end=end),
        "cashflow_forecast": build_cashflow_forecast(
            overview,
            horizon=settings.forecast_horizon,
            lookback=settings.forecast_lookback_months,
        ),
    }
