"""Linear trend fitting and month-by-month extrapolation."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import numpy as np
import pandas as pd

from core.errors import guarded
from core.models import CashflowForecast, ForecastPoint, PeriodTotal, TrendLine
from core.periods import month_label, parse_month_label

__all__ = [
    "FORECAST_HORIZON",
    "FORECAST_LOOKBACK_MONTHS",
    "fit_linear_trend",
    "extrapolate",
    "build_cashflow_forecast",
]

logger = logging.getLogger(__name__)

FORECAST_HORIZON = 3
FORECAST_LOOKBACK_MONTHS = 6

_FLAT = TrendLine(slope=0.0, intercept=0.0)


def fit_linear_trend(values: Sequence[float]) -> TrendLine:
    """Fit ordinary least squares over positions ``0..n-1``.

    Fewer than two points yield a flat zero line.
    """

    y = np.asarray(list(values), dtype=float)
    n = len(y)
    if n < 2:
        return _FLAT

    x = np.arange(n, dtype=float)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = float((x * y).sum())
    sum_xx = float((x * x).sum())

    denominator = n * sum_xx - sum_x**2
    if denominator == 0:
        return _FLAT
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return TrendLine(slope=float(slope), intercept=float(intercept))


def extrapolate(
    values: Sequence[float],
    last_period: pd.Period,
    horizon: int = FORECAST_HORIZON,
    *,
    floor: float | None = None,
) -> list[ForecastPoint]:
    """Evaluate the fitted line at ``n .. n+horizon-1`` and label each month.

    ``last_period`` is the month of the final observed value; labels roll
    over into following years as needed.
    """

    line = fit_linear_trend(values)
    n = len(values)
    points: list[ForecastPoint] = []
    for step in range(horizon):
        period = last_period + step + 1
        value = line.value_at(n + step)
        if floor is not None:
            value = max(value, floor)
        points.append(
            {
                "name": month_label(period),
                "year": int(period.year),
                "month": int(period.month),
                "value": float(value),
            }
        )
    return points


def _growth(line: TrendLine, base: float) -> float:
    if not base:
        return 0.0
    return float(line.slope / base * 100)


def _net(income: list[ForecastPoint], spending: list[ForecastPoint]) -> list[ForecastPoint]:
    return [
        {
            "name": earned["name"],
            "year": earned["year"],
            "month": earned["month"],
            "value": earned["value"] - spent["value"],
        }
        for earned, spent in zip(income, spending)
    ]


def _empty_forecast(*_: Any, **__: Any) -> CashflowForecast:
    return {
        "spending_trend": _FLAT,
        "income_trend": _FLAT,
        "spending_growth": 0.0,
        "income_growth": 0.0,
        "projected_spending": [],
        "projected_income": [],
        "projected_net": [],
    }


@guarded(_empty_forecast, "cashflow forecast")
def build_cashflow_forecast(
    overview: Sequence[PeriodTotal],
    *,
    horizon: int = FORECAST_HORIZON,
    lookback: int = FORECAST_LOOKBACK_MONTHS,
) -> CashflowForecast:
    """Project spending, income and net cashflow from recent overview months.

    Projections are clipped at zero. Growth is the monthly slope relative to
    the first month of the lookback, in percent.
    """

    if not overview:
        return _empty_forecast()

    recent = list(overview)[-lookback:]
    spending = [float(row["spending"]) for row in recent]
    income = [float(row["income"]) for row in recent]
    last_period = parse_month_label(recent[-1]["name"])

    spending_line = fit_linear_trend(spending)
    income_line = fit_linear_trend(income)
    projected_spending = extrapolate(spending, last_period, horizon, floor=0.0)
    projected_income = extrapolate(income, last_period, horizon, floor=0.0)

    logger.debug(
        "Forecast %d months from %s (spending slope %.2f, income slope %.2f)",
        horizon,
        month_label(last_period),
        spending_line.slope,
        income_line.slope,
    )
    return {
        "spending_trend": spending_line,
        "income_trend": income_line,
        "spending_growth": _growth(spending_line, spending[0]),
        "income_growth": _growth(income_line, income[0]),
        "projected_spending": projected_spending,
        "projected_income": projected_income,
        "projected_net": _net(projected_income, projected_spending),
    }
