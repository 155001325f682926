"""Analytics helpers shared across PlainSpend engine outputs."""

from analytics.aggregation import (
    InvestmentRule,
    category_spending,
    compare,
    detailed_category_spending,
    keyword_investment_rule,
    merchant_spending,
    monthly_trends,
    percent_change,
    spending_overview,
    spending_trend,
)
from analytics.budgeting import budget_variances, financial_health_score
from analytics.forecasting import build_cashflow_forecast, extrapolate, fit_linear_trend
from analytics.merchants import (
    DEFAULT_RULES,
    UNKNOWN_MERCHANT,
    NormalizationRule,
    merchant_display_name,
    normalize_merchant,
)
from analytics.patterns import spending_direction, spending_patterns, year_over_year
from analytics.recurring import (
    PROMOTED_FREQUENCIES,
    ClassifiedGroup,
    FrequencyClassification,
    IntervalGroup,
    classify_frequency,
    classify_recurring_groups,
    detect_recurring_transactions,
    group_recurring_intervals,
)

__all__ = [
    "DEFAULT_RULES",
    "UNKNOWN_MERCHANT",
    "NormalizationRule",
    "merchant_display_name",
    "normalize_merchant",
    "PROMOTED_FREQUENCIES",
    "IntervalGroup",
    "FrequencyClassification",
    "ClassifiedGroup",
    "group_recurring_intervals",
    "classify_frequency",
    "classify_recurring_groups",
    "detect_recurring_transactions",
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
    "fit_linear_trend",
    "extrapolate",
    "build_cashflow_forecast",
    "budget_variances",
    "financial_health_score",
    "spending_direction",
    "spending_patterns",
    "year_over_year",
]
