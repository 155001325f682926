"""Shared data model definitions for the PlainSpend analytics engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional, TypedDict, Union

Amount = Union[Decimal, float, int, str]
TransactionKind = Literal["income", "expense"]

INCOME: TransactionKind = "income"
EXPENSE: TransactionKind = "expense"


@dataclass(frozen=True)
class Transaction:
    id: str
    date: Union[date, str]
    amount: Amount
    category: str
    description: str
    kind: TransactionKind


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    kind: TransactionKind = EXPENSE
    budget: Optional[float] = None


class Frequency(str, Enum):
    """Cadence assigned to a group of same-merchant, same-amount charges."""

    MONTHLY = "monthly"
    WEEKLY = "weekly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    OTHER = "other"
    INCONSISTENT = "inconsistent"


class SpendingTrendPoint(TypedDict):
    name: str
    spending: float


class PeriodTotal(TypedDict):
    name: str
    month: str
    year: int
    spending: float
    income: float
    savings: float


class CategoryAggregate(TypedDict):
    name: str
    value: float
    target: Optional[float]


class CategoryDetail(TypedDict):
    id: str
    name: str
    value: float


class MerchantAggregate(TypedDict):
    name: str
    total: float
    count: int


class TrendComparison(TypedDict):
    current: float
    previous: float
    percentage_change: float


class MonthlyTrends(TypedDict):
    spending: TrendComparison
    income: TrendComparison
    savings: TrendComparison
    category_spending: dict[str, TrendComparison]


class TransactionSnapshot(TypedDict):
    id: str
    date: date
    amount: float
    description: str


class RecurringCandidate(TypedDict):
    id: str
    merchant_key: str
    merchant: str
    amount: float
    frequency: str
    transaction_ids: list[str]
    transactions: list[TransactionSnapshot]
    last_date: date
    avg_days_between: float
    next_estimated_date: Optional[date]


class BudgetVariance(TypedDict):
    category_id: str
    category_name: str
    budget: float
    actual: float
    variance: float
    variance_percentage: float
    is_over_budget: bool


class BudgetVarianceReport(TypedDict):
    variances: list[BudgetVariance]
    unbudgeted: list[str]


class ForecastPoint(TypedDict):
    name: str
    year: int
    month: int
    value: float


@dataclass(frozen=True)
class TrendLine:
    slope: float
    intercept: float

    def value_at(self, x: float) -> float:
        return self.intercept + self.slope * x


class CashflowForecast(TypedDict):
    spending_trend: TrendLine
    income_trend: TrendLine
    spending_growth: float
    income_growth: float
    projected_spending: list[ForecastPoint]
    projected_income: list[ForecastPoint]
    projected_net: list[ForecastPoint]


class SpendingPattern(TypedDict):
    category: str
    average_amount: float
    frequency: int
    std_dev: float
    trend: str
    anomaly_ids: list[str]


class YearOverYearComparison(TypedDict):
    category: str
    current_year: float
    previous_year: float
    change: float
    change_percentage: float


class FinancialHealthScore(TypedDict):
    overall: int
    savings_rate: float
    budget_adherence: int
    expense_stability: int
    insights: list[str]


class AnalyticsSnapshot(TypedDict):
    spending_trend: list[SpendingTrendPoint]
    spending_overview: list[PeriodTotal]
    category_spending: list[CategoryAggregate]
    detailed_category_spending: dict[str, list[CategoryDetail]]
    monthly_trends: MonthlyTrends
    merchant_spending: list[MerchantAggregate]
    potential_recurring_transactions: list[RecurringCandidate]
    budget_variances: BudgetVarianceReport
    cashflow_forecast: CashflowForecast


__all__ = [
    "Amount",
    "TransactionKind",
    "INCOME",
    "EXPENSE",
    "Transaction",
    "Category",
    "Frequency",
    "SpendingTrendPoint",
    "PeriodTotal",
    "CategoryAggregate",
    "CategoryDetail",
    "MerchantAggregate",
    "TrendComparison",
    "MonthlyTrends",
    "TransactionSnapshot",
    "RecurringCandidate",
    "BudgetVariance",
    "BudgetVarianceReport",
    "ForecastPoint",
    "TrendLine",
    "CashflowForecast",
    "SpendingPattern",
    "YearOverYearComparison",
    "FinancialHealthScore",
    "AnalyticsSnapshot",
]
