"""Recurring payment detection from descriptions, amounts and dates."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Collection, Optional, Sequence

import numpy as np
import pandas as pd

from analytics.merchants import DEFAULT_RULES, NormalizationRule, merchant_display_name, normalize_merchant
from core.errors import guarded
from core.frames import TransactionsInput, expenses_only, prepare_transactions
from core.models import Frequency, RecurringCandidate, TransactionSnapshot

__all__ = [
    "MIN_OCCURRENCES",
    "PROMOTED_FREQUENCIES",
    "IntervalGroup",
    "FrequencyClassification",
    "ClassifiedGroup",
    "compute_day_gaps",
    "group_recurring_intervals",
    "classify_frequency",
    "classify_recurring_groups",
    "detect_recurring_transactions",
]

logger = logging.getLogger(__name__)

MIN_OCCURRENCES = 3

PROMOTED_FREQUENCIES: frozenset[Frequency] = frozenset(
    {Frequency.MONTHLY, Frequency.WEEKLY, Frequency.QUARTERLY, Frequency.ANNUALLY}
)

_WEEKLY_BAND = (6.0, 9.0)
_WEEKLY_MAX_STD = 2.5
_RELATIVE_STD_RATIO = 0.15
_MIN_STD_ALLOWANCE = 3.5
_OTHER_MAX_STD = 2.0

_FREQUENCY_BANDS: tuple[tuple[Frequency, float, float], ...] = (
    (Frequency.MONTHLY, 27.0, 33.0),
    (Frequency.WEEKLY, 6.0, 9.0),
    (Frequency.QUARTERLY, 85.0, 95.0),
    (Frequency.ANNUALLY, 350.0, 380.0),
)


@dataclass(frozen=True, eq=False)
class IntervalGroup:
    """Transactions sharing a merchant key and amount, with their day gaps."""

    merchant_key: str
    amount: float
    transactions: pd.DataFrame
    gaps: tuple[int, ...]
    mean_gap: float
    std_gap: float

    @property
    def transaction_ids(self) -> list[str]:
        return [str(value) for value in self.transactions["id"].tolist()]


@dataclass(frozen=True)
class FrequencyClassification:
    is_consistent: bool
    frequency: Frequency


@dataclass(frozen=True, eq=False)
class ClassifiedGroup:
    group: IntervalGroup
    classification: FrequencyClassification

    @property
    def frequency(self) -> Frequency:
        return self.classification.frequency

    @property
    def is_promoted(self) -> bool:
        return self.frequency in PROMOTED_FREQUENCIES


def compute_day_gaps(dates: pd.Series) -> list[int]:
    """Return whole-day gaps between consecutive dates, rounded up."""

    deltas = dates.diff().dropna().abs() / pd.Timedelta(days=1)
    return [int(math.ceil(value)) for value in deltas.tolist()]


def group_recurring_intervals(
    expenses: pd.DataFrame,
    *,
    rules: Sequence[NormalizationRule] = DEFAULT_RULES,
    min_occurrences: int = MIN_OCCURRENCES,
) -> list[IntervalGroup]:
    """Bucket expenses by (merchant key, amount) and measure their spacing.

    Buckets with fewer than ``min_occurrences`` members, and therefore fewer
    than two gaps, are skipped.
    """

    if expenses.empty:
        return []

    spend = expenses.copy()
    spend["merchant_key"] = spend["description"].map(lambda text: normalize_merchant(text, rules))
    spend["amount_key"] = spend["amount"].round(2)

    groups: list[IntervalGroup] = []
    for (merchant_key, amount), group_df in spend.groupby(["merchant_key", "amount_key"], sort=True):
        if len(group_df) < max(min_occurrences, MIN_OCCURRENCES):
            continue

        group_df = group_df.sort_values(by=["date", "id"], kind="mergesort")
        gaps = compute_day_gaps(group_df["date"])
        if len(gaps) < 2:
            continue

        values = np.asarray(gaps, dtype=float)
        groups.append(
            IntervalGroup(
                merchant_key=str(merchant_key),
                amount=float(amount),
                transactions=group_df.drop(columns=["merchant_key", "amount_key"]).reset_index(drop=True),
                gaps=tuple(gaps),
                mean_gap=float(values.mean()),
                std_gap=float(values.std(ddof=0)),
            )
        )
    return groups


def classify_frequency(mean_gap: float, std_gap: float) -> FrequencyClassification:
    """Map gap statistics to a cadence.

    Means of 6 to 9 days are held to an absolute dispersion limit of 2.5 days;
    any other mean allows 15% of itself, never less than 3.5 days.
    """

    low, high = _WEEKLY_BAND
    if low <= mean_gap <= high and std_gap < _WEEKLY_MAX_STD:
        consistent = True
    else:
        consistent = std_gap < max(mean_gap * _RELATIVE_STD_RATIO, _MIN_STD_ALLOWANCE)

    if not consistent:
        return FrequencyClassification(False, Frequency.INCONSISTENT)

    for frequency, lower, upper in _FREQUENCY_BANDS:
        if lower <= mean_gap <= upper:
            return FrequencyClassification(True, frequency)

    if std_gap < _OTHER_MAX_STD:
        return FrequencyClassification(True, Frequency.OTHER)
    return FrequencyClassification(True, Frequency.INCONSISTENT)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _prepared_expenses(transactions: TransactionsInput) -> pd.DataFrame:
    return expenses_only(prepare_transactions(transactions))


@guarded(lambda *args, **kwargs: [], "recurring group classification")
def classify_recurring_groups(
    transactions: TransactionsInput,
    *,
    rules: Sequence[NormalizationRule] = DEFAULT_RULES,
    min_occurrences: int = MIN_OCCURRENCES,
) -> list[ClassifiedGroup]:
    """Return every qualifying group tagged with its cadence, promoted or not."""

    expenses = _prepared_expenses(transactions)
    if len(expenses) < max(min_occurrences, MIN_OCCURRENCES):
        return []

    classified = [
        ClassifiedGroup(group, classify_frequency(group.mean_gap, group.std_gap))
        for group in group_recurring_intervals(expenses, rules=rules, min_occurrences=min_occurrences)
    ]
    logger.debug(
        "Classified %d recurring groups from %d expenses",
        len(classified),
        len(expenses),
    )
    return classified


def _build_candidate(classified: ClassifiedGroup) -> RecurringCandidate:
    group = classified.group
    frame = group.transactions
    last_date = pd.Timestamp(frame["date"].max()).date()

    next_date: Optional[date] = None
    if group.mean_gap > 0:
        next_date = last_date + timedelta(days=_round_half_up(group.mean_gap))

    snapshots: list[TransactionSnapshot] = [
        {
            "id": str(row["id"]),
            "date": pd.Timestamp(row["date"]).date(),
            "amount": float(row["amount"]),
            "description": str(row["description"]),
        }
        for row in frame.to_dict(orient="records")
    ]

    return {
        "id": f"{group.merchant_key}-{group.amount:.2f}-{classified.frequency.value}",
        "merchant_key": group.merchant_key,
        "merchant": str(frame["description"].map(merchant_display_name).mode().iat[0]),
        "amount": group.amount,
        "frequency": classified.frequency.value,
        "transaction_ids": group.transaction_ids,
        "transactions": snapshots,
        "last_date": last_date,
        "avg_days_between": group.mean_gap,
        "next_estimated_date": next_date,
    }


@guarded(lambda *args, **kwargs: [], "potential recurring transactions")
def detect_recurring_transactions(
    transactions: TransactionsInput,
    *,
    rules: Sequence[NormalizationRule] = DEFAULT_RULES,
    frequencies: Collection[Frequency] = PROMOTED_FREQUENCIES,
    min_occurrences: int = MIN_OCCURRENCES,
) -> list[RecurringCandidate]:
    """Identify recurring expenses grouped by merchant key and exact amount.

    Parameters
    ----------
    transactions:
        Transaction snapshot; income is ignored.
    rules:
        Merchant normalisation rules.
    frequencies:
        Cadences promoted to candidates. Defaults to the four standard ones;
        pass ``Frequency.OTHER`` to surface consistent but unusual cadences.
    min_occurrences:
        Minimum charges per group, never below three.

    Returns
    -------
    list[RecurringCandidate]
        Candidates sorted by merchant key, then amount.
    """

    allowed = {Frequency(value) for value in frequencies}
    candidates = [
        _build_candidate(classified)
        for classified in classify_recurring_groups(
            transactions, rules=rules, min_occurrences=min_occurrences
        )
        if classified.frequency in allowed
    ]
    candidates.sort(key=lambda row: (row["merchant_key"], row["amount"]))
    return candidates
