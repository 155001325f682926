"""Tests for interval grouping, cadence classification and recurring detection."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from analytics.recurring import (
    classify_frequency,
    classify_recurring_groups,
    compute_day_gaps,
    detect_recurring_transactions,
    group_recurring_intervals,
)
from core.frames import prepare_transactions
from core.models import Frequency


def _series(*values: str) -> pd.Series:
    return pd.Series(pd.to_datetime(list(values)))


def test_day_gaps_round_partial_days_up():
    assert compute_day_gaps(_series("2024-01-01", "2024-01-31", "2024-03-01")) == [30, 30]
    assert compute_day_gaps(_series("2024-01-01 00:00", "2024-01-02 12:00")) == [2]
    assert compute_day_gaps(_series("2024-01-01", "2024-01-01")) == [0]


@pytest.mark.parametrize(
    ("mean_gap", "std_gap", "consistent", "frequency"),
    [
        (30.0, 0.0, True, Frequency.MONTHLY),
        (7.0, 2.0, True, Frequency.WEEKLY),
        (8.0, 3.4, True, Frequency.WEEKLY),
        (90.0, 10.0, True, Frequency.QUARTERLY),
        (365.0, 20.0, True, Frequency.ANNUALLY),
        (14.0, 1.0, True, Frequency.OTHER),
        (14.0, 3.0, True, Frequency.INCONSISTENT),
        (17.67, 15.8, False, Frequency.INCONSISTENT),
        (30.0, 6.0, False, Frequency.INCONSISTENT),
    ],
)
def test_classify_frequency(mean_gap, std_gap, consistent, frequency):
    result = classify_frequency(mean_gap, std_gap)

    assert result.is_consistent is consistent
    assert result.frequency is frequency


def test_grouping_requires_three_members_with_the_same_amount(make_transaction):
    frame = prepare_transactions(
        [
            make_transaction("2024-01-01", 15.99, "NETFLIX.COM"),
            make_transaction("2024-02-01", 15.99, "NETFLIX.COM"),
            make_transaction("2024-03-01", 17.99, "NETFLIX.COM"),
            make_transaction("2024-01-05", 9.99, "SPOTIFY"),
            make_transaction("2024-02-05", 9.99, "PAYPAL *SPOTIFY"),
            make_transaction("2024-03-05", 9.99, "SPOTIFY 03/05"),
        ]
    )

    groups = group_recurring_intervals(frame)

    assert len(groups) == 1
    group = groups[0]
    assert group.merchant_key == "spotify"
    assert group.amount == pytest.approx(9.99)
    assert group.gaps == (31, 29)
    assert group.mean_gap == pytest.approx(30.0)
    assert group.std_gap == pytest.approx(1.0)


def test_monthly_group_projects_next_date(make_transaction):
    transactions = [
        make_transaction(date(2024, 1, 1), 50.0, "CITY GYM", id="gym-1"),
        make_transaction(date(2024, 1, 31), 50.0, "CITY GYM", id="gym-2"),
        make_transaction(date(2024, 3, 1), 50.0, "CITY GYM", id="gym-3"),
    ]

    candidates = detect_recurring_transactions(transactions)

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate["frequency"] == "monthly"
    assert candidate["avg_days_between"] == pytest.approx(30.0)
    assert candidate["last_date"] == date(2024, 3, 1)
    assert candidate["next_estimated_date"] == date(2024, 3, 31)
    assert candidate["transaction_ids"] == ["gym-1", "gym-2", "gym-3"]


def test_netflix_subscription_is_detected(make_transaction):
    transactions = [
        make_transaction("2024-01-01", 15.99, "NETFLIX.COM"),
        make_transaction("2024-02-01", 15.99, "NETFLIX.COM"),
        make_transaction("2024-03-01", 15.99, "NETFLIX.COM"),
        make_transaction("2024-03-02", 84.10, "Groceries R Us"),
    ]

    candidates = detect_recurring_transactions(transactions)

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate["id"] == "netflixcom-15.99-monthly"
    assert candidate["frequency"] == "monthly"
    assert candidate["amount"] == pytest.approx(15.99)
    assert len(candidate["transaction_ids"]) == 3
    assert [row["date"] for row in candidate["transactions"]] == [
        date(2024, 1, 1),
        date(2024, 2, 1),
        date(2024, 3, 1),
    ]
    assert candidate["merchant"] == "Netflix.Com"


def test_high_dispersion_group_is_not_promoted(make_transaction):
    transactions = [
        make_transaction("2024-01-01", 20.0, "CORNER CAFE"),
        make_transaction("2024-01-06", 20.0, "CORNER CAFE"),
        make_transaction("2024-02-15", 20.0, "CORNER CAFE"),
        make_transaction("2024-02-23", 20.0, "CORNER CAFE"),
    ]

    classified = classify_recurring_groups(transactions)

    assert [group.group.gaps for group in classified] == [(5, 40, 8)]
    assert classified[0].classification.is_consistent is False
    assert classified[0].frequency is Frequency.INCONSISTENT
    assert detect_recurring_transactions(transactions) == []


def test_weekly_charges_are_detected(make_transaction):
    transactions = [
        make_transaction(f"2024-01-{day:02d}", 12.5, "POS DEBIT - SWIM CLUB") for day in (1, 8, 15, 22)
    ]

    candidates = detect_recurring_transactions(transactions)

    assert [row["frequency"] for row in candidates] == ["weekly"]
    assert candidates[0]["next_estimated_date"] == date(2024, 1, 29)


def test_same_day_duplicates_are_classified_without_projection(make_transaction):
    transactions = [make_transaction("2024-01-01", 5.0, "PARKING METER") for _ in range(3)]

    classified = classify_recurring_groups(transactions)
    assert [group.frequency for group in classified] == [Frequency.OTHER]
    assert detect_recurring_transactions(transactions) == []

    widened = detect_recurring_transactions(transactions, frequencies={Frequency.OTHER})
    assert len(widened) == 1
    assert widened[0]["avg_days_between"] == 0.0
    assert widened[0]["next_estimated_date"] is None


def test_candidates_are_sorted_by_merchant_then_amount(make_transaction):
    transactions = []
    for month in (1, 2, 3):
        transactions.append(make_transaction(f"2024-{month:02d}-03", 9.99, "SPOTIFY"))
        transactions.append(make_transaction(f"2024-{month:02d}-05", 22.99, "NETFLIX.COM"))
        transactions.append(make_transaction(f"2024-{month:02d}-05", 15.99, "NETFLIX.COM"))

    candidates = detect_recurring_transactions(transactions)

    assert [(row["merchant_key"], row["amount"]) for row in candidates] == [
        ("netflixcom", 15.99),
        ("netflixcom", 22.99),
        ("spotify", 9.99),
    ]
    assert [row["id"] for row in detect_recurring_transactions(transactions)] == [
        row["id"] for row in candidates
    ]


def test_income_and_small_inputs_produce_no_candidates(make_transaction):
    payroll = [
        make_transaction(f"2024-{month:02d}-01", 3000, "ACME PAYROLL", "Salary", "income")
        for month in (1, 2, 3)
    ]

    assert detect_recurring_transactions(payroll) == []
    assert detect_recurring_transactions(payroll[:2]) == []
    assert detect_recurring_transactions([]) == []


def test_malformed_records_are_skipped(make_transaction):
    transactions = [
        make_transaction("2024-01-01", 15.99, "NETFLIX.COM"),
        make_transaction("not a date", 15.99, "NETFLIX.COM"),
        make_transaction("2024-02-01", "oops", "NETFLIX.COM"),
        make_transaction("2024-02-01", -15.99, "NETFLIX.COM"),
        make_transaction("2024-03-01", "15.99", "NETFLIX.COM"),
    ]

    candidates = detect_recurring_transactions(transactions)

    assert len(candidates) == 1
    assert len(candidates[0]["transaction_ids"]) == 3


def test_unusable_input_returns_empty_list():
    assert detect_recurring_transactions(42) == []
