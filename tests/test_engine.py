"""Tests for the analytics façade, settings and logging configuration."""

from __future__ import annotations

import logging
from datetime import date

import pandas as pd
import pytest
from pydantic import ValidationError

from config import Settings, get_settings
from core.engine import build_analytics
from core.errors import guarded
from core.logging_setup import _parse_level

SNAPSHOT_KEYS = {
    "spending_trend",
    "spending_overview",
    "category_spending",
    "detailed_category_spending",
    "monthly_trends",
    "merchant_spending",
    "potential_recurring_transactions",
    "budget_variances",
    "cashflow_forecast",
}


@pytest.fixture()
def household(make_transaction):
    transactions = [
        make_transaction(f"2024-{month:02d}-01", 15.99, "NETFLIX.COM", "Entertainment")
        for month in (1, 2, 3)
    ]
    transactions += [
        make_transaction(f"2024-{month:02d}-25", 2500.0, "ACME PAYROLL", "Salary", "income")
        for month in (1, 2)
    ]
    transactions += [
        make_transaction("2024-03-05", 120.0, "FARMERS MARKET"),
        make_transaction("2024-03-09", 80.0, "FARMERS MARKET"),
    ]
    return transactions


def test_build_analytics_produces_every_output(household, categories, now):
    snapshot = build_analytics(household, categories, now=now)

    assert set(snapshot) == SNAPSHOT_KEYS
    assert len(snapshot["spending_trend"]) == 12
    assert snapshot["spending_trend"][-1] == {"name": "Mar 2024", "spending": pytest.approx(215.99)}
    assert snapshot["category_spending"] == [
        {"name": "Entertainment", "value": pytest.approx(15.99), "target": 100.0},
        {"name": "Food", "value": 200.0, "target": 600.0},
    ]
    assert snapshot["merchant_spending"][0] == {"name": "FARMERS MARKET", "total": 200.0, "count": 2}

    (candidate,) = snapshot["potential_recurring_transactions"]
    assert candidate["id"] == "netflixcom-15.99-monthly"
    assert candidate["next_estimated_date"] == date(2024, 3, 31)

    assert snapshot["budget_variances"]["unbudgeted"] == ["Travel"]
    assert len(snapshot["cashflow_forecast"]["projected_net"]) == 3


def test_build_analytics_accepts_a_dataframe(household, categories, now):
    frame = pd.DataFrame(
        [
            {
                "id": txn.id,
                "date": txn.date,
                "amount": txn.amount,
                "category": txn.category,
                "description": txn.description,
                "type": txn.kind,
            }
            for txn in household
        ]
    )

    from_frame = build_analytics(frame, categories, now=now)
    from_records = build_analytics(household, categories, now=now)

    assert from_frame["spending_overview"] == from_records["spending_overview"]
    assert from_frame["potential_recurring_transactions"] == from_records["potential_recurring_transactions"]


def test_build_analytics_with_no_data(now):
    snapshot = build_analytics([], [], now=now)

    assert set(snapshot) == SNAPSHOT_KEYS
    assert all(point["spending"] == 0.0 for point in snapshot["spending_trend"])
    assert len(snapshot["spending_overview"]) == 13
    assert snapshot["category_spending"] == []
    assert snapshot["detailed_category_spending"] == {}
    assert snapshot["merchant_spending"] == []
    assert snapshot["potential_recurring_transactions"] == []
    assert snapshot["budget_variances"] == {"variances": [], "unbudgeted": []}
    assert [point["value"] for point in snapshot["cashflow_forecast"]["projected_spending"]] == [
        0.0,
        0.0,
        0.0,
    ]


def test_build_analytics_survives_unusable_input(now, caplog):
    with caplog.at_level(logging.ERROR, logger="core.errors"):
        snapshot = build_analytics(42, 17, now=now)

    assert set(snapshot) == SNAPSHOT_KEYS
    assert len(snapshot["spending_trend"]) == 12
    assert snapshot["potential_recurring_transactions"] == []
    assert "transaction snapshot" in caplog.text
    assert "category snapshot" in caplog.text


def test_explicit_settings_override_defaults(make_transaction, now):
    transactions = [
        make_transaction("2024-03-01", 1000.0, "ACME PAYROLL", "Salary", "income"),
        make_transaction("2024-03-02", 200.0, "FIDELITY CONTRIBUTION", "Investments"),
    ]
    settings = Settings(trend_months=6, investment_keywords=["Fidelity"], forecast_horizon=2)

    snapshot = build_analytics(transactions, [], now=now, settings=settings)

    assert len(snapshot["spending_trend"]) == 6
    assert snapshot["spending_overview"][-1]["savings"] == pytest.approx(1000.0)
    assert snapshot["monthly_trends"]["savings"]["current"] == pytest.approx(1000.0)
    assert len(snapshot["cashflow_forecast"]["projected_income"]) == 2


def test_environment_settings_are_read(monkeypatch, now):
    monkeypatch.setenv("PLAINSPEND_TREND_MONTHS", "4")
    monkeypatch.setenv("PLAINSPEND_INVESTMENT_KEYWORDS", '["vanguard", "fidelity"]')

    settings = get_settings()

    assert settings.trend_months == 4
    assert settings.normalized_investment_keywords == ("vanguard", "fidelity")
    assert len(build_analytics([], [], now=now)["spending_trend"]) == 4


def test_settings_validation():
    with pytest.raises(ValidationError):
        Settings(min_recurring_transactions=2)

    assert Settings(investment_keywords=[" Vanguard ", ""]).normalized_investment_keywords == ("vanguard",)


def test_guarded_returns_default_when_fallback_fails(caplog):
    def broken_fallback(value):
        raise KeyError(value)

    @guarded(broken_fallback, "totals", default=[])
    def totals(*, value):
        raise ValueError(value)

    with caplog.at_level(logging.ERROR, logger="core.errors"):
        assert totals(value=3) == []

    assert "Error calculating totals" in caplog.text
    assert "Fallback for totals failed" in caplog.text


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        ("debug", logging.DEBUG),
        (" warning ", logging.WARNING),
        ("15", 15),
        (logging.ERROR, logging.ERROR),
        ("not-a-level", logging.INFO),
    ],
)
def test_parse_level(level, expected):
    assert _parse_level(level) == expected


def test_parse_level_defaults_to_setting(monkeypatch):
    monkeypatch.setenv("PLAINSPEND_LOG_LEVEL", "error")

    assert _parse_level(None) == logging.ERROR
