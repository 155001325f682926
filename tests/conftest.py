"""Shared fixtures for the analytics engine tests."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import get_settings  # noqa: E402
from core.models import Category, Transaction  # noqa: E402

NOW = date(2024, 3, 15)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Keep environment overrides from leaking between tests."""

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def now() -> date:
    return NOW


@pytest.fixture()
def make_transaction() -> Callable[..., Transaction]:
    counter = {"value": 0}

    def factory(
        when,
        amount,
        description: str = "Groceries R Us",
        category: str = "Food",
        kind: str = "expense",
        id: str | None = None,
    ) -> Transaction:
        counter["value"] += 1
        return Transaction(
            id=id or f"txn-{counter['value']}",
            date=when,
            amount=amount,
            category=category,
            description=description,
            kind=kind,  # type: ignore[arg-type]
        )

    return factory


@pytest.fixture()
def categories() -> list[Category]:
    return [
        Category(id="cat-food", name="Food", kind="expense", budget=600.0),
        Category(id="cat-fun", name="Entertainment", kind="expense", budget=100.0),
        Category(id="cat-travel", name="Travel", kind="expense"),
        Category(id="cat-salary", name="Salary", kind="income"),
    ]
