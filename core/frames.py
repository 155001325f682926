"""Conversion of transaction and category snapshots into analysis-ready shapes."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Iterable, Mapping, Optional, Union

import pandas as pd

from core.errors import AnalyticsError
from core.models import EXPENSE, INCOME, Category, Transaction

__all__ = [
    "TRANSACTION_COLUMNS",
    "TransactionsInput",
    "CategoriesInput",
    "empty_transactions_frame",
    "prepare_transactions",
    "prepare_categories",
    "expenses_only",
]

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = ["id", "date", "amount", "category", "description", "kind"]
UNCATEGORIZED = "Uncategorized"
_KINDS = {INCOME, EXPENSE}

TransactionsInput = Union[pd.DataFrame, Iterable[Union[Transaction, Mapping[str, Any]]], None]
CategoriesInput = Union[Iterable[Union[Category, Mapping[str, Any]]], None]


def empty_transactions_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "id": pd.Series(dtype=object),
            "date": pd.Series(dtype="datetime64[ns]"),
            "amount": pd.Series(dtype=float),
            "category": pd.Series(dtype=object),
            "description": pd.Series(dtype=object),
            "kind": pd.Series(dtype=object),
        }
    )


def _as_record(item: Union[Transaction, Mapping[str, Any]]) -> dict[str, Any]:
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.asdict(item)
    record = dict(item)
    if "kind" not in record and "type" in record:
        record["kind"] = record["type"]
    return record


def _collect_records(transactions: Iterable[Any]) -> list[dict[str, Any]]:
    try:
        items = list(transactions)
    except TypeError as exc:
        raise AnalyticsError(f"Unsupported transactions input: {type(transactions).__name__}") from exc

    records: list[dict[str, Any]] = []
    for position, item in enumerate(items):
        try:
            records.append(_as_record(item))
        except (TypeError, ValueError):
            logger.warning("Skipped unreadable transaction record at position %d", position)
    return records


def _is_prepared(frame: pd.DataFrame) -> bool:
    return (
        list(frame.columns) == TRANSACTION_COLUMNS
        and pd.api.types.is_datetime64_dtype(frame["date"])
        and pd.api.types.is_float_dtype(frame["amount"])
    )


def prepare_transactions(transactions: TransactionsInput) -> pd.DataFrame:
    """Return a clean transactions frame with magnitude amounts.

    Records with an unparseable date, a non-numeric amount or an unknown kind
    are dropped and logged by id; they never abort the remaining records.
    Amounts are folded to their absolute value since ``kind`` carries the
    direction of every transaction.
    """

    if transactions is None:
        return empty_transactions_frame()

    if isinstance(transactions, pd.DataFrame):
        if _is_prepared(transactions):
            return transactions.copy()
        raw = transactions.copy()
        if "kind" not in raw.columns and "type" in raw.columns:
            raw = raw.rename(columns={"type": "kind"})
    else:
        records = _collect_records(transactions)
        if not records:
            return empty_transactions_frame()
        raw = pd.DataFrame.from_records(records)

    if raw.empty:
        return empty_transactions_frame()

    for column in TRANSACTION_COLUMNS:
        if column not in raw.columns:
            raw[column] = None

    frame = pd.DataFrame(index=raw.index)
    frame["id"] = raw["id"].astype(str)
    # Offset-aware values are converted to UTC wall time; naive values are kept as-is.
    frame["date"] = pd.to_datetime(
        raw["date"].astype(object), errors="coerce", format="mixed", utc=True
    ).dt.tz_localize(None)
    frame["amount"] = pd.to_numeric(raw["amount"].astype(object).map(_to_number), errors="coerce").abs()
    frame["category"] = raw["category"].where(raw["category"].notna(), UNCATEGORIZED).astype(str)
    frame["description"] = raw["description"].where(raw["description"].notna(), "").astype(str)
    frame["kind"] = raw["kind"].astype(str).str.strip().str.lower()

    valid = frame["date"].notna() & frame["amount"].notna() & frame["kind"].isin(_KINDS)
    if not valid.all():
        dropped = frame.loc[~valid, "id"].tolist()
        logger.warning(
            "Skipped %d of %d malformed transactions (ids: %s)",
            len(dropped),
            len(frame),
            ", ".join(dropped[:10]),
        )
        frame = frame[valid]

    frame = frame.astype({"amount": float})
    return frame.reset_index(drop=True)[TRANSACTION_COLUMNS]


def _to_number(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return value.replace(",", "").replace("$", "").strip() or None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def prepare_categories(categories: CategoriesInput) -> list[Category]:
    """Return validated categories, dropping records without a name."""

    prepared: list[Category] = []
    if categories is None:
        return prepared

    for position, item in enumerate(categories):
        try:
            record = _as_record(item)
        except (TypeError, ValueError):
            logger.warning("Skipped unreadable category record at position %d", position)
            continue
        name = record.get("name")
        if not name:
            logger.warning("Skipped category without a name (id: %s)", record.get("id"))
            continue
        kind = str(record.get("kind") or EXPENSE).strip().lower()
        prepared.append(
            Category(
                id=str(record.get("id", name)),
                name=str(name),
                kind=kind if kind in _KINDS else EXPENSE,  # type: ignore[arg-type]
                budget=_coerce_budget(record.get("budget"), name),
            )
        )
    return prepared


def _coerce_budget(value: Any, name: str) -> Optional[float]:
    if value is None:
        return None
    try:
        budget = float(value)
    except (TypeError, ValueError):
        logger.warning("Ignored non-numeric budget for category %s", name)
        return None
    if pd.isna(budget):
        return None
    return budget


def expenses_only(frame: pd.DataFrame) -> pd.DataFrame:
    return frame[frame["kind"] == EXPENSE]
