"""Core domain package for the PlainSpend analytics engine.

The engine façade lives in :mod:`core.engine`; import it from there.
"""

from .errors import AnalyticsError, InvalidWindowError, guarded
from .logging_setup import configure_logging
from .models import (
    AnalyticsSnapshot,
    Category,
    Frequency,
    RecurringCandidate,
    Transaction,
    TrendComparison,
    TrendLine,
)
from .periods import Window, resolve_window, today

__all__ = [
    "AnalyticsError",
    "InvalidWindowError",
    "guarded",
    "configure_logging",
    "AnalyticsSnapshot",
    "Category",
    "Frequency",
    "RecurringCandidate",
    "Transaction",
    "TrendComparison",
    "TrendLine",
    "Window",
    "resolve_window",
    "today",
]
