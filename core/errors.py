"""Exceptions and the fail-soft guard wrapped around every engine output."""

from __future__ import annotations

import copy
import functools
import logging
from typing import Any, Callable, TypeVar

import pandas as pd

__all__ = [
    "AnalyticsError",
    "InvalidWindowError",
    "describe_inputs",
    "guarded",
]

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class AnalyticsError(RuntimeError):
    """Raised when an analytics computation cannot proceed."""


class InvalidWindowError(ValueError):
    """Raised when a date window starts after it ends."""


def _shape(value: Any) -> str:
    if isinstance(value, pd.DataFrame):
        return f"DataFrame[{len(value)} rows]"
    if isinstance(value, (list, tuple)):
        return f"{type(value).__name__}[{len(value)}]"
    if isinstance(value, dict):
        return f"dict[{len(value)} keys]"
    if value is None or isinstance(value, (int, float, bool, str, pd.Timestamp)):
        return repr(value)
    return type(value).__name__


def describe_inputs(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    """Summarise call arguments by shape so logs never carry descriptions."""

    parts = [_shape(arg) for arg in args]
    parts.extend(f"{key}={_shape(value)}" for key, value in kwargs.items())
    return ", ".join(parts)


def guarded(fallback: Callable[..., Any], label: str, default: Any = None) -> Callable[[F], F]:
    """Return the fallback instead of raising when the wrapped output fails.

    ``fallback`` receives the same arguments as the wrapped function so it can
    shape its default around ``now`` or the known categories. If the fallback
    itself fails, a copy of ``default`` is returned.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.exception("Error calculating %s (%s)", label, describe_inputs(args, kwargs))
            try:
                return copy.deepcopy(fallback(*args, **kwargs))
            except Exception:
                logger.exception("Fallback for %s failed", label)
                return copy.deepcopy(default)

        return wrapper  # type: ignore[return-value]

    return decorator
