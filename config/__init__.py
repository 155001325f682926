"""Engine configuration utilities."""

from .settings import DEFAULT_INVESTMENT_KEYWORDS, DEFAULT_LOG_LEVEL, Settings, get_settings

__all__ = [
    "DEFAULT_INVESTMENT_KEYWORDS",
    "DEFAULT_LOG_LEVEL",
    "Settings",
    "get_settings",
]
