"""Centralised configuration handling for the PlainSpend analytics engine."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_INVESTMENT_KEYWORDS = ("vanguard",)


class Settings(BaseSettings):
    """Engine settings sourced from ``PLAINSPEND_*`` environment variables."""

    log_level: str = DEFAULT_LOG_LEVEL
    investment_keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_INVESTMENT_KEYWORDS))
    trend_months: int = Field(default=12, ge=1)
    forecast_horizon: int = Field(default=3, ge=1)
    forecast_lookback_months: int = Field(default=6, ge=2)
    min_recurring_transactions: int = Field(default=3, ge=3)
    pattern_lookback_months: int = Field(default=3, ge=1)

    model_config = SettingsConfigDict(env_prefix="PLAINSPEND_", extra="ignore")

    @property
    def normalized_investment_keywords(self) -> tuple[str, ...]:
        return tuple(keyword.strip().lower() for keyword in self.investment_keywords if keyword.strip())


@lru_cache
def get_settings() -> Settings:
    """Load and cache engine settings."""

    return Settings()
