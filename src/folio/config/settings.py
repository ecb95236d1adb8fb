"""Application settings and configuration."""

from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Folio Portfolio Tracker"
    app_version: str = "0.1.0"

    log_level: str = "INFO"

    # Admission-time ledger checks (the derivation core never validates)
    enforce_cash_balance: bool = False
    enforce_share_balance: bool = True

    # Goals
    default_goal_amount: Decimal = Decimal("100000")

    # Allocation drift (percentage points) that triggers a rebalance alert
    drift_alert_threshold: Decimal = Decimal("10")

    # Simulated benchmark growth on invested capital
    benchmark_annual_rate: Decimal = Decimal("0.08")

    # Display currency (presentation only, never applied to ledger values)
    display_currency: str = "USD"
    display_exchange_rate: Decimal = Decimal("1")


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
