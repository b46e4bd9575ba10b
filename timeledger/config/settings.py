"""
Configuration management for the ledger.
"""

from decimal import Decimal
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerConfig(BaseSettings):
    """Configuration settings for the ledger and its CLI."""

    # Application Configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="standard", alias="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")

    # Storage Configuration
    ledger_file: str = Field(default="ledger.json", alias="LEDGER_FILE")
    ledger_user: str = Field(default="local", min_length=1, alias="LEDGER_USER")

    # Billing Configuration
    default_tax_rate: Decimal = Field(default=Decimal("0"), alias="DEFAULT_TAX_RATE")
    payment_terms_days: int = Field(default=30, ge=0, alias="PAYMENT_TERMS_DAYS")
    currency_symbol: str = Field(default="$", alias="CURRENCY_SYMBOL")
    invoice_number_max_retries: int = Field(
        default=3, ge=0, alias="INVOICE_NUMBER_MAX_RETRIES"
    )

    # Notification Configuration
    upcoming_invoice_window_days: int = Field(
        default=7, ge=0, alias="UPCOMING_INVOICE_WINDOW_DAYS"
    )
    recent_payment_window_hours: int = Field(
        default=48, ge=0, alias="RECENT_PAYMENT_WINDOW_HOURS"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        if v.lower() not in ("standard", "json"):
            raise ValueError("Log format must be 'standard' or 'json'")
        return v.lower()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Ensure environment is valid."""
        valid_envs = ["development", "testing", "production"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("default_tax_rate")
    @classmethod
    def validate_tax_rate(cls, v):
        """Ensure the default tax rate is not negative."""
        if v < 0:
            raise ValueError("Default tax rate cannot be negative")
        return v


def load_config(env_file: Optional[str] = None) -> LedgerConfig:
    """Load configuration from environment variables and .env file."""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    return LedgerConfig()


# Global configuration instance
_config: Optional[LedgerConfig] = None


def get_config() -> LedgerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(env_file: Optional[str] = None) -> LedgerConfig:
    """Reload configuration (useful for testing)."""
    global _config
    _config = load_config(env_file)
    return _config
