"""
Unit tests for configuration management.
"""

import os
from decimal import Decimal
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from timeledger.config.settings import LedgerConfig, get_config, reload_config


class TestLedgerConfig:
    """Test cases for LedgerConfig."""

    def test_config_with_valid_env_vars(self, test_config):
        """Test configuration loads correctly with valid environment variables."""
        assert test_config.environment == "testing"
        assert test_config.debug is True
        assert test_config.log_level == "DEBUG"
        assert test_config.ledger_user == "user-1"
        assert test_config.default_tax_rate == Decimal("0")
        assert test_config.payment_terms_days == 30

    def test_default_values(self, mock_env):
        """Test default configuration values."""
        config = LedgerConfig()

        assert config.ledger_file == "ledger.json"
        assert config.currency_symbol == "$"
        assert config.log_format == "standard"
        assert config.invoice_number_max_retries == 3
        assert config.upcoming_invoice_window_days == 7
        assert config.recent_payment_window_hours == 48

    def test_values_are_normalized(self, mock_env):
        with patch.dict(os.environ, {"LOG_LEVEL": "warning", "LOG_FORMAT": "JSON"}):
            config = LedgerConfig()

        assert config.log_level == "WARNING"
        assert config.log_format == "json"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("LOG_LEVEL", "LOUD"),
            ("LOG_FORMAT", "xml"),
            ("ENVIRONMENT", "staging"),
            ("DEFAULT_TAX_RATE", "101"),
            ("DEFAULT_TAX_RATE", "-1"),
            ("PAYMENT_TERMS_DAYS", "-5"),
            ("LEDGER_USER", ""),
        ],
    )
    def test_invalid_values(self, mock_env, name, value):
        with patch.dict(os.environ, {name: value}):
            with pytest.raises(ValidationError):
                LedgerConfig()


class TestGlobalConfig:
    def test_get_config_is_cached(self, mock_env):
        assert get_config() is get_config()

    def test_reload_config_replaces_instance(self, mock_env):
        first = get_config()

        with patch.dict(os.environ, {"PAYMENT_TERMS_DAYS": "14"}):
            reloaded = reload_config()

        assert reloaded is not first
        assert reloaded.payment_terms_days == 14
        assert get_config() is reloaded

    def test_env_file(self, mock_env, tmp_path, monkeypatch):
        monkeypatch.delenv("PAYMENT_TERMS_DAYS")
        env_file = tmp_path / "ledger.env"
        env_file.write_text("PAYMENT_TERMS_DAYS=45\n")

        config = reload_config(str(env_file))

        assert config.payment_terms_days == 45
