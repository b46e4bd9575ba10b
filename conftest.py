"""
Global pytest configuration and fixtures.
"""
import datetime as dt
from decimal import Decimal
from typing import Dict

import pytest
from click.testing import CliRunner

from timeledger.cli.context import LedgerApp
from timeledger.config import LedgerConfig, reload_config, reset_logging
from timeledger.models import Client, Project
from timeledger.stores import InMemoryLedgerStore
from timeledger.utils.clock import FixedClock

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without file system access")
    config.addinivalue_line("markers", "integration: tests that use the JSON ledger file")


@pytest.fixture(scope="session")
def test_env_vars() -> Dict[str, str]:
    """Test environment variables for configuration."""
    return {
        'ENVIRONMENT': 'testing',
        'DEBUG': 'true',
        'LOG_LEVEL': 'DEBUG',
        'LEDGER_USER': USER_ID,
        'DEFAULT_TAX_RATE': '0',
        'PAYMENT_TERMS_DAYS': '30',
    }


@pytest.fixture
def mock_env(test_env_vars, monkeypatch):
    """Mock environment variables for testing."""
    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)

    # Clear the global config to force reload with test values
    import timeledger.config.settings
    timeledger.config.settings._config = None

    yield test_env_vars

    # Clean up
    timeledger.config.settings._config = None


@pytest.fixture
def test_config(mock_env) -> LedgerConfig:
    """Test configuration instance."""
    return reload_config()


@pytest.fixture
def clean_logging():
    """Drop handlers installed by configure_logging during a test."""
    yield
    reset_logging()


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to Monday 2024-03-04 12:00 UTC."""
    return FixedClock(dt.datetime(2024, 3, 4, 12, 0, tzinfo=dt.timezone.utc))


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def user_id() -> str:
    return USER_ID


@pytest.fixture
def other_user_id() -> str:
    return OTHER_USER_ID


@pytest.fixture
def client(store) -> Client:
    """A client owned by the default test user."""
    return store.add_client(Client(name="Acme Corp", created_by_id=USER_ID))


@pytest.fixture
def project(store, client) -> Project:
    """A project billed at 100/h for the default client."""
    return store.add_project(
        Project(
            name="Website Redesign",
            client_id=client.id,
            hourly_rate=Decimal("100.00"),
            created_by_id=USER_ID,
        )
    )


@pytest.fixture
def other_project(store) -> Project:
    """A project owned by a different user."""
    other_client = store.add_client(Client(name="Globex", created_by_id=OTHER_USER_ID))
    return store.add_project(
        Project(
            name="Secret Project",
            client_id=other_client.id,
            hourly_rate=Decimal("150.00"),
            created_by_id=OTHER_USER_ID,
        )
    )



@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def app(mock_env, store, clock) -> LedgerApp:
    """CLI application wired to the in-memory store and fixed clock."""
    return LedgerApp(LedgerConfig(), user_id=USER_ID, store=store, clock=clock)
