"""
pytest configuration and global fixtures.

This file is automatically loaded by pytest and provides:
- Payload fixtures loaded from fixtures/*.yaml
- Model builders shared by unit and property tests
- A fresh Prometheus registry per test
"""

from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

from fixtures import load_fixture, make_trade
from shared.metrics import CoreMetrics
from shared.models import LiveTradeSnapshot


@pytest.fixture
def fixtures_dir():
    """Provide path to fixtures directory."""
    return Path(__file__).parent.parent / "fixtures"


# ============================================================================
# Account Fixtures
# ============================================================================


@pytest.fixture
def accounts_payload():
    """Grouped accounts payload (broker / prop firm / ...)."""
    return load_fixture("accounts")["accounts"]


@pytest.fixture
def copier_payload():
    """Relationship payload: master 1 -> [2, 3], master 99 (absent) -> [5]."""
    return load_fixture("accounts")["copier_accounts"]


# ============================================================================
# Trading Fixtures
# ============================================================================


@pytest.fixture
def open_trades_message():
    """Open trades push with EURUSD and GBPUSD trades and orders."""
    return load_fixture("open_trades")["mixed"]


@pytest.fixture
def empty_trades_message():
    return load_fixture("open_trades")["empty"]


@pytest.fixture
def two_symbol_snapshot():
    """Long 2 EURUSD and short 1 GBPUSD."""
    return LiveTradeSnapshot(
        account=42,
        trades=(
            make_trade("t1", "EURUSD", "long", 2.0, entry=1.085, pl=12.5),
            make_trade("t2", "GBPUSD", "short", 1.0, entry=1.265, pl=-4.0),
        ),
    )


# ============================================================================
# Metrics Fixtures
# ============================================================================


@pytest.fixture
def metrics():
    """CoreMetrics on a clean registry for each test."""
    return CoreMetrics(registry=CollectorRegistry())
