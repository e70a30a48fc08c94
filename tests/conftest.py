"""
Pytest configuration and shared fixtures
These fixtures are available to all test files
"""

import logging
from typing import Any, Dict
from unittest.mock import AsyncMock, Mock

import pytest
import structlog
from solders.hash import Hash
from solders.keypair import Keypair

from pumpdotfun_sdk.clients.ledger_client import LedgerClient
from pumpdotfun_sdk.core.addresses import derive_curve_addresses
from pumpdotfun_sdk.core.bonding_curve import RESERVES_LAYOUT, ReserveSnapshot
from pumpdotfun_sdk.core.metrics import MetricsCollector, get_metrics, init_metrics


TEST_BLOCKHASH = Hash(bytes([7] * 32))


@pytest.fixture
def recent_blockhash() -> Hash:
    return TEST_BLOCKHASH


@pytest.fixture
def wallet() -> Keypair:
    """Trading wallet (fee payer)"""
    return Keypair()


@pytest.fixture
def mint_keypair() -> Keypair:
    return Keypair()


@pytest.fixture
def mint(mint_keypair):
    return mint_keypair.pubkey()


@pytest.fixture
def reserve_snapshot() -> ReserveSnapshot:
    """Reserves of a freshly created pump.fun curve"""
    return ReserveSnapshot(
        real_token_reserves=793_100_000_000_000,
        virtual_token_reserves=1_073_000_000_000_000,  # 1.073B tokens
        virtual_sol_reserves=30_000_000_000  # 30 SOL
    )


@pytest.fixture
def curve_account_data(reserve_snapshot) -> bytes:
    """
    Raw bonding curve account bytes

    Reserves followed by the fields quoting ignores (real SOL, supply, complete)
    """
    return RESERVES_LAYOUT.pack(
        reserve_snapshot.real_token_reserves,
        reserve_snapshot.virtual_token_reserves,
        reserve_snapshot.virtual_sol_reserves
    ) + bytes(17)


@pytest.fixture
def ledger_accounts(mint, curve_account_data) -> Dict[Any, bytes]:
    """
    On-chain accounts visible to mock_ledger

    Starts with the mint's bonding curve only; tests add more as needed.
    """
    return {derive_curve_addresses(mint).bonding_curve: curve_account_data}


@pytest.fixture
def mock_ledger(ledger_accounts):
    """
    LedgerClient with async methods backed by ledger_accounts

    Returns Mock(spec=LedgerClient) with AsyncMock methods
    """
    ledger = Mock(spec=LedgerClient)
    ledger.get_account_info = AsyncMock(side_effect=lambda address: ledger_accounts.get(address))
    ledger.get_latest_blockhash = AsyncMock(return_value=TEST_BLOCKHASH)
    ledger.get_recent_prioritization_fees = AsyncMock(return_value=[1_000, 2_000, 3_000])
    ledger.get_token_account_balance = AsyncMock(return_value=5_000_000)
    ledger.submit_transaction = AsyncMock(return_value="submitted-signature")
    ledger.submit_and_confirm = AsyncMock(return_value="confirmed-signature")
    return ledger


@pytest.fixture
def test_config_dict(wallet) -> Dict[str, Any]:
    """
    Sample configuration dictionary for testing

    Returns valid config that can be modified per test
    """
    return {
        "rpc": {
            "url": "https://api.devnet.solana.com",
            "timeout_s": 5.0,
            "skip_preflight": True,
            "confirmation_timeout_s": 30.0,
            "confirmation_poll_interval_s": 0.5
        },
        "network": "devnet",
        "trading": {
            "compute_unit_limit": 300_000,
            "buy_compute_unit_price": 50_000,
            "sell_compute_unit_price": 5_000
        },
        "wallet": {
            "private_key": str(wallet)
        },
        "logging": {
            "level": "DEBUG",
            "format": "json",
            "output_file": None
        },
        "metrics": {
            "enable_histogram": True
        }
    }


@pytest.fixture
def test_config_file(test_config_dict, tmp_path):
    """
    Create a temporary config file for testing

    Returns path to temporary YAML config file
    """
    import yaml

    config_file = tmp_path / "test_config.yml"
    with open(config_file, 'w') as f:
        yaml.dump(test_config_dict, f)

    return str(config_file)


@pytest.fixture
def metrics_collector() -> MetricsCollector:
    """
    Create fresh metrics collector for each test

    Returns clean MetricsCollector instance
    """
    collector = MetricsCollector(enable_histogram=True)
    yield collector
    collector.reset()


@pytest.fixture
def temp_log_file(tmp_path):
    """
    Create temporary log file path

    Returns path to temporary log file
    """
    return str(tmp_path / "test.log")


@pytest.fixture
def restore_logging():
    """Undo setup_logging() changes to the root logger and structlog"""
    handlers = list(logging.root.handlers)
    level = logging.root.level
    yield
    for handler in list(logging.root.handlers):
        if handler not in handlers:
            logging.root.removeHandler(handler)
            handler.close()
    logging.root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def restore_global_metrics():
    """Put the global collector back to its defaults after a test reconfigures it"""
    yield get_metrics()
    init_metrics(enable_histogram=True)


def pytest_configure(config):
    """Register custom pytest markers"""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires network)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (>5 seconds)"
    )
