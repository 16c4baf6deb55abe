"""
Pytest configuration and shared fixtures

Record factories live in tests/fixtures/tx_factory.py and are registered
as a plugin so every test module can request them by name.
"""

import pytest

from txprivacy.config import EngineConfig

pytest_plugins = ["tests.fixtures.tx_factory"]


@pytest.fixture
def engine_config():
    """Config with fast cluster throttling and no retries (no real sleeps)."""
    return EngineConfig(
        network="mainnet",
        api_url=None,
        timeout_seconds=5,
        max_retries=0,
        cluster_throttle_ms=0,
        cluster_max_txs=50,
        cluster_max_change=10,
        cluster_txs_per_change=20,
        ofac_list_path=None,
        log_level="INFO",
        log_mode="development",
        log_dir=None,
    )
