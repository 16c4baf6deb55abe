"""
txprivacy configuration package.

Exports:
    EngineConfig / get_config / reload_config: Env-driven settings
    NETWORKS / NetworkEndpoints: Explorer endpoints per network
    setup_logging: Logging setup
"""

from txprivacy.config.logging_config import setup_logging
from txprivacy.config.networks import NETWORKS, NetworkEndpoints
from txprivacy.config.settings import EngineConfig, get_config, reload_config

__all__ = [
    "EngineConfig",
    "get_config",
    "reload_config",
    "NETWORKS",
    "NetworkEndpoints",
    "setup_logging",
]
