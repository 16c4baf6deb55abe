"""
Engine configuration.

Every setting can be overridden through an environment variable; a ``.env``
file at the project root is loaded the first time ``get_config()`` runs.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from txprivacy.config.networks import NETWORKS
from txprivacy.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
LOG_MODES = ("development", "production")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class EngineConfig:
    """
    Configuration for the explorer client, the cluster builder and logging.

    All settings can be overridden via environment variables.
    """

    # ==================== Explorer API ====================
    network: str = field(
        default_factory=lambda: os.getenv("TXPRIVACY_NETWORK", "mainnet")
    )
    # Replaces the network's primary/fallback URLs when set
    api_url: Optional[str] = field(
        default_factory=lambda: os.getenv("TXPRIVACY_API_URL") or None
    )
    timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("TXPRIVACY_TIMEOUT_SECONDS", "15"))
    )
    max_retries: int = field(
        default_factory=lambda: int(os.getenv("TXPRIVACY_MAX_RETRIES", "3"))
    )

    # ==================== Cluster Builder ====================
    cluster_throttle_ms: int = field(
        default_factory=lambda: int(os.getenv("TXPRIVACY_CLUSTER_THROTTLE_MS", "200"))
    )
    cluster_max_txs: int = field(
        default_factory=lambda: int(os.getenv("TXPRIVACY_CLUSTER_MAX_TXS", "50"))
    )
    cluster_max_change: int = field(
        default_factory=lambda: int(os.getenv("TXPRIVACY_CLUSTER_MAX_CHANGE", "10"))
    )
    cluster_txs_per_change: int = field(
        default_factory=lambda: int(os.getenv("TXPRIVACY_CLUSTER_TXS_PER_CHANGE", "20"))
    )

    # ==================== Screening ====================
    ofac_list_path: Optional[str] = field(
        default_factory=lambda: os.getenv("TXPRIVACY_OFAC_LIST") or None
    )

    # ==================== Logging ====================
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_mode: str = field(
        default_factory=lambda: os.getenv("LOG_MODE", "development")
    )  # development or production
    # File logging is enabled only when set
    log_dir: Optional[str] = field(default_factory=lambda: os.getenv("LOG_DIR") or None)

    def __post_init__(self):
        """Validate configuration after initialization"""
        if self.network not in NETWORKS:
            raise ConfigError(
                f"network must be one of {', '.join(NETWORKS)}, got {self.network!r}"
            )
        if self.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds must be positive")
        if self.max_retries < 0:
            raise ConfigError("max_retries must not be negative")
        if self.cluster_throttle_ms < 0:
            raise ConfigError("cluster_throttle_ms must not be negative")
        for name in ("cluster_max_txs", "cluster_max_change", "cluster_txs_per_change"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        if self.log_mode not in LOG_MODES:
            raise ConfigError("log_mode must be 'development' or 'production'")

    @property
    def base_urls(self) -> list[str]:
        """API base URLs in the order they should be tried."""
        if self.api_url:
            return [self.api_url.rstrip("/")]
        endpoints = NETWORKS[self.network]
        urls = [endpoints.primary_url]
        if endpoints.fallback_url:
            urls.append(endpoints.fallback_url)
        return urls

    def to_dict(self) -> dict:
        """Convert configuration to dictionary"""
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }


# Singleton instance
_config: Optional[EngineConfig] = None
_dotenv_loaded = False


def _load_dotenv() -> None:
    global _dotenv_loaded
    if _dotenv_loaded:
        return
    _dotenv_loaded = True
    if ENV_PATH.exists():
        load_dotenv(ENV_PATH, override=True)
        logger.debug(f"Config loaded from .env file at {ENV_PATH}")


def get_config() -> EngineConfig:
    """
    Get the global configuration instance (singleton)

    Returns:
        EngineConfig instance
    """
    global _config
    if _config is None:
        _load_dotenv()
        _config = EngineConfig()
    return _config


def reload_config() -> EngineConfig:
    """
    Reload configuration from environment variables

    Returns:
        New EngineConfig instance
    """
    global _config
    _load_dotenv()
    _config = EngineConfig()
    return _config
