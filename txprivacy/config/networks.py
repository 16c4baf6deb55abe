"""Supported Bitcoin networks and their explorer endpoints."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NetworkEndpoints:
    """Esplora-compatible base URLs for one network.

    Attributes:
        name: Network identifier
        primary_url: Base URL tried first
        fallback_url: Base URL used when the primary is unavailable
        explorer_url: Web explorer base for links
    """

    name: str
    primary_url: str
    fallback_url: str | None
    explorer_url: str


NETWORKS: dict[str, NetworkEndpoints] = {
    "mainnet": NetworkEndpoints(
        name="mainnet",
        primary_url="https://mempool.space/api",
        fallback_url="https://blockstream.info/api",
        explorer_url="https://mempool.space",
    ),
    "testnet4": NetworkEndpoints(
        name="testnet4",
        primary_url="https://mempool.space/testnet4/api",
        fallback_url=None,
        explorer_url="https://mempool.space/testnet4",
    ),
    "signet": NetworkEndpoints(
        name="signet",
        primary_url="https://mempool.space/signet/api",
        fallback_url=None,
        explorer_url="https://mempool.space/signet",
    ),
}
