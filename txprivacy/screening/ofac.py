"""OFAC sanctions-list screening.

The list is a JSON file ``{"lastUpdated": "...", "addresses": [...]}``.
Bech32 addresses are case-insensitive (BIP-173) and compared lowercased;
base58 addresses are case-sensitive and compared exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from txprivacy.models import Transaction

logger = logging.getLogger(__name__)

BECH32_PREFIXES = ("bc1", "tb1")


class SanctionsList(BaseModel):
    """Sanctioned addresses with the date the list was last refreshed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    last_updated: str = Field(default="", alias="lastUpdated")
    addresses: list[str] = Field(default_factory=list)

    def normalized(self) -> frozenset[str]:
        return frozenset(normalize_address(a) for a in self.addresses)


@dataclass
class OfacCheckResult:
    """
    Attributes:
        checked: False when no sanctions list was available
        sanctioned: True if any address matched
        matched_addresses: Matching addresses as given by the caller
        last_updated: Date of the sanctions list
    """

    checked: bool
    sanctioned: bool = False
    matched_addresses: list[str] = field(default_factory=list)
    last_updated: str | None = None


def normalize_address(address: str) -> str:
    lower = address.lower()
    return lower if lower.startswith(BECH32_PREFIXES) else address


def load_sanctions_list(path: str | Path) -> SanctionsList:
    """Read and validate a sanctions list file."""
    text = Path(path).read_text(encoding="utf-8")
    sanctions = SanctionsList.model_validate_json(text)
    logger.debug(f"Loaded {len(sanctions.addresses)} sanctioned addresses from {path}")
    return sanctions


def check_ofac(addresses: list[str], sanctions: SanctionsList | None) -> OfacCheckResult:
    """Screen addresses against the sanctions list.

    Args:
        addresses: Addresses to screen
        sanctions: Loaded list, or None when screening is not configured

    Returns:
        OfacCheckResult
    """
    if sanctions is None:
        return OfacCheckResult(checked=False)
    sanctioned = sanctions.normalized()
    matched = [a for a in addresses if normalize_address(a) in sanctioned]
    return OfacCheckResult(
        checked=True,
        sanctioned=bool(matched),
        matched_addresses=matched,
        last_updated=sanctions.last_updated,
    )


def extract_tx_addresses(tx: Transaction) -> list[str]:
    """Unique input and output addresses, inputs first."""
    seen: dict[str, None] = {}
    for vin in tx.vin:
        if vin.prevout is not None and vin.prevout.scriptpubkey_address:
            seen.setdefault(vin.prevout.scriptpubkey_address)
    for out in tx.vout:
        if out.scriptpubkey_address:
            seen.setdefault(out.scriptpubkey_address)
    return list(seen)
