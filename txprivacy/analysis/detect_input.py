"""User input classification: txid, address or invalid.

Accepts raw identifiers and explorer URLs (mempool.space, blockstream.info).
"""

from __future__ import annotations

import re
from typing import Literal
from urllib.parse import urlparse

InputType = Literal["txid", "address", "invalid"]

TXID_PATTERN = re.compile(r"^[a-fA-F0-9]{64}$")
_URL_TX = re.compile(r"/tx/([a-fA-F0-9]{64})")
_URL_ADDRESS = re.compile(r"/address/([a-zA-Z0-9]+)")

MAINNET_ADDRESS_PATTERNS = (
    re.compile(r"^bc1[a-zA-HJ-NP-Z0-9]{25,62}$", re.IGNORECASE),
    re.compile(r"^1[a-km-zA-HJ-NP-Z1-9]{25,34}$"),
    re.compile(r"^3[a-km-zA-HJ-NP-Z1-9]{25,34}$"),
)
TESTNET_ADDRESS_PATTERNS = (
    re.compile(r"^tb1[a-zA-HJ-NP-Z0-9]{25,62}$", re.IGNORECASE),
    re.compile(r"^[mn][a-km-zA-HJ-NP-Z1-9]{25,34}$"),
    re.compile(r"^2[a-km-zA-HJ-NP-Z1-9]{25,34}$"),
)


def _extract_from_url(text: str) -> str | None:
    parsed = urlparse(text)
    if not parsed.scheme or not parsed.netloc:
        return None
    match = _URL_TX.search(parsed.path) or _URL_ADDRESS.search(parsed.path)
    return match.group(1) if match else None


def clean_input(text: str) -> str:
    """Trim input and pull the txid or address out of an explorer URL."""
    trimmed = text.strip()
    return _extract_from_url(trimmed) or trimmed


def detect_input_type(text: str, network: str = "mainnet") -> InputType:
    """Classify user input for the given network.

    Args:
        text: txid, address or explorer URL
        network: "mainnet", "testnet4" or "signet"

    Returns:
        "txid", "address" or "invalid"
    """
    value = clean_input(text)
    if TXID_PATTERN.match(value):
        return "txid"

    patterns = MAINNET_ADDRESS_PATTERNS if network == "mainnet" else TESTNET_ADDRESS_PATTERNS
    if any(p.match(value) for p in patterns):
        return "address"
    return "invalid"
