"""Shared predicates for the heuristic rules.

Every helper here is pure and tolerant of incomplete records: a missing
prevout or address simply means the signal is unavailable.
"""

from __future__ import annotations

from enum import Enum

from txprivacy.models import Transaction, TxInput, TxOutput

SATS_PER_BTC = 100_000_000

# Outputs below this value are uneconomical to spend
DUST_THRESHOLD_SATS = 1_000

# Whirlpool pool denominations in satoshis (0.0005, 0.001, 0.01, 0.05, 0.5 BTC)
WHIRLPOOL_DENOMINATIONS_SATS = frozenset(
    [50_000, 100_000, 1_000_000, 5_000_000, 50_000_000]
)


class AddressType(str, Enum):
    P2TR = "p2tr"
    P2WPKH = "p2wpkh"
    P2WSH = "p2wsh"
    P2SH = "p2sh"
    P2PKH = "p2pkh"
    UNKNOWN = "unknown"


def get_address_type(address: str) -> AddressType:
    """Classify an address by prefix and length.

    Covers mainnet (bc1, 1, 3) and testnet/signet (tb1, m, n, 2). Segwit v0
    addresses longer than 50 characters are P2WSH (62 chars), shorter ones
    P2WPKH (42 chars).

    Args:
        address: Address string

    Returns:
        Exactly one AddressType
    """
    if address.startswith(("bc1p", "tb1p")):
        return AddressType.P2TR
    if address.startswith(("bc1q", "tb1q")):
        return AddressType.P2WSH if len(address) > 50 else AddressType.P2WPKH
    if address.startswith(("3", "2")):
        return AddressType.P2SH
    if address.startswith(("1", "m", "n")):
        return AddressType.P2PKH
    return AddressType.UNKNOWN


def is_coinbase(tx: Transaction) -> bool:
    return any(vin.is_coinbase for vin in tx.vin)


def input_address(vin: TxInput) -> str | None:
    if vin.is_coinbase or vin.prevout is None:
        return None
    return vin.prevout.scriptpubkey_address or None


def input_addresses(tx: Transaction) -> list[str]:
    """Input addresses in input order (duplicates kept)."""
    return [addr for addr in (input_address(v) for v in tx.vin) if addr]


def unique_input_addresses(tx: Transaction) -> set[str]:
    return set(input_addresses(tx))


def is_op_return(out: TxOutput) -> bool:
    return out.scriptpubkey_type == "op_return" or out.scriptpubkey.startswith("6a")


def spendable_outputs(tx: Transaction) -> list[TxOutput]:
    """Outputs that can carry value to someone: addressed, non-OP_RETURN, >0."""
    return [
        out
        for out in tx.vout
        if not is_op_return(out) and out.scriptpubkey_address and out.value > 0
    ]


def format_btc(sats: int) -> str:
    """Render satoshis as a trimmed BTC string, e.g. ``0.01 BTC``."""
    text = f"{sats / SATS_PER_BTC:.8f}".rstrip("0").rstrip(".")
    return f"{text} BTC"
