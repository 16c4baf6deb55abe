"""H10: Address Type Analysis.

Taproot key-path spends all look alike, so P2TR has the best privacy. Older
script types reveal more when spent and share a shrinking anonymity set.
"""

from __future__ import annotations

from txprivacy.heuristics._common import AddressType, get_address_type
from txprivacy.models import (
    AddressInfo,
    Finding,
    FindingKind,
    HeuristicResult,
    Severity,
    Transaction,
    Utxo,
)

UPGRADE_ADVICE = "Upgrade to a native SegWit (bc1q) or Taproot (bc1p) wallet."

# type -> (kind, severity, impact, title, description, recommendation)
TYPE_FINDINGS = {
    AddressType.P2TR: (
        FindingKind.TYPE_P2TR,
        Severity.GOOD,
        5,
        "Taproot address (P2TR)",
        "Every Taproot spend condition looks identical on chain, which gives "
        "the best available privacy.",
        "Keep using Taproot; its anonymity set grows with adoption.",
    ),
    AddressType.P2WPKH: (
        FindingKind.TYPE_P2WPKH,
        Severity.GOOD,
        0,
        "Native SegWit address (P2WPKH)",
        "P2WPKH has a large anonymity set, though Taproot hides spend "
        "conditions better.",
        "Consider a Taproot-capable wallet.",
    ),
    AddressType.P2WSH: (
        FindingKind.TYPE_P2WSH,
        Severity.LOW,
        -2,
        "Native SegWit script address (P2WSH)",
        "P2WSH reveals its script (often multisig) when spent and has a small "
        "anonymity set.",
        "Taproot can hide multisig behind a single-key spend.",
    ),
    AddressType.P2SH: (
        FindingKind.TYPE_P2SH,
        Severity.MEDIUM,
        -3,
        "Pay-to-Script-Hash address (P2SH)",
        "P2SH reveals its script type on spend and has a smaller anonymity set "
        "than native SegWit or Taproot.",
        UPGRADE_ADVICE,
    ),
    AddressType.P2PKH: (
        FindingKind.TYPE_P2PKH,
        Severity.MEDIUM,
        -5,
        "Legacy address (P2PKH)",
        "Legacy addresses expose the public key on spend, pay higher fees and "
        "are rarely used by modern privacy tools.",
        UPGRADE_ADVICE,
    ),
}


def analyze_address_type(
    address: AddressInfo, utxos: list[Utxo], txs: list[Transaction]
) -> HeuristicResult:
    result = HeuristicResult()
    entry = TYPE_FINDINGS.get(get_address_type(address.address))
    if entry is None:
        return result

    kind, severity, impact, title, description, recommendation = entry
    result.findings.append(
        Finding(
            kind=kind,
            severity=severity,
            title=title,
            description=description,
            recommendation=recommendation,
            score_impact=impact,
        )
    )
    return result
