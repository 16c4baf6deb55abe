"""H3: Common Input Ownership Heuristic (CIOH).

All inputs of a transaction are assumed to belong to one entity, since a
single party normally signs them all. Every extra input address is linked to
the others for good.

Reference: Nakamoto (2008) section 10, Meiklejohn et al. (2013)
"""

from __future__ import annotations

from txprivacy.heuristics._common import is_coinbase, unique_input_addresses
from txprivacy.models import (
    Finding,
    FindingKind,
    HeuristicResult,
    Remediation,
    Severity,
    Tool,
    Transaction,
    Urgency,
)

# (minimum unique addresses, penalty), checked top-down
CIOH_TIERS = ((50, 45), (20, 35), (10, 25), (5, 15))
PENALTY_PER_ADDRESS = 3


def cioh_penalty(address_count: int) -> int:
    """Penalty magnitude for linking ``address_count`` addresses (>= 2)."""
    for minimum, penalty in CIOH_TIERS:
        if address_count >= minimum:
            return penalty
    return address_count * PENALTY_PER_ADDRESS


def analyze_cioh(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    if is_coinbase(tx):
        return result

    addresses = unique_input_addresses(tx)
    count = len(addresses)

    if count <= 1:
        result.findings.append(
            Finding(
                kind=FindingKind.SINGLE_INPUT,
                severity=Severity.GOOD,
                title="No input addresses linked",
                description=(
                    "All inputs come from a single address, so this transaction "
                    "does not link any additional addresses together."
                ),
                recommendation="Keep spending from one address (or one UTXO) at a time.",
                score_impact=0,
            )
        )
        return result

    penalty = cioh_penalty(count)
    if penalty >= 25:
        severity = Severity.CRITICAL
    elif penalty >= 12:
        severity = Severity.HIGH
    else:
        severity = Severity.MEDIUM

    result.findings.append(
        Finding(
            kind=FindingKind.CIOH,
            severity=severity,
            title=f"{count} input addresses linked by common ownership",
            description=(
                f"This transaction spends from {count} different addresses. Chain "
                "analysis assumes all of them belong to the same owner and will "
                "cluster them permanently."
            ),
            recommendation=(
                "Use coin control to avoid mixing UTXOs from different sources. "
                "If you must consolidate, do it after a CoinJoin or accept that "
                "the addresses become linked."
            ),
            score_impact=-penalty,
            params={"addressCount": count},
            remediation=Remediation(
                steps=(
                    "Enable coin control and pick inputs deliberately.",
                    "Keep UTXOs from different sources (KYC, non-KYC) in separate wallets.",
                    "Consolidate only during low-fee periods and only coins that are already linked.",
                ),
                tools=(Tool(name="Sparrow Wallet", url="https://sparrowwallet.com"),),
                urgency=Urgency.SOON if count >= 5 else Urgency.WHEN_CONVENIENT,
            ),
        )
    )
    return result
