"""H6: Fee Fingerprinting.

Wallets pick fee rates differently. Some use whole sat/vB values from fixed
presets, which narrows down the software. RBF signaling is recorded as
informational only, since it is now the default in most wallets.
"""

from __future__ import annotations

import math

from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction

RBF_SEQUENCE_THRESHOLD = 0xFFFFFFFE
MIN_ROUND_FEE_RATE = 5
ROUND_RATE_TOLERANCE = 0.05


def fee_rate(tx: Transaction) -> float:
    """Fee rate in sat/vB (vsize = ceil(weight / 4))."""
    return tx.fee / math.ceil(tx.weight / 4)


def analyze_fees(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    if tx.fee <= 0 or tx.weight <= 0:
        return result

    rate = fee_rate(tx)
    rounded = round(rate)
    if abs(rate - rounded) < ROUND_RATE_TOLERANCE and rounded > MIN_ROUND_FEE_RATE:
        result.findings.append(
            Finding(
                kind=FindingKind.ROUND_FEE_RATE,
                severity=Severity.LOW,
                title=f"Round fee rate: {rounded} sat/vB",
                description=(
                    f"The fee rate is a whole number ({rounded} sat/vB). Wallets "
                    "with fixed fee presets produce such rates, which helps "
                    "identify the wallet software."
                ),
                recommendation=(
                    "Prefer wallets that estimate fees precisely instead of "
                    "rounding to whole sat/vB values."
                ),
                score_impact=-2,
                params={"feeRate": rounded},
            )
        )

    signals_rbf = any(
        not vin.is_coinbase and vin.sequence < RBF_SEQUENCE_THRESHOLD for vin in tx.vin
    )
    if signals_rbf:
        result.findings.append(
            Finding(
                kind=FindingKind.RBF_SIGNALED,
                severity=Severity.LOW,
                title="Replace-by-fee signaled",
                description=(
                    "At least one input signals replaceability (BIP125). This is "
                    "common today and mostly reveals wallet defaults."
                ),
                recommendation="No action needed.",
                score_impact=0,
            )
        )
    return result
