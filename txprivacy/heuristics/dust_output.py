"""Dust Output Detection (transaction level).

Flags tiny outputs (< 1000 sats). They are uneconomical to spend, and
surveillance "dusting" uses them to tag addresses: when the dust is later
spent together with other coins, the owner's addresses get clustered.

Impact: -3 to -8
"""

from __future__ import annotations

from txprivacy.heuristics._common import DUST_THRESHOLD_SATS, is_coinbase, is_op_return
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

# Below the typical minimum relay fee
EXTREME_DUST_SATS = 600
BATCH_DUST_MIN_OUTPUTS = 5


def _is_dust_attack(dust_count: int, tx: Transaction) -> bool:
    # Classic: one dust output plus change from a single input
    classic = dust_count == 1 and len(tx.vout) == 2 and len(tx.vin) == 1
    # Batch: most outputs of the transaction are dust
    batch = dust_count >= BATCH_DUST_MIN_OUTPUTS and dust_count > len(tx.vout) / 2
    return classic or batch


def analyze_dust_outputs(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    if is_coinbase(tx):
        return result

    dust = [
        out.value
        for out in tx.vout
        if 0 < out.value < DUST_THRESHOLD_SATS and not is_op_return(out)
    ]
    if not dust:
        return result

    total = sum(dust)
    extreme = sum(1 for value in dust if value < EXTREME_DUST_SATS)

    if _is_dust_attack(len(dust), tx):
        result.findings.append(
            Finding(
                kind=FindingKind.DUST_ATTACK,
                severity=Severity.HIGH,
                title=f"Possible dust attack ({total} sats)",
                description=(
                    f"This transaction sends a tiny amount ({total} sats), the usual "
                    "shape of a dusting attack. If you received it, spending it "
                    "with your other coins reveals your wallet cluster."
                ),
                recommendation="Freeze this UTXO with coin control and never spend it.",
                score_impact=-8,
                params={"totalDustValue": total},
                remediation=Remediation(
                    steps=(
                        "Open coin control and mark the dust UTXO as do-not-spend.",
                        "Never include it in a transaction with your other UTXOs.",
                        "To clean it up, send it alone through a CoinJoin or to a wallet you can burn.",
                    ),
                    tools=(
                        Tool(name="Sparrow Wallet (Coin Control)", url="https://sparrowwallet.com"),
                    ),
                    urgency=Urgency.IMMEDIATE,
                ),
            )
        )
        return result

    plural = "s" if len(dust) > 1 else ""
    description = (
        f"This transaction has {len(dust)} output{plural} below "
        f"{DUST_THRESHOLD_SATS} sats (total {total} sats). Tiny outputs cost more "
        "to spend than they are worth and may be tracking dust."
    )
    if extreme:
        description += (
            f" {extreme} of them {'is' if extreme == 1 else 'are'} below the typical "
            "minimum relay fee."
        )
    result.findings.append(
        Finding(
            kind=FindingKind.DUST_OUTPUTS,
            severity=Severity.MEDIUM if extreme else Severity.LOW,
            title=f"{len(dust)} dust output{plural} detected (< {DUST_THRESHOLD_SATS} sats)",
            description=description,
            recommendation=(
                "Use coin control so dust UTXOs are never spent together with "
                "your main coins."
            ),
            score_impact=-5 if extreme else -3,
            params={
                "dustCount": len(dust),
                "threshold": DUST_THRESHOLD_SATS,
                "totalDustValue": total,
                "extremeCount": extreme,
            },
        )
    )
    return result
