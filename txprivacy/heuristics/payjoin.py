"""PayJoin (P2EP) Detection.

In a PayJoin the recipient contributes an input, so the transaction breaks the
common-input-ownership assumption while looking like an ordinary payment.

Shape: exactly 2 inputs from 2 distinct addresses and 2 outputs, one of which
pays back to an input address (the recipient's consolidated payment).

Impact: +3 (informational positive)
"""

from __future__ import annotations

from txprivacy.heuristics._common import unique_input_addresses
from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction


def analyze_payjoin(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    if len(tx.vin) != 2 or len(tx.vout) != 2:
        return result

    inputs = unique_input_addresses(tx)
    if len(inputs) != 2:
        return result
    if not any(out.scriptpubkey_address in inputs for out in tx.vout):
        return result

    result.findings.append(
        Finding(
            kind=FindingKind.PAYJOIN,
            severity=Severity.GOOD,
            title="Possible PayJoin (P2EP) transaction",
            description=(
                "Two inputs from different addresses with an output that pays back "
                "to one of them. PayJoin has the recipient contribute an input, "
                "which makes common-input-ownership clustering wrong."
            ),
            recommendation=(
                "PayJoin is one of the best everyday privacy techniques. Keep using "
                "it where the recipient supports it."
            ),
            score_impact=3,
        )
    )
    return result
