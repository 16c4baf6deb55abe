"""Coinbase (block reward) detection. Informational, impact 0."""

from __future__ import annotations

from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction


def analyze_coinbase(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    if len(tx.vin) == 1 and tx.vin[0].is_coinbase:
        result.findings.append(
            Finding(
                kind=FindingKind.COINBASE,
                severity=Severity.LOW,
                title="Coinbase transaction (block reward)",
                description=(
                    "This transaction creates new coins as a block reward. Its outputs "
                    "belong to a mining pool or solo miner, and pool payout addresses "
                    "are routinely labelled by chain analysis."
                ),
                recommendation=(
                    "No action needed. Consider CoinJoin before spending mined coins "
                    "if their origin should not be attributable."
                ),
                score_impact=0,
            )
        )
    return result
