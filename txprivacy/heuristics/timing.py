"""Timing Analysis.

Signals that leak when a transaction was created or broadcast:
- Unconfirmed: broadcast time is observable by anyone watching the P2P network
- nLockTime as a UNIX timestamp: unusual, and pins the creation time
- Stale block-height locktime: the transaction was held long before broadcast

Signals stack. Impact: -1 to -3 each
"""

from __future__ import annotations

from datetime import datetime, timezone

from txprivacy.heuristics._common import is_coinbase
from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction

LOCKTIME_TIMESTAMP_THRESHOLD = 500_000_000
STALE_LOCKTIME_BLOCKS = 100


def analyze_timing(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    if is_coinbase(tx):
        return result

    status = tx.status
    if not status.confirmed:
        result.findings.append(
            Finding(
                kind=FindingKind.TIMING_UNCONFIRMED,
                severity=Severity.LOW,
                title="Transaction is unconfirmed (mempool visible)",
                description=(
                    "Anyone monitoring the P2P network saw when this transaction was "
                    "broadcast, which can be correlated with the broadcasting IP."
                ),
                recommendation="Broadcast sensitive transactions over Tor.",
                score_impact=-2,
            )
        )

    if tx.locktime >= LOCKTIME_TIMESTAMP_THRESHOLD:
        date = datetime.fromtimestamp(tx.locktime, tz=timezone.utc).date().isoformat()
        result.findings.append(
            Finding(
                kind=FindingKind.TIMING_LOCKTIME_TIMESTAMP,
                severity=Severity.MEDIUM,
                title=f"nLockTime set to timestamp ({date})",
                description=(
                    f"nLockTime is a UNIX timestamp ({tx.locktime}). Few wallets do "
                    "this, and it reveals roughly when the transaction was created."
                ),
                recommendation=(
                    "Use a wallet that sets nLockTime to the current block height."
                ),
                score_impact=-3,
                params={"locktime": tx.locktime, "date": date},
            )
        )
    elif tx.locktime > 0 and status.confirmed and status.block_height is not None:
        held = status.block_height - tx.locktime
        if held > STALE_LOCKTIME_BLOCKS:
            result.findings.append(
                Finding(
                    kind=FindingKind.TIMING_STALE_LOCKTIME,
                    severity=Severity.LOW,
                    title=f"Transaction held for ~{held} blocks before confirmation",
                    description=(
                        f"nLockTime ({tx.locktime}) is {held} blocks before the "
                        f"confirmation height ({status.block_height}). The transaction "
                        "was created well before it was broadcast."
                    ),
                    recommendation="Broadcast transactions promptly after signing.",
                    score_impact=-1,
                    params={
                        "held": held,
                        "locktime": tx.locktime,
                        "blockHeight": status.block_height,
                    },
                )
            )
    return result
