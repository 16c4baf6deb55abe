"""H8: Address Reuse Detection.

The single most damaging privacy failure: every transaction to or from a
reused address is trivially linkable.

Indexer counters (``funded_txo_count``, ``tx_count``) and the transactions
actually supplied can disagree: histories get truncated, mempool counters
lag, and one batched payment can fund an address several times. The number
of receives is taken as the larger of the two sources, and the agreement
between them is reported on the finding as ``DataConfidence``.

Impact: -24 to -70, or +3 for a single-use address
"""

from __future__ import annotations

from txprivacy.models import (
    AddressInfo,
    DataConfidence,
    Finding,
    FindingKind,
    HeuristicResult,
    Remediation,
    Severity,
    Tool,
    Transaction,
    Urgency,
    Utxo,
)

# (minimum transactions, impact, severity), checked top-down
REUSE_TIERS = (
    (1000, -70, Severity.CRITICAL),
    (100, -65, Severity.CRITICAL),
    (50, -58, Severity.CRITICAL),
    (10, -50, Severity.CRITICAL),
    (5, -45, Severity.CRITICAL),
    (3, -32, Severity.CRITICAL),
)
BASE_REUSE = (-24, Severity.HIGH)
IMMEDIATE_REUSE_COUNT = 10
# More transactions than this with at most one receive means data is missing
MAX_TXS_FOR_SINGLE_USE = 2


def count_receiving_txs(address: str, txs: list[Transaction]) -> int:
    """Number of supplied transactions with at least one output to ``address``."""
    return sum(
        1 for tx in txs if any(out.scriptpubkey_address == address for out in tx.vout)
    )


def data_confidence(info: AddressInfo, observed: int, supplied: int) -> DataConfidence:
    """Classify how the indexer's receive counter relates to observed receives.

    Args:
        info: Address record with indexer counters
        observed: Receiving transactions among the supplied ones
        supplied: Number of transactions supplied

    Returns:
        DataConfidence for the reuse finding
    """
    funded = info.total_funded_count
    if funded == 0 and info.total_tx_count > 0:
        return DataConfidence.INCOMPLETE
    if funded == observed:
        return DataConfidence.CONSISTENT
    if observed > funded:
        return DataConfidence.OBSERVED_ONLY
    if info.total_tx_count > supplied:
        return DataConfidence.INCOMPLETE
    return DataConfidence.INDEXER_ONLY


def reuse_tier(tx_count: int) -> tuple[int, Severity]:
    for minimum, impact, severity in REUSE_TIERS:
        if tx_count >= minimum:
            return impact, severity
    return BASE_REUSE


def analyze_address_reuse(
    address: AddressInfo, utxos: list[Utxo], txs: list[Transaction]
) -> HeuristicResult:
    result = HeuristicResult()
    funded = address.total_funded_count
    tx_count = address.total_tx_count
    observed = count_receiving_txs(address.address, txs)
    receives = max(funded, observed)
    confidence = data_confidence(address, observed, len(txs))

    if receives <= 1:
        if (funded == 0 and tx_count > 0) or tx_count > MAX_TXS_FOR_SINGLE_USE:
            result.findings.append(
                Finding(
                    kind=FindingKind.REUSE_UNCERTAIN,
                    severity=Severity.LOW,
                    title="Address reuse could not be ruled out",
                    description=(
                        f"The indexer reports {tx_count} transactions but only "
                        f"{receives} receive could be confirmed. The transaction "
                        "history is incomplete, so reuse cannot be assessed."
                    ),
                    recommendation="Use a fresh address for every receive.",
                    score_impact=0,
                    params={"txCount": tx_count, "receives": receives},
                    confidence=confidence,
                )
            )
        else:
            result.findings.append(
                Finding(
                    kind=FindingKind.NO_REUSE,
                    severity=Severity.GOOD,
                    title="No address reuse detected",
                    description=(
                        "This address has received funds only once. Single-use "
                        "addresses are a core Bitcoin privacy practice."
                    ),
                    recommendation="Keep using a fresh address for every receive.",
                    score_impact=3,
                    confidence=confidence,
                )
            )
        return result

    if tx_count <= 1 and observed <= 1:
        result.findings.append(
            Finding(
                kind=FindingKind.BATCH_RECEIVE,
                severity=Severity.LOW,
                title="Multiple UTXOs from a single transaction (batch payment)",
                description=(
                    f"This address received {receives} outputs in one transaction, "
                    "most likely a batched withdrawal. Only one transaction is "
                    "involved, so this is not address reuse."
                ),
                recommendation="Use a fresh address for the next receive.",
                score_impact=0,
                params={"totalFunded": receives},
                confidence=confidence,
            )
        )
        return result

    count = max(tx_count, observed)
    impact, severity = reuse_tier(count)
    result.findings.append(
        Finding(
            kind=FindingKind.ADDRESS_REUSE,
            severity=severity,
            title=f"Address reused across {count} transactions",
            description=(
                f"This address appears in {count} transactions. Every one of them "
                "is now trivially linkable by chain analysis."
            ),
            recommendation=(
                "Use an HD wallet that generates a new address for every receive, "
                "and never share this address again."
            ),
            score_impact=impact,
            params={"txCount": count, "receives": receives},
            remediation=Remediation(
                steps=(
                    "Stop sharing this address for any future receive.",
                    "Generate a fresh receive address (HD wallets do this automatically).",
                    "Move the remaining funds through a CoinJoin to break the link to this history.",
                    "Without CoinJoin, move funds to a new wallet through an intermediate address after a delay.",
                ),
                tools=(
                    Tool(name="Sparrow Wallet", url="https://sparrowwallet.com"),
                    Tool(name="Wasabi Wallet", url="https://wasabiwallet.io"),
                ),
                urgency=Urgency.IMMEDIATE if count >= IMMEDIATE_REUSE_COUNT else Urgency.SOON,
            ),
            confidence=confidence,
        )
    )
    return result
