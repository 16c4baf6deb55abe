"""Spending Pattern Analysis (address level).

Looks at how the address spends: volume, cold-storage behaviour, and how many
distinct counterparties its sends pay. Counterparties are counted only on
transactions where the address is an input, CoinJoins excluded, and the
likely change output of a two-output send is left out.

Impact: -3 to +2
"""

from __future__ import annotations

from txprivacy.heuristics._common import (
    get_address_type,
    input_addresses,
    spendable_outputs,
)
from txprivacy.heuristics.coinjoin import is_coinjoin
from txprivacy.models import (
    AddressInfo,
    Finding,
    FindingKind,
    HeuristicResult,
    Severity,
    Transaction,
    Utxo,
)

HIGH_VOLUME_TXS = 100
MANY_COUNTERPARTIES = 20


def _likely_change(address: str, tx: Transaction) -> str | None:
    """Address-type-matched output of a two-output send, when unambiguous."""
    outputs = spendable_outputs(tx)
    if len(outputs) != 2:
        return None
    own_type = get_address_type(address)
    matches = [
        out.scriptpubkey_address
        for out in outputs
        if get_address_type(out.scriptpubkey_address) == own_type
    ]
    return matches[0] if len(matches) == 1 else None


def count_counterparties(address: str, txs: list[Transaction]) -> int:
    """Distinct addresses paid by sends from ``address``."""
    counterparties: set[str] = set()
    for tx in txs:
        if address not in input_addresses(tx) or is_coinjoin(tx):
            continue
        change = _likely_change(address, tx)
        for out in spendable_outputs(tx):
            recipient = out.scriptpubkey_address
            if recipient != address and recipient != change:
                counterparties.add(recipient)
    return len(counterparties)


def analyze_spending_pattern(
    address: AddressInfo, utxos: list[Utxo], txs: list[Transaction]
) -> HeuristicResult:
    result = HeuristicResult()
    stats = address.chain_stats

    if stats.tx_count >= HIGH_VOLUME_TXS:
        result.findings.append(
            Finding(
                kind=FindingKind.SPENDING_HIGH_VOLUME,
                severity=Severity.MEDIUM,
                title=f"High transaction volume ({stats.tx_count:,} transactions)",
                description=(
                    f"This address was involved in {stats.tx_count:,} transactions. "
                    "High-volume addresses are watched closely and often belong to "
                    "services or businesses."
                ),
                recommendation="Spread activity across many addresses with an HD wallet.",
                score_impact=-3,
                params={"txCount": stats.tx_count},
            )
        )

    if stats.spent_txo_count == 0 and stats.funded_txo_count > 0:
        result.findings.append(
            Finding(
                kind=FindingKind.SPENDING_NEVER_SPENT,
                severity=Severity.GOOD,
                title="Address has never spent (cold storage)",
                description=(
                    "This address received funds but never spent them, so no "
                    "spending pattern can be analysed."
                ),
                recommendation="When you spend, use coin control and consider CoinJoin.",
                score_impact=2,
            )
        )

    if txs and stats.spent_txo_count > 0:
        count = count_counterparties(address.address, txs)
        if count >= MANY_COUNTERPARTIES:
            result.findings.append(
                Finding(
                    kind=FindingKind.SPENDING_MANY_COUNTERPARTIES,
                    severity=Severity.MEDIUM,
                    title=f"Sent to {count} different counterparties",
                    description=(
                        f"Sends from this address paid {count} distinct addresses. A "
                        "wide set of counterparties makes the address easier to "
                        "cluster with known entities."
                    ),
                    recommendation="Use separate addresses for different counterparties.",
                    score_impact=-2,
                    params={"counterparties": count},
                )
            )
    return result
