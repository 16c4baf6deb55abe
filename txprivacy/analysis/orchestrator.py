"""Analysis orchestrator.

Runs the fixed, ordered rule list for a transaction or an address, then
reconciles (transaction path only) and scores. Rule order is part of the
contract: downstream consumers look findings up by id and progress UIs show
the steps in this order.

Example usage:
    >>> from txprivacy.analysis import analyze_transaction
    >>> result = analyze_transaction(tx, on_step=lambda step, impact: print(step, impact))
    >>> print(result.score, result.grade.value)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from txprivacy.analysis.reconciler import reconcile
from txprivacy.analysis.scoring import calculate_score, score_transaction
from txprivacy.heuristics import (
    analyze_address_reuse,
    analyze_address_type,
    analyze_anonymity_set,
    analyze_change_detection,
    analyze_cioh,
    analyze_coinbase,
    analyze_coinjoin,
    analyze_dust_outputs,
    analyze_entropy,
    analyze_fees,
    analyze_op_return,
    analyze_payjoin,
    analyze_round_amounts,
    analyze_script_type_mix,
    analyze_spending_pattern,
    analyze_timing,
    analyze_utxos,
    analyze_wallet_fingerprint,
)
from txprivacy.models import (
    AddressInfo,
    Finding,
    HeuristicResult,
    RawFindings,
    ScoringResult,
    Transaction,
    Utxo,
)

logger = logging.getLogger(__name__)

# Called before a step with impact=None and after it with the step's own impact
StepCallback = Callable[[str, Optional[int]], None]


@dataclass(frozen=True)
class HeuristicStep:
    id: str
    label: str
    rule: Callable[..., HeuristicResult]


TX_HEURISTICS: tuple[HeuristicStep, ...] = (
    HeuristicStep("h1", "Round amount analysis", analyze_round_amounts),
    HeuristicStep("h2", "Change detection", analyze_change_detection),
    HeuristicStep("h3", "Common input ownership", analyze_cioh),
    HeuristicStep("h4", "CoinJoin detection", analyze_coinjoin),
    HeuristicStep("h5", "Transaction entropy", analyze_entropy),
    HeuristicStep("h6", "Fee analysis", analyze_fees),
    HeuristicStep("h7", "OP_RETURN metadata", analyze_op_return),
    HeuristicStep("h11", "Wallet fingerprinting", analyze_wallet_fingerprint),
    HeuristicStep("anon", "Anonymity set analysis", analyze_anonymity_set),
    HeuristicStep("pj", "PayJoin detection", analyze_payjoin),
    HeuristicStep("timing", "Timing analysis", analyze_timing),
    HeuristicStep("script", "Script type analysis", analyze_script_type_mix),
    HeuristicStep("dust", "Dust output detection", analyze_dust_outputs),
    HeuristicStep("coinbase", "Coinbase detection", analyze_coinbase),
)

ADDRESS_HEURISTICS: tuple[HeuristicStep, ...] = (
    HeuristicStep("h8", "Address reuse", analyze_address_reuse),
    HeuristicStep("h9", "UTXO analysis", analyze_utxos),
    HeuristicStep("h10", "Address type", analyze_address_type),
    HeuristicStep("spending", "Spending patterns", analyze_spending_pattern),
)


def get_tx_heuristic_steps() -> list[tuple[str, str]]:
    """(id, label) pairs of the transaction steps, in execution order."""
    return [(step.id, step.label) for step in TX_HEURISTICS]


def get_address_heuristic_steps() -> list[tuple[str, str]]:
    """(id, label) pairs of the address steps, in execution order."""
    return [(step.id, step.label) for step in ADDRESS_HEURISTICS]


def _run_steps(
    steps: tuple[HeuristicStep, ...],
    args: tuple,
    on_step: StepCallback | None,
) -> list[Finding]:
    findings: list[Finding] = []
    for step in steps:
        if on_step is not None:
            on_step(step.id, None)
        result = step.rule(*args)
        findings.extend(result.findings)
        logger.debug(
            f"Step {step.id}: {len(result.findings)} findings, impact {result.total_impact}"
        )
        if on_step is not None:
            on_step(step.id, result.total_impact)
    return findings


def analyze_transaction(
    tx: Transaction,
    raw_hex: str | None = None,
    on_step: StepCallback | None = None,
) -> ScoringResult:
    """Run every transaction rule, reconcile and score.

    Args:
        tx: Transaction record
        raw_hex: Raw transaction hex (enables signature-level checks)
        on_step: Optional progress observer

    Returns:
        ScoringResult for the transaction
    """
    findings = _run_steps(TX_HEURISTICS, (tx, raw_hex), on_step)
    reconciled = reconcile(RawFindings(findings=tuple(findings)))
    result = score_transaction(reconciled)
    logger.debug(f"Transaction {tx.txid}: score {result.score} ({result.grade.value})")
    return result


def analyze_address(
    address: AddressInfo,
    utxos: list[Utxo],
    txs: list[Transaction],
    on_step: StepCallback | None = None,
) -> ScoringResult:
    """Run every address rule and score.

    Args:
        address: Address record with indexer counters
        utxos: Current unspent outputs of the address
        txs: Transaction history supplied for the address
        on_step: Optional progress observer

    Returns:
        ScoringResult for the address
    """
    findings = _run_steps(ADDRESS_HEURISTICS, (address, utxos, txs), on_step)
    result = calculate_score(findings)
    logger.debug(f"Address {address.address}: score {result.score} ({result.grade.value})")
    return result
