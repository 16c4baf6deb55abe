"""Cross-heuristic reconciliation.

Some rules encode assumptions that another rule can disprove. A detected
CoinJoin means the inputs belong to different participants (CIOH is wrong),
equal round outputs are the denomination (not a payment), and change
detection is unreliable. A detected PayJoin likewise breaks CIOH on purpose.

Reconciliation runs once, strictly after every transaction rule has
produced its findings: ``RawFindings -> ReconciledFindings``. Suppression is
table-driven per trigger; self-sends are never suppressed because paying
yourself inside a CoinJoin still links your coins.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from txprivacy.models import (
    Finding,
    FindingKind,
    RawFindings,
    ReconciledFindings,
    Severity,
)

WASABI_WALLET = "Wasabi Wallet"


@dataclass(frozen=True)
class Relabel:
    """How a suppressed finding is rewritten.

    Attributes:
        title_suffix: Appended to the original title
        description: Replacement description explaining the context
    """

    title_suffix: str
    description: str


COINJOIN_SUPPRESSIONS: dict[FindingKind, Relabel] = {
    FindingKind.CIOH: Relabel(
        title_suffix=" (CoinJoin - expected)",
        description=(
            "Multiple input addresses are linked, but this is expected in a "
            "CoinJoin transaction. In CoinJoins, each input typically belongs to "
            "a different participant, so CIOH does not apply."
        ),
    ),
    FindingKind.ROUND_AMOUNT: Relabel(
        title_suffix=" (CoinJoin denomination)",
        description=(
            "Equal round outputs are expected in CoinJoin transactions - they are "
            "the denomination, not a privacy leak."
        ),
    ),
    FindingKind.CHANGE_DETECTED: Relabel(
        title_suffix=" (CoinJoin - unreliable)",
        description=(
            "Change detection is unreliable in CoinJoin transactions: equal "
            "outputs and many participants hide which output returns to whom."
        ),
    ),
}

PAYJOIN_SUPPRESSIONS: dict[FindingKind, Relabel] = {
    FindingKind.CIOH: Relabel(
        title_suffix=" (PayJoin - deliberate)",
        description=(
            "Multiple input addresses are linked, but this is expected in a "
            "PayJoin transaction. PayJoin deliberately has the receiver "
            "contribute an input to break chain analysis."
        ),
    ),
}

NEVER_SUPPRESSED = frozenset({FindingKind.SELF_SEND})

# Only these kinds prove the inputs belong to several participants
SUPPRESSING_COINJOIN_KINDS = frozenset({FindingKind.WHIRLPOOL, FindingKind.COINJOIN})


def _suppress(finding: Finding, relabel: Relabel) -> Finding:
    return replace(
        finding,
        severity=Severity.LOW,
        title=finding.title + relabel.title_suffix,
        description=relabel.description,
        score_impact=0,
    )


def _coinjoin_finding(findings: tuple[Finding, ...]) -> Finding | None:
    for f in findings:
        if f.kind in SUPPRESSING_COINJOIN_KINDS and f.score_impact > 0:
            return f
    return None


def _infer_wasabi(finding: Finding) -> Finding:
    """Record the wallet implied by a WabiSabi-sized CoinJoin (impact kept)."""
    return replace(
        finding,
        title=finding.title + f" (likely {WASABI_WALLET})",
        description=finding.description
        + f" The WabiSabi-sized CoinJoin structure points to {WASABI_WALLET}.",
        params={**finding.params, "walletGuess": WASABI_WALLET},
    )


def reconcile(raw: RawFindings) -> ReconciledFindings:
    """Apply cross-heuristic suppression to the collected rule output.

    Args:
        raw: Findings from every transaction rule, in execution order

    Returns:
        ReconciledFindings with the same order and length
    """
    coinjoin = _coinjoin_finding(raw.findings)
    payjoin = any(f.kind == FindingKind.PAYJOIN for f in raw.findings)
    wabisabi = coinjoin is not None and coinjoin.params.get("isWabiSabi") == 1

    table: dict[FindingKind, Relabel] = {}
    if payjoin:
        table.update(PAYJOIN_SUPPRESSIONS)
    if coinjoin is not None:
        table.update(COINJOIN_SUPPRESSIONS)

    reconciled = []
    for finding in raw.findings:
        relabel = table.get(finding.kind)
        if relabel is not None and finding.kind not in NEVER_SUPPRESSED:
            finding = _suppress(finding, relabel)
        elif (
            wabisabi
            and finding.kind == FindingKind.WALLET_FINGERPRINT
            and "walletGuess" not in finding.params
        ):
            finding = _infer_wasabi(finding)
        reconciled.append(finding)

    return ReconciledFindings(findings=tuple(reconciled))
