"""H2: Change Output Detection.

Identifies which output of a two-output spend returns value to the sender,
which reveals the payment amount and links the change address to the
sender's wallet.

Signals:
- Self-send: an output pays back to one of the input addresses
- Address type: the change output usually matches the input script type
- Round payment: when exactly one output is round, the other is change

Reference: Androulaki et al. (2013), Meiklejohn et al. (2013)
"""

from __future__ import annotations

from collections import Counter

from txprivacy.heuristics._common import (
    get_address_type,
    input_addresses,
    is_coinbase,
    spendable_outputs,
)
from txprivacy.models import (
    Finding,
    FindingKind,
    HeuristicResult,
    Remediation,
    Severity,
    Tool,
    Transaction,
    TxOutput,
    Urgency,
)

ROUND_CHANGE_MODULI = (1_000_000, 100_000, 10_000)

CHANGE_TOOLS = (
    Tool(name="Sparrow Wallet", url="https://sparrowwallet.com"),
    Tool(name="BTCPay Server (PayJoin)", url="https://btcpayserver.org"),
)


def _is_round(sats: int) -> bool:
    return any(sats % m == 0 for m in ROUND_CHANGE_MODULI)


def _self_send_finding(outputs: list[TxOutput], own: set[str]) -> Finding | None:
    matching = [out for out in outputs if out.scriptpubkey_address in own]
    if not matching:
        return None

    all_match = len(matching) == len(outputs)
    if len(outputs) == 1:
        impact, severity = -15, Severity.HIGH
        title = "Consolidation back to an input address"
        description = (
            "The only output pays back to one of the input addresses. Every "
            "input is now publicly tied to that address."
        )
    elif all_match:
        impact, severity = -25, Severity.CRITICAL
        title = "All outputs return to input addresses"
        description = (
            "Every output pays an address that also funded this transaction. "
            "There is no recipient to hide behind: the whole transaction is "
            "visibly a transfer between your own addresses."
        )
    else:
        impact, severity = -20, Severity.CRITICAL
        title = "Change sent back to an input address"
        description = (
            f"{len(matching)} of {len(outputs)} outputs pay back to an input "
            "address. The change output is identified with certainty, and "
            "with it the exact payment amount."
        )

    return Finding(
        kind=FindingKind.SELF_SEND,
        severity=severity,
        title=title,
        description=description,
        recommendation=(
            "Never send change back to an address you spent from. Use a wallet "
            "that generates a fresh change address for every transaction."
        ),
        score_impact=impact,
        params={"allMatch": 1 if all_match else 0, "selfSendCount": len(matching)},
        remediation=Remediation(
            steps=(
                "Switch to an HD wallet that creates a new change address each time.",
                "Move the funds on the reused address with coin control, on their own.",
            ),
            tools=CHANGE_TOOLS[:1],
            urgency=Urgency.IMMEDIATE if severity == Severity.CRITICAL else Urgency.SOON,
        ),
    )


def _address_type_vote(tx: Transaction, outputs: list[TxOutput]) -> int | None:
    input_types = {get_address_type(addr) for addr in input_addresses(tx)}
    if len(input_types) != 1:
        return None
    input_type = input_types.pop()
    matches = [get_address_type(out.scriptpubkey_address) == input_type for out in outputs]
    if matches[0] and not matches[1]:
        return 0
    if matches[1] and not matches[0]:
        return 1
    return None


def _round_amount_vote(outputs: list[TxOutput]) -> int | None:
    round0, round1 = _is_round(outputs[0].value), _is_round(outputs[1].value)
    if round0 and not round1:
        return 1
    if round1 and not round0:
        return 0
    return None


def analyze_change_detection(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    """Detect self-sends and identifiable change outputs.

    Self-sends are checked first over every spendable output. Otherwise the
    rule only applies to exactly two spendable outputs, where each signal
    votes for a change index.

    Args:
        tx: Transaction to analyze
        raw_hex: Unused

    Returns:
        HeuristicResult with an ``h2-self-send`` or ``h2-change-detected``
        finding, or nothing
    """
    result = HeuristicResult()
    if is_coinbase(tx):
        return result

    outputs = spendable_outputs(tx)
    if not outputs:
        return result

    self_send = _self_send_finding(outputs, set(input_addresses(tx)))
    if self_send is not None:
        result.findings.append(self_send)
        return result

    if len(outputs) != 2:
        return result

    votes: Counter = Counter()
    signals = []
    type_vote = _address_type_vote(tx, outputs)
    if type_vote is not None:
        votes[type_vote] += 1
        signals.append("change matches the input address type")
    round_vote = _round_amount_vote(outputs)
    if round_vote is not None:
        votes[round_vote] += 1
        signals.append("the other output is a round payment")

    if not votes:
        return result

    change_index, strongest = votes.most_common(1)[0]
    confidence = "medium" if strongest >= 2 else "low"
    disagree = len(votes) > 1

    description = (
        f"Output #{change_index} is likely change: {'; '.join(signals)}. "
        "Knowing the change output reveals the payment amount and lets the "
        "sender's coins be followed into the next transaction."
    )
    if disagree:
        description += " The signals point at different outputs, so confidence is reduced."

    result.findings.append(
        Finding(
            kind=FindingKind.CHANGE_DETECTED,
            severity=Severity.MEDIUM if confidence == "medium" else Severity.LOW,
            title=f"Change output likely identifiable ({confidence} confidence)",
            description=description,
            recommendation=(
                "Use a wallet that matches the change script type to the payment "
                "and avoid round payment amounts. PayJoin breaks this heuristic."
            ),
            score_impact=-10 if confidence == "medium" else -5,
            params={
                "changeIndex": change_index,
                "signalCount": len(signals),
                "confidence": confidence,
            },
            remediation=Remediation(
                steps=(
                    "Pay exact amounts instead of round BTC values.",
                    "Use a Taproot wallet so payment and change share one script type.",
                    "Use PayJoin when the recipient supports it.",
                ),
                tools=CHANGE_TOOLS,
                urgency=Urgency.WHEN_CONVENIENT,
            ),
        )
    )
    return result
