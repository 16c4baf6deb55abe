"""H4: CoinJoin Detection.

Identifies collaborative transactions that break the link between inputs and
outputs. CoinJoins are the strongest positive privacy signal in the engine.

Patterns, checked in order:
- Whirlpool: exactly 5 outputs at a fixed pool denomination (5 or 6 outputs)
- WabiSabi (Wasabi 2.0): 20+ inputs and outputs, one large equal-value
  group or several denomination tiers
- Generic equal-output CoinJoin: one value repeated 5+ times
- JoinMarket: maker/taker round with 2-4 equal outputs to distinct addresses
- Stonewall: 2-3 inputs, 4 outputs with a single equal pair

Reference: Maxwell (2013) "CoinJoin: Bitcoin privacy for the real world"
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from txprivacy.heuristics._common import (
    WHIRLPOOL_DENOMINATIONS_SATS,
    format_btc,
    spendable_outputs,
    unique_input_addresses,
)
from txprivacy.models import (
    Finding,
    FindingKind,
    HeuristicResult,
    Severity,
    Transaction,
    TxOutput,
)

WHIRLPOOL_POOL_SIZE = 5
WHIRLPOOL_MAX_OUTPUTS = 6

WABISABI_MIN_INPUTS = 20
WABISABI_MIN_OUTPUTS = 20
WABISABI_MIN_TIERS = 3
WABISABI_MIN_TIERED_OUTPUTS = 10

MIN_EQUAL_OUTPUTS_GENERIC = 5
LARGE_EQUAL_OUTPUTS = 10

JOINMARKET_INPUTS = (2, 10)
JOINMARKET_OUTPUTS = (3, 8)
JOINMARKET_EQUAL = (2, 4)
MIN_MIXED_VALUE_SATS = 10_000

POSITIVE_COINJOIN_KINDS = frozenset(
    [
        FindingKind.WHIRLPOOL,
        FindingKind.COINJOIN,
        FindingKind.JOINMARKET,
        FindingKind.STONEWALL,
    ]
)


@dataclass
class EqualOutputGroup:
    """Largest group of outputs sharing one value.

    Attributes:
        value: Shared output value in sats
        count: Number of outputs with that value
        addresses: Distinct addresses receiving that value
    """

    value: int
    count: int
    addresses: frozenset


def _largest_group(outputs: list[TxOutput]) -> EqualOutputGroup | None:
    counts = Counter(out.value for out in outputs)
    if not counts:
        return None
    # Highest count wins; ties go to the larger value
    value, count = max(counts.items(), key=lambda item: (item[1], item[0]))
    if count < 2:
        return None
    addresses = frozenset(
        out.scriptpubkey_address for out in outputs if out.value == value
    )
    return EqualOutputGroup(value=value, count=count, addresses=addresses)


def _equal_output_impact(count: int) -> int:
    return 25 if count >= LARGE_EQUAL_OUTPUTS else 20


def _detect_whirlpool(outputs: list[TxOutput]) -> int | None:
    if len(outputs) not in (WHIRLPOOL_POOL_SIZE, WHIRLPOOL_MAX_OUTPUTS):
        return None
    counts = Counter(out.value for out in outputs)
    for denomination in sorted(WHIRLPOOL_DENOMINATIONS_SATS):
        if counts.get(denomination, 0) == WHIRLPOOL_POOL_SIZE:
            return denomination
    return None


def _wabisabi_tiers(outputs: list[TxOutput]) -> tuple[int, int]:
    """Return (number of repeated-value tiers, outputs inside those tiers)."""
    repeated = [c for c in Counter(out.value for out in outputs).values() if c >= 2]
    return len(repeated), sum(repeated)


def _whirlpool_finding(denomination: int) -> Finding:
    return Finding(
        kind=FindingKind.WHIRLPOOL,
        severity=Severity.GOOD,
        title=f"Whirlpool CoinJoin detected ({format_btc(denomination)} pool)",
        description=(
            "Five outputs share the exact value of a Whirlpool pool. Each output "
            "is indistinguishable from the other four, so an observer cannot "
            "tell which input funded which output."
        ),
        recommendation=(
            "Let the outputs remix and spend them one at a time, never "
            "together, to keep the anonymity set intact."
        ),
        score_impact=30,
        params={"denomination": denomination},
    )


def _equal_output_finding(
    tx: Transaction, outputs: list[TxOutput], group: EqualOutputGroup, wabisabi: bool
) -> Finding:
    impact = _equal_output_impact(group.count)
    if wabisabi:
        title = f"WabiSabi CoinJoin: {group.count} equal outputs across {len(outputs)} total"
        description = (
            f"This transaction has {len(tx.vin)} inputs and {len(outputs)} outputs, "
            "consistent with a WabiSabi (Wasabi Wallet 2.0) coordinated round. "
        )
    else:
        title = f"Likely CoinJoin: {group.count} equal outputs of {format_btc(group.value)}"
        description = ""
    description += (
        f"{group.count} of {len(outputs)} outputs have the same value "
        f"({format_btc(group.value)}), which hides which input paid which output."
    )
    return Finding(
        kind=FindingKind.COINJOIN,
        severity=Severity.GOOD,
        title=title,
        description=description,
        recommendation=(
            "CoinJoin is a strong privacy technique. Avoid merging mixed outputs "
            "with unmixed coins afterwards."
        ),
        score_impact=impact,
        params={
            "equalCount": group.count,
            "denomination": group.value,
            "isWabiSabi": 1 if wabisabi else 0,
        },
    )


def _tiered_finding(tx: Transaction, outputs: list[TxOutput], tiers: int, tiered: int) -> Finding:
    return Finding(
        kind=FindingKind.COINJOIN,
        severity=Severity.GOOD,
        title=f"WabiSabi CoinJoin: {tiers} denomination tiers",
        description=(
            f"This transaction has {len(tx.vin)} inputs and {len(outputs)} outputs. "
            f"{tiered} outputs fall into {tiers} groups of equal value, the "
            "multi-denomination layout used by WabiSabi coordinators."
        ),
        recommendation=(
            "WabiSabi rounds give large anonymity sets. Keep spending the outputs "
            "individually."
        ),
        score_impact=25 if tiered >= 20 else 20,
        params={"tiers": tiers, "equalCount": tiered, "isWabiSabi": 1},
    )


def _detect_joinmarket(tx: Transaction, outputs: list[TxOutput]) -> EqualOutputGroup | None:
    if not JOINMARKET_INPUTS[0] <= len(tx.vin) <= JOINMARKET_INPUTS[1]:
        return None
    if len(unique_input_addresses(tx)) < 2:
        return None
    if not JOINMARKET_OUTPUTS[0] <= len(outputs) <= JOINMARKET_OUTPUTS[1]:
        return None

    group = _largest_group(outputs)
    if group is None or not JOINMARKET_EQUAL[0] <= group.count <= JOINMARKET_EQUAL[1]:
        return None
    if group.value in WHIRLPOOL_DENOMINATIONS_SATS or group.value < MIN_MIXED_VALUE_SATS:
        return None
    if len(group.addresses) != group.count or group.count == len(outputs):
        return None
    return group


def _detect_stonewall(tx: Transaction, outputs: list[TxOutput]) -> EqualOutputGroup | None:
    if len(tx.vin) not in (2, 3) or len(outputs) != 4:
        return None
    repeated = [(v, c) for v, c in Counter(out.value for out in outputs).items() if c >= 2]
    if len(repeated) != 1 or repeated[0][1] != 2:
        return None
    value = repeated[0][0]
    if value in WHIRLPOOL_DENOMINATIONS_SATS or value < MIN_MIXED_VALUE_SATS:
        return None
    addresses = frozenset(out.scriptpubkey_address for out in outputs if out.value == value)
    if len(addresses) != 2:
        return None
    return EqualOutputGroup(value=value, count=2, addresses=addresses)


def _exchange_flagging_finding() -> Finding:
    return Finding(
        kind=FindingKind.EXCHANGE_FLAGGING,
        severity=Severity.LOW,
        title="Exchanges may flag CoinJoin outputs",
        description=(
            "Several regulated exchanges screen deposits for CoinJoin history and "
            "may freeze or question funds that come directly from a mix."
        ),
        recommendation=(
            "Check your exchange's policy before depositing mixed coins, or use "
            "services that do not screen for CoinJoin."
        ),
        score_impact=0,
    )


def analyze_coinjoin(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    """Detect CoinJoin structures.

    Args:
        tx: Transaction to analyze
        raw_hex: Unused

    Returns:
        HeuristicResult with at most one positive CoinJoin finding, followed
        by an ``h4-exchange-flagging`` advisory (except for Whirlpool, which
        is returned on its own)

    Example:
        >>> result = analyze_coinjoin(tx)
        >>> any(is_coinjoin_finding(f) for f in result.findings)
        True
    """
    result = HeuristicResult()
    if len(tx.vin) < 2 or len(tx.vout) < 2:
        return result

    outputs = spendable_outputs(tx)

    denomination = _detect_whirlpool(outputs)
    if denomination is not None:
        result.findings.append(_whirlpool_finding(denomination))
        return result

    detected: Finding | None = None
    group = _largest_group(outputs)
    wabisabi = len(tx.vin) >= WABISABI_MIN_INPUTS and len(outputs) >= WABISABI_MIN_OUTPUTS

    if group is not None and group.count >= MIN_EQUAL_OUTPUTS_GENERIC:
        detected = _equal_output_finding(tx, outputs, group, wabisabi)

    if wabisabi:
        tiers, tiered = _wabisabi_tiers(outputs)
        if tiers >= WABISABI_MIN_TIERS and tiered >= WABISABI_MIN_TIERED_OUTPUTS:
            tiered_finding = _tiered_finding(tx, outputs, tiers, tiered)
            if detected is None or tiered_finding.score_impact > detected.score_impact:
                detected = tiered_finding

    if detected is None:
        joinmarket = _detect_joinmarket(tx, outputs)
        if joinmarket is not None:
            detected = Finding(
                kind=FindingKind.JOINMARKET,
                severity=Severity.GOOD,
                title=f"Likely JoinMarket CoinJoin ({joinmarket.count} equal outputs)",
                description=(
                    f"{joinmarket.count} outputs of {format_btc(joinmarket.value)} go "
                    "to distinct addresses alongside change outputs, the shape of a "
                    "JoinMarket maker/taker round."
                ),
                recommendation=(
                    "JoinMarket rounds are small. Consider several rounds to grow "
                    "the anonymity set."
                ),
                score_impact=15,
                params={"equalCount": joinmarket.count, "denomination": joinmarket.value},
            )

    if detected is None:
        stonewall = _detect_stonewall(tx, outputs)
        if stonewall is not None:
            detected = Finding(
                kind=FindingKind.STONEWALL,
                severity=Severity.GOOD,
                title="Likely Stonewall transaction",
                description=(
                    f"Two outputs of {format_btc(stonewall.value)} go to different "
                    "addresses next to two change outputs. Stonewall makes a simple "
                    "payment look like a two-party mix."
                ),
                recommendation=(
                    "Stonewall adds ambiguity to ordinary payments. Keep using it "
                    "where your wallet supports it."
                ),
                score_impact=15,
                params={"denomination": stonewall.value},
            )

    if detected is not None:
        result.findings.append(detected)
        result.findings.append(_exchange_flagging_finding())
    return result


def is_coinjoin_finding(finding: Finding) -> bool:
    """True for a positive-impact CoinJoin finding of any protocol."""
    return finding.kind in POSITIVE_COINJOIN_KINDS and finding.score_impact > 0


def is_coinjoin(tx: Transaction) -> bool:
    """Simple boolean check used by the cluster builder.

    Only Whirlpool and generic equal-output detections count: JoinMarket and
    Stonewall shapes are too weak to exclude a transaction from CIOH.
    """
    return any(
        f.kind in (FindingKind.WHIRLPOOL, FindingKind.COINJOIN) and f.score_impact > 0
        for f in analyze_coinjoin(tx).findings
    )
