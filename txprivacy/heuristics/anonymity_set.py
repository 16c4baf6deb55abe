"""Anonymity Set Analysis.

The anonymity set of an output is the number of outputs sharing its value:
they cannot be told apart from one another. This is a per-output view that
complements the binary CoinJoin detection.

Impact: -2 to +5
"""

from __future__ import annotations

from collections import Counter

from txprivacy.heuristics._common import SATS_PER_BTC, format_btc, is_coinbase
from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction

STRONG_SET_SIZE = 5
MAX_GROUPS_IN_SUMMARY = 3


def _format_sats(sats: int) -> str:
    if sats >= SATS_PER_BTC:
        return format_btc(sats)
    return f"{sats:,} sats"


def _set_summary(groups: list[tuple[int, int]]) -> str:
    repeated = [(v, c) for v, c in groups if c >= 2]
    if not repeated:
        return ""
    parts = ", ".join(f"{c}x {_format_sats(v)}" for v, c in repeated[:MAX_GROUPS_IN_SUMMARY])
    extra = len(repeated) - MAX_GROUPS_IN_SUMMARY
    suffix = f" and {extra} more groups" if extra > 0 else ""
    return f" Equal-value groups: {parts}{suffix}."


def analyze_anonymity_set(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    if is_coinbase(tx) or len(tx.vout) < 2:
        return result

    # Largest group first; ties keep output order
    groups = Counter(out.value for out in tx.vout).most_common()
    value, size = groups[0]

    if size >= STRONG_SET_SIZE:
        finding = Finding(
            kind=FindingKind.ANON_SET_STRONG,
            severity=Severity.GOOD,
            title=f"Largest anonymity set: {size} outputs",
            description=(
                f"{size} outputs share the value {_format_sats(value)}. An observer "
                "cannot tell which input funded which of them." + _set_summary(groups)
            ),
            recommendation="Strong anonymity sets are what CoinJoin is built on.",
            score_impact=5,
            params={"setSize": size, "value": value},
        )
    elif size >= 2:
        finding = Finding(
            kind=FindingKind.ANON_SET_MODERATE,
            severity=Severity.LOW,
            title=f"Anonymity set: {size} equal outputs",
            description=(
                f"{size} outputs share the value {_format_sats(value)}, which adds "
                "limited ambiguity." + _set_summary(groups)
            ),
            recommendation="CoinJoin produces larger sets (5 or more equal outputs).",
            score_impact=1,
            params={"setSize": size, "value": value},
        )
    else:
        finding = Finding(
            kind=FindingKind.ANON_SET_NONE,
            severity=Severity.MEDIUM,
            title="No anonymity set (all outputs unique)",
            description=(
                f"All {len(tx.vout)} outputs have unique values, so each one is "
                "trivially distinguishable from the others."
            ),
            recommendation="Consider CoinJoin for outputs that blend in.",
            score_impact=-2,
        )

    result.findings.append(finding)
    return result
