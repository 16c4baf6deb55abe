"""H1: Round Amount Detection.

Payments are usually round (0.01 BTC, 500k sats) while change is whatever is
left over, so a mix of round and non-round outputs tells an observer which
output went to the recipient. Transactions where every output is round are
exempt: they look like batch payouts or CoinJoin denominations.

Impact: -5 per round output, capped at -15
"""

from __future__ import annotations

from txprivacy.heuristics._common import SATS_PER_BTC, is_coinbase, is_op_return
from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction

ROUND_BTC_VALUES_SATS = frozenset(
    int(btc * SATS_PER_BTC)
    for btc in (0.001, 0.002, 0.005, 0.01, 0.02, 0.05, 0.1, 0.2, 0.25, 0.5, 1, 2, 5, 10)
)

ROUND_SAT_MULTIPLES = (1_000, 10_000, 100_000, 1_000_000, 10_000_000)

IMPACT_PER_OUTPUT = 5
MAX_IMPACT = 15


def is_round_amount(sats: int) -> bool:
    """True for well-known round BTC values or clean multiples of round sats."""
    if sats in ROUND_BTC_VALUES_SATS:
        return True
    return any(sats >= m and sats % m == 0 for m in ROUND_SAT_MULTIPLES)


def analyze_round_amounts(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    """Flag transactions where some, but not all, outputs are round.

    Args:
        tx: Transaction to analyze
        raw_hex: Unused

    Returns:
        HeuristicResult with at most one ``h1-round-amount`` finding
    """
    result = HeuristicResult()
    if is_coinbase(tx):
        return result

    values = [out.value for out in tx.vout if not is_op_return(out) and out.value > 0]
    if len(values) < 2:
        return result

    round_count = sum(1 for v in values if is_round_amount(v))
    if round_count == 0 or round_count == len(values):
        return result

    impact = min(round_count * IMPACT_PER_OUTPUT, MAX_IMPACT)
    plural = "s" if round_count > 1 else ""
    result.findings.append(
        Finding(
            kind=FindingKind.ROUND_AMOUNT,
            severity=Severity.MEDIUM if impact >= 10 else Severity.LOW,
            title=f"{round_count} round amount output{plural} detected",
            description=(
                f"{round_count} of {len(values)} outputs carry a round value. "
                "Round amounts are almost always payments, which lets an "
                "observer tell the payment apart from the change output."
            ),
            recommendation=(
                "Avoid paying round amounts where you can. Some wallets can add "
                "a small random amount to the payment or the fee."
            ),
            score_impact=-impact,
            params={"roundCount": round_count, "totalOutputs": len(values)},
        )
    )
    return result
