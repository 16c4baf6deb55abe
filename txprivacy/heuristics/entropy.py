"""H5: Transaction Entropy (bounded Boltzmann approximation).

Entropy measures how many ways the inputs could have funded the outputs.
More valid interpretations means more ambiguity for an observer.

- Small transactions (up to 8 inputs and 8 outputs): enumerate every
  assignment of outputs to inputs that can fund them, capped at 10,000
  complete assignments. A capped count is reported as a lower bound.
- Larger transactions: estimate from the largest equal-value output group,
  log2(k!) with k = min(group size, input count), or log2(min(#in, #out))
  when every output value is unique.

Reference: LaurentMT, "Bitcoin Transactions & Privacy" (Boltzmann)
Impact: -5 to +15
"""

from __future__ import annotations

import math
from collections import Counter

from txprivacy.heuristics._common import is_op_return
from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction

MAX_ENUMERABLE_SIZE = 8
ENUMERATION_LIMIT = 10_000
MAX_IMPACT = 15

METHOD_EXACT = "exact enumeration"
METHOD_LOWER_BOUND = "lower-bound estimate"
METHOD_STRUCTURAL = "structural estimate"


def count_valid_mappings(inputs: list[int], outputs: list[int]) -> tuple[int, bool]:
    """Count output-to-input funding assignments.

    Each output is assigned to one input whose remaining value covers it.
    Swapping inputs of identical value does not yield a new interpretation,
    so the count is divided by the factorial of each duplicate group.

    Args:
        inputs: Input values in sats
        outputs: Output values in sats

    Returns:
        Tuple of (interpretation count >= 1, whether the limit was hit)
    """
    if sum(inputs) < sum(outputs):
        return 1, False

    remaining = list(inputs)
    iterations = 0

    def enumerate_from(output_idx: int) -> int:
        nonlocal iterations
        if iterations > ENUMERATION_LIMIT:
            return 0
        if output_idx == len(outputs):
            iterations += 1
            return 1

        valid = 0
        value = outputs[output_idx]
        for i in range(len(remaining)):
            if remaining[i] >= value:
                remaining[i] -= value
                valid += enumerate_from(output_idx + 1)
                remaining[i] += value
                if iterations > ENUMERATION_LIMIT:
                    break
        return valid

    count = enumerate_from(0)

    duplicate_factor = 1
    for group in Counter(inputs).values():
        if group > 1:
            duplicate_factor *= math.factorial(group)
    count = round(count / duplicate_factor)

    return max(count, 1), iterations > ENUMERATION_LIMIT


def estimate_entropy(inputs: list[int], outputs: list[int]) -> float:
    """Structural entropy estimate for transactions too large to enumerate."""
    largest_group = max(Counter(outputs).values(), default=0)
    if largest_group >= 2:
        k = min(largest_group, len(inputs))
        return math.log2(math.factorial(k)) if k > 1 else 0.0
    smallest_side = min(len(inputs), len(outputs))
    return math.log2(smallest_side) if smallest_side > 1 else 0.0


def entropy_impact(bits: float) -> int:
    if bits < 1:
        return 0
    return min(math.floor(bits * 2), MAX_IMPACT)


def analyze_entropy(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    """Score the ambiguity of the fund flow.

    Args:
        tx: Transaction to analyze
        raw_hex: Unused

    Returns:
        HeuristicResult with one of ``h5-zero-entropy``, ``h5-low-entropy``
        or ``h5-entropy``; empty for coinbase transactions
    """
    result = HeuristicResult()

    inputs = [
        vin.prevout.value
        for vin in tx.vin
        if not vin.is_coinbase and vin.prevout is not None
    ]
    outputs = [out.value for out in tx.vout if not is_op_return(out) and out.value > 0]

    if not inputs:
        return result

    if len(inputs) == 1 and len(outputs) == 1:
        result.findings.append(
            Finding(
                kind=FindingKind.ZERO_ENTROPY,
                severity=Severity.LOW,
                title="Zero transaction entropy",
                description=(
                    "One input and one output leave exactly one interpretation: "
                    "the flow of funds is unambiguous."
                ),
                recommendation=(
                    "Transactions with more inputs and outputs are more ambiguous. "
                    "CoinJoin maximises entropy."
                ),
                score_impact=-5,
            )
        )
        return result

    if len(inputs) <= MAX_ENUMERABLE_SIZE and len(outputs) <= MAX_ENUMERABLE_SIZE:
        count, truncated = count_valid_mappings(inputs, outputs)
        bits = math.log2(count) if count > 1 else 0.0
        method = METHOD_LOWER_BOUND if truncated else METHOD_EXACT
    else:
        bits = estimate_entropy(inputs, outputs)
        method = METHOD_STRUCTURAL

    rounded = round(bits, 2)
    if rounded <= 0:
        result.findings.append(
            Finding(
                kind=FindingKind.LOW_ENTROPY,
                severity=Severity.MEDIUM,
                title="Very low transaction entropy",
                description=(
                    f"This transaction has {rounded} bits of entropy ({method}). "
                    "Only one interpretation of the fund flow is valid."
                ),
                recommendation=(
                    "Spend exact amounts to avoid change, or use CoinJoin for "
                    "real ambiguity."
                ),
                score_impact=-3,
                params={"entropyBits": rounded, "method": method},
            )
        )
        return result

    impact = entropy_impact(bits)
    if impact >= 10:
        severity = Severity.GOOD
    elif impact > 0:
        severity = Severity.LOW
    else:
        severity = Severity.MEDIUM

    approx = "approximately " if method == METHOD_STRUCTURAL else ""
    result.findings.append(
        Finding(
            kind=FindingKind.ENTROPY,
            severity=severity,
            title=f"Transaction entropy: {rounded} bits",
            description=(
                f"This transaction has {rounded} bits of entropy ({method}), so there "
                f"are {approx}{2 ** min(bits, 64):,.0f} ways to read the fund flow. "
                "Higher entropy makes chain analysis less reliable."
            ),
            recommendation=(
                "Good entropy level. Spending exact amounts improves it further."
                if bits >= 4
                else "Spend exact amounts to avoid change outputs, or consider CoinJoin."
            ),
            score_impact=impact,
            params={"entropyBits": rounded, "method": method},
        )
    )
    return result
