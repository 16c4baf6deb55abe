"""H11: Wallet Fingerprinting.

Transaction metadata narrows down the wallet software that built it:
- nLockTime set to a block height: anti-fee-sniping (Bitcoin Core, Sparrow)
- Uniform nSequence across inputs (0xfffffffd, 0xfffffffe or 0xffffffff)
- BIP69 lexicographic ordering of inputs and outputs (Electrum, Samourai,
  Wasabi), only meaningful with at least 3 inputs and 3 outputs
- Low-R signatures: Bitcoin Core >= 0.17 grinds for 32-byte R values

Impact: -2 to -6
"""

from __future__ import annotations

import re
from collections import Counter

from txprivacy.heuristics._common import WHIRLPOOL_DENOMINATIONS_SATS, is_coinbase
from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction

LOCKTIME_TIMESTAMP_THRESHOLD = 500_000_000
UNIFORM_SEQUENCES = {
    0xFFFFFFFD: "nSequence=0xfffffffd on every input (RBF enabled)",
    0xFFFFFFFE: "nSequence=0xfffffffe on every input (anti-fee-sniping, no RBF)",
    0xFFFFFFFF: "nSequence=0xffffffff on every input (legacy final)",
}
BIP69_MIN_SIDE = 3
LARGE_COINJOIN_SIDE = 20
WHIRLPOOL_POOL_SIZE = 5

WALLET_CORE_SPARROW = "Bitcoin Core / Sparrow"
WALLET_SAMOURAI = "Samourai/Sparrow"
WALLET_WASABI = "Wasabi Wallet"
WALLET_ELECTRUM = "Electrum"
WALLET_CORE = "Bitcoin Core"

# DER signature header: 30 <len> 02 <rlen>
_DER_SIGNATURE = re.compile(r"30[0-9a-f]{2}02([0-9a-f]{2})", re.IGNORECASE)
LOW_R_LENGTH = 0x20


def is_bip69_sorted(tx: Transaction) -> bool:
    """Inputs sorted by (txid, vout) and outputs by (value, scriptpubkey)."""
    inputs = [(vin.txid, vin.vout) for vin in tx.vin]
    outputs = [(out.value, out.scriptpubkey) for out in tx.vout]
    return inputs == sorted(inputs) and outputs == sorted(outputs)


def has_whirlpool_shape(tx: Transaction) -> bool:
    counts = Counter(out.value for out in tx.vout)
    return any(counts[d] == WHIRLPOOL_POOL_SIZE for d in WHIRLPOOL_DENOMINATIONS_SATS)


def has_low_r_signatures(raw_hex: str, input_count: int) -> bool:
    """True when every DER signature in ``raw_hex`` has a 32-byte R."""
    if input_count == 0:
        return False
    lengths = [int(m.group(1), 16) for m in _DER_SIGNATURE.finditer(raw_hex)]
    if not lengths or len(lengths) < input_count:
        return False
    return all(length == LOW_R_LENGTH for length in lengths)


def analyze_wallet_fingerprint(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    if is_coinbase(tx):
        return result

    signals: list[str] = []
    guess: str | None = None

    if 0 < tx.locktime < LOCKTIME_TIMESTAMP_THRESHOLD:
        signals.append("nLockTime set to a block height (anti-fee-sniping)")
        guess = WALLET_CORE_SPARROW

    sequences = {vin.sequence for vin in tx.vin}
    if len(sequences) == 1:
        label = UNIFORM_SEQUENCES.get(next(iter(sequences)))
        if label:
            signals.append(label)

    if len(tx.vin) >= BIP69_MIN_SIDE and len(tx.vout) >= BIP69_MIN_SIDE and is_bip69_sorted(tx):
        if has_whirlpool_shape(tx):
            signals.append("BIP69 ordering with a Whirlpool pool shape")
            guess = WALLET_SAMOURAI
        elif len(tx.vin) > LARGE_COINJOIN_SIDE and len(tx.vout) > LARGE_COINJOIN_SIDE:
            signals.append("BIP69 ordering in a large CoinJoin")
            guess = WALLET_WASABI
        else:
            signals.append("BIP69 lexicographic ordering")
            guess = guess or WALLET_ELECTRUM

    if raw_hex and has_low_r_signatures(raw_hex, len(tx.vin)):
        signals.append("Low-R signatures (Bitcoin Core 0.17+)")
        guess = WALLET_CORE

    if not signals:
        return result

    if guess == WALLET_CORE_SPARROW:
        severity, impact = Severity.LOW, -3
    elif guess:
        severity, impact = Severity.MEDIUM, -6
    elif len(signals) >= 3:
        severity, impact = Severity.LOW, -4
    else:
        severity, impact = Severity.LOW, -2

    if guess:
        title = f"Wallet fingerprint: likely {guess}"
    else:
        plural = "s" if len(signals) > 1 else ""
        title = f"{len(signals)} wallet fingerprinting signal{plural} detected"

    description = f"Transaction metadata reveals wallet characteristics: {'; '.join(signals)}."
    if guess:
        description += f" These signals are consistent with {guess}."

    result.findings.append(
        Finding(
            kind=FindingKind.WALLET_FINGERPRINT,
            severity=severity,
            title=title,
            description=description,
            recommendation=(
                "Fingerprints are hard to avoid without changing wallet software. "
                "Taproot key-path spends and widely used wallets make them less "
                "identifying."
            ),
            score_impact=impact,
            params={"walletGuess": guess, "signalCount": len(signals)}
            if guess
            else {"signalCount": len(signals)},
        )
    )
    return result
