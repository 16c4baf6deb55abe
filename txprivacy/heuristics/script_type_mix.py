"""Script Type Mix Analysis.

When inputs and outputs use different script types, the change output tends
to be the one matching the inputs. Uniform script types remove that signal.
Bare multisig outputs are penalised separately: they put every public key
on chain.

Impact: -8 to +2
"""

from __future__ import annotations

from txprivacy.heuristics._common import is_coinbase
from txprivacy.models import Finding, FindingKind, HeuristicResult, Severity, Transaction

MULTISIG_TYPE = "multisig"
OP_RETURN_TYPE = "op_return"


def script_types(tx: Transaction) -> list[str]:
    """Distinct input prevout and output script types, in first-seen order."""
    seen: dict[str, None] = {}
    for vin in tx.vin:
        if vin.prevout is not None and vin.prevout.scriptpubkey_type:
            seen.setdefault(vin.prevout.scriptpubkey_type)
    for out in tx.vout:
        if out.scriptpubkey_type and out.scriptpubkey_type != OP_RETURN_TYPE:
            seen.setdefault(out.scriptpubkey_type)
    return list(seen)


def analyze_script_type_mix(tx: Transaction, raw_hex: str | None = None) -> HeuristicResult:
    result = HeuristicResult()
    if is_coinbase(tx):
        return result

    multisig = sum(1 for out in tx.vout if out.scriptpubkey_type == MULTISIG_TYPE)
    if multisig:
        plural = "s" if multisig > 1 else ""
        result.findings.append(
            Finding(
                kind=FindingKind.SCRIPT_MULTISIG,
                severity=Severity.HIGH,
                title=f"Bare multisig output{plural} detected",
                description=(
                    f"This transaction creates {multisig} bare multisig (P2MS) "
                    f"output{plural}. Bare multisig exposes every public key on "
                    "chain and identifies the signing parties."
                ),
                recommendation=(
                    "Use P2WSH multisig, or Taproot with MuSig2/FROST so multisig "
                    "looks like single-sig on chain."
                ),
                score_impact=-8,
                params={"count": multisig},
            )
        )

    if len(tx.vout) < 2:
        return result

    types = script_types(tx)
    if len(types) == 1:
        result.findings.append(
            Finding(
                kind=FindingKind.SCRIPT_UNIFORM,
                severity=Severity.GOOD,
                title="Uniform script types",
                description=(
                    "All inputs and outputs use the same script type, so script "
                    "type cannot be used to pick out the change output."
                ),
                recommendation="Keep using one address type for all outputs.",
                score_impact=2,
            )
        )
    elif len(types) > 1:
        many = len(types) >= 3
        joined = ", ".join(types)
        result.findings.append(
            Finding(
                kind=FindingKind.SCRIPT_MIXED,
                severity=Severity.MEDIUM if many else Severity.LOW,
                title=f"{len(types)} different script types in transaction",
                description=(
                    f"This transaction mixes script types ({joined}). Mixed types "
                    "make change detection easier and can fingerprint the wallet."
                ),
                recommendation=(
                    "Use a wallet that keeps the same address format for change "
                    "as for the inputs."
                ),
                score_impact=-3 if many else -1,
                params={"typeCount": len(types), "types": joined},
            )
        )
    return result
