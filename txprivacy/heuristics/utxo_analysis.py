"""H9: UTXO Set and Dust Analysis.

- Dust UTXOs (< 1000 sats) are often unsolicited tracking dust: spending them
  with other coins links those coins through CIOH
- Large UTXO sets get linked together when spent in one transaction
"""

from __future__ import annotations

from txprivacy.heuristics._common import DUST_THRESHOLD_SATS
from txprivacy.models import (
    AddressInfo,
    Finding,
    FindingKind,
    HeuristicResult,
    Remediation,
    Severity,
    Tool,
    Transaction,
    Urgency,
    Utxo,
)

HIGH_DUST_COUNT = 3
MANY_UTXOS = 20
MODERATE_UTXOS = 5

COIN_CONTROL_TOOLS = (
    Tool(name="Sparrow Wallet", url="https://sparrowwallet.com"),
    Tool(name="Bitcoin Core", url="https://bitcoincore.org"),
)


def analyze_utxos(
    address: AddressInfo, utxos: list[Utxo], txs: list[Transaction]
) -> HeuristicResult:
    result = HeuristicResult()
    if not utxos:
        return result

    dust = [u.value for u in utxos if u.value < DUST_THRESHOLD_SATS]
    if dust:
        many = len(dust) >= HIGH_DUST_COUNT
        plural = "s" if len(dust) > 1 else ""
        result.findings.append(
            Finding(
                kind=FindingKind.DUST_UTXOS,
                severity=Severity.HIGH if many else Severity.MEDIUM,
                title=f"{len(dust)} potential dust UTXO{plural} detected",
                description=(
                    f"Found {len(dust)} UTXO{plural} below {DUST_THRESHOLD_SATS} sats "
                    f"(total {sum(dust)} sats). Unsolicited dust is used to track "
                    "spending: once spent with other UTXOs, it links them together."
                ),
                recommendation="Freeze these UTXOs with coin control and never spend them.",
                score_impact=-8 if many else -5,
                params={
                    "dustCount": len(dust),
                    "totalDust": sum(dust),
                    "threshold": DUST_THRESHOLD_SATS,
                },
                remediation=Remediation(
                    steps=(
                        "Freeze the dust UTXOs in your wallet's coin control.",
                        "Never select them together with your other UTXOs.",
                    ),
                    tools=COIN_CONTROL_TOOLS,
                    urgency=Urgency.IMMEDIATE if many else Urgency.SOON,
                ),
            )
        )

    if len(utxos) >= MANY_UTXOS:
        result.findings.append(
            Finding(
                kind=FindingKind.MANY_UTXOS,
                severity=Severity.MEDIUM,
                title=f"Large UTXO set ({len(utxos)} UTXOs)",
                description=(
                    f"This address holds {len(utxos)} UTXOs. Spending several in one "
                    "transaction links them through CIOH and raises fees."
                ),
                recommendation=(
                    "Select UTXOs manually when spending and consolidate only during "
                    "low-fee periods, ideally after a CoinJoin."
                ),
                score_impact=-3,
                params={"utxoCount": len(utxos)},
                remediation=Remediation(
                    steps=(
                        "Use coin control to pick specific UTXOs for each payment.",
                        "Spend exact amounts where possible to avoid change.",
                    ),
                    tools=COIN_CONTROL_TOOLS,
                    urgency=Urgency.WHEN_CONVENIENT,
                ),
            )
        )
    elif len(utxos) >= MODERATE_UTXOS:
        result.findings.append(
            Finding(
                kind=FindingKind.MODERATE_UTXOS,
                severity=Severity.LOW,
                title=f"{len(utxos)} UTXOs on this address",
                description=(
                    "Combining these UTXOs in one transaction would reveal their "
                    "common ownership."
                ),
                recommendation="Avoid wallet auto-selection that combines every UTXO.",
                score_impact=-2,
                params={"utxoCount": len(utxos)},
            )
        )

    if not result.findings:
        result.findings.append(
            Finding(
                kind=FindingKind.CLEAN_UTXOS,
                severity=Severity.GOOD,
                title="Clean UTXO set",
                description="No dust UTXOs and a manageable UTXO count.",
                recommendation="Keep managing UTXOs deliberately.",
                score_impact=2,
            )
        )
    return result
