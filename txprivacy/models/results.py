"""Result types produced by the analysis pipeline and the cluster builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from txprivacy.models.finding import Finding


class Grade(str, Enum):
    A_PLUS = "A+"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


@dataclass(frozen=True)
class RawFindings:
    """Findings collected from every transaction rule, not yet reconciled."""

    findings: tuple[Finding, ...] = ()


@dataclass(frozen=True)
class ReconciledFindings:
    """Findings after cross-heuristic reconciliation; ready for scoring."""

    findings: tuple[Finding, ...] = ()


@dataclass
class ScoringResult:
    """Score, grade and severity-sorted findings for one analysis call.

    Attributes:
        score: Clamped score in [0, 100]
        grade: Letter grade derived from the score
        findings: Findings ordered most severe first
    """

    score: int
    grade: Grade
    findings: list[Finding] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "grade": self.grade.value,
            "findings": [f.to_dict() for f in self.findings],
        }


@dataclass(frozen=True)
class ClusterProgress:
    phase: Literal["inputs", "change-follow"]
    current: int
    total: int


@dataclass(frozen=True)
class ClusterResult:
    """Lower-bound estimate of the addresses controlled with the target.

    Attributes:
        addresses: Unique cluster addresses (sorted for stable output)
        size: Number of addresses
        txs_analyzed: Transactions examined across both phases
        coinjoin_tx_count: Transactions skipped as CoinJoins
        linked_groups: Co-spend groups merged into the target's cluster
        cancelled: True when the walk stopped on a cancellation request
    """

    addresses: tuple[str, ...]
    size: int
    txs_analyzed: int
    coinjoin_tx_count: int
    linked_groups: int = 0
    cancelled: bool = False

    def to_dict(self) -> dict:
        return {
            "addresses": list(self.addresses),
            "size": self.size,
            "txs_analyzed": self.txs_analyzed,
            "coinjoin_tx_count": self.coinjoin_tx_count,
            "linked_groups": self.linked_groups,
            "cancelled": self.cancelled,
        }
