"""Finding data model shared by every heuristic.

A Finding is the atomic unit of analysis output: a titled, explained signal
with a signed score delta. Finding ids are a closed set (``FindingKind``) so
the reconciler and the orchestrator can dispatch on them exhaustively.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Union

ParamValue = Union[str, int, float]


class Severity(str, Enum):
    """How bad a finding is for the user's privacy."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    GOOD = "good"


SEVERITY_ORDER = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
    Severity.GOOD: 4,
}


class Urgency(str, Enum):
    IMMEDIATE = "immediate"
    SOON = "soon"
    WHEN_CONVENIENT = "when-convenient"


class DataConfidence(str, Enum):
    """How far indexer counters and the supplied transactions agree."""

    CONSISTENT = "consistent"  # Indexer count matches observed receives
    INDEXER_ONLY = "indexer-only"  # Indexer reports more than the txs show
    OBSERVED_ONLY = "observed-only"  # Txs show more than the indexer reports
    INCOMPLETE = "incomplete"  # Counters contradict the history entirely


class FindingKind(str, Enum):
    """Every finding id a rule can emit."""

    # Transaction rules
    ROUND_AMOUNT = "h1-round-amount"
    CHANGE_DETECTED = "h2-change-detected"
    SELF_SEND = "h2-self-send"
    CIOH = "h3-cioh"
    SINGLE_INPUT = "h3-single-input"
    WHIRLPOOL = "h4-whirlpool"
    COINJOIN = "h4-coinjoin"
    JOINMARKET = "h4-joinmarket"
    STONEWALL = "h4-stonewall"
    EXCHANGE_FLAGGING = "h4-exchange-flagging"
    ZERO_ENTROPY = "h5-zero-entropy"
    LOW_ENTROPY = "h5-low-entropy"
    ENTROPY = "h5-entropy"
    ROUND_FEE_RATE = "h6-round-fee-rate"
    RBF_SIGNALED = "h6-rbf-signaled"
    OP_RETURN = "h7-op-return"
    WALLET_FINGERPRINT = "h11-wallet-fingerprint"
    ANON_SET_STRONG = "anon-set-strong"
    ANON_SET_MODERATE = "anon-set-moderate"
    ANON_SET_NONE = "anon-set-none"
    PAYJOIN = "payjoin-detected"
    TIMING_UNCONFIRMED = "timing-unconfirmed"
    TIMING_LOCKTIME_TIMESTAMP = "timing-locktime-timestamp"
    TIMING_STALE_LOCKTIME = "timing-stale-locktime"
    SCRIPT_MULTISIG = "script-multisig"
    SCRIPT_UNIFORM = "script-uniform"
    SCRIPT_MIXED = "script-mixed"
    DUST_ATTACK = "dust-attack"
    DUST_OUTPUTS = "dust-outputs"
    COINBASE = "coinbase-transaction"

    # Address rules
    NO_REUSE = "h8-no-reuse"
    REUSE_UNCERTAIN = "h8-reuse-uncertain"
    BATCH_RECEIVE = "h8-batch-receive"
    ADDRESS_REUSE = "h8-address-reuse"
    DUST_UTXOS = "h9-dust-detected"
    MANY_UTXOS = "h9-many-utxos"
    MODERATE_UTXOS = "h9-moderate-utxos"
    CLEAN_UTXOS = "h9-clean"
    TYPE_P2TR = "h10-p2tr"
    TYPE_P2WPKH = "h10-p2wpkh"
    TYPE_P2WSH = "h10-p2wsh"
    TYPE_P2SH = "h10-p2sh"
    TYPE_P2PKH = "h10-p2pkh"
    SPENDING_HIGH_VOLUME = "spending-high-volume"
    SPENDING_NEVER_SPENT = "spending-never-spent"
    SPENDING_MANY_COUNTERPARTIES = "spending-many-counterparties"


@dataclass(frozen=True)
class Tool:
    name: str
    url: str


@dataclass(frozen=True)
class Remediation:
    """Actionable guidance attached to a finding. Not used for scoring.

    Attributes:
        steps: Ordered steps the user can take
        tools: Software that helps with the steps
        urgency: How soon the user should act
    """

    steps: tuple[str, ...]
    tools: tuple[Tool, ...] = ()
    urgency: Urgency = Urgency.WHEN_CONVENIENT


@dataclass(frozen=True)
class Finding:
    """One privacy signal produced by a heuristic.

    Attributes:
        kind: Finding identifier
        severity: Severity bucket (independent of the impact sign)
        title: Short human-readable title
        description: What was observed
        recommendation: What the user can do about it
        score_impact: Signed delta applied to the base score
        params: Primitive values for later formatting
        remediation: Optional step-by-step guidance
        confidence: Agreement between indexer counters and observed data
        index: Suffix for rules that emit several instances of one kind
    """

    kind: FindingKind
    severity: Severity
    title: str
    description: str
    recommendation: str
    score_impact: int
    params: dict[str, ParamValue] = field(default_factory=dict)
    remediation: Remediation | None = None
    confidence: DataConfidence | None = None
    index: int | None = None

    @property
    def id(self) -> str:
        if self.index is None:
            return self.kind.value
        return f"{self.kind.value}-{self.index}"

    def to_dict(self) -> dict:
        """Plain-data view (enum values, no dataclass instances)."""
        data = asdict(self)
        data.pop("kind")
        data.pop("index")
        data["id"] = self.id
        data["severity"] = self.severity.value
        if self.confidence is not None:
            data["confidence"] = self.confidence.value
        if self.remediation is not None:
            data["remediation"]["urgency"] = self.remediation.urgency.value
            data["remediation"]["steps"] = list(self.remediation.steps)
            data["remediation"]["tools"] = [asdict(t) for t in self.remediation.tools]
        return data


@dataclass
class HeuristicResult:
    """Uniform return type of every rule."""

    findings: list[Finding] = field(default_factory=list)

    @property
    def total_impact(self) -> int:
        return sum(f.score_impact for f in self.findings)
